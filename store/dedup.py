"""Content-addressed canonical copies under c/<sha256>, shared via hard links."""

import os
from pathlib import Path

from common.constants import CATEGORY_CANONICAL
from common.logging_config import get_logger
from store.checksum_validator import compute_file_checksum, verify_file_checksum
from store.chunk_storage import link_if_absent
from store.context import StorageContext

logger = get_logger(__name__)


class DedupLayer:
    """
    Keeps at most one physical copy per distinct content hash.

    A logical entry (b/<txid> or bcat/<txid>) and its canonical entry
    c/<sha256> are two directory entries for the same inode.
    """

    def __init__(self, context: StorageContext):
        self.context = context

    def canonical_path(self, digest: str) -> Path:
        return self.context.logical_path(CATEGORY_CANONICAL, digest)

    def promote(self, partial_path: Path, logical_path: Path) -> str:
        """
        Move a freshly materialized file into place.

        The partial file becomes c/<digest> if no canonical copy exists and
        is discarded otherwise; logical_path is then linked to c/<digest>.

        Args:
            partial_path: Complete file written by the materializer
            logical_path: Final b/<txid> or bcat/<txid> entry

        Returns:
            SHA-256 hex digest of the content
        """
        try:
            digest = compute_file_checksum(partial_path)
            canonical = self.canonical_path(digest)

            if link_if_absent(partial_path, canonical):
                logger.debug(f"New canonical file c/{digest}")
            else:
                logger.info(f"Content already stored as c/{digest}, linking {logical_path.name}")

            if not link_if_absent(canonical, logical_path):
                logger.debug(f"{logical_path} was linked concurrently")
        finally:
            partial_path.unlink(missing_ok=True)

        return digest

    def is_linked(self, logical_path: Path) -> bool:
        """True if the logical entry shares its inode with another entry."""
        return logical_path.stat().st_nlink > 1

    def ensure_linked(self, logical_path: Path) -> str:
        """
        Make an existing logical file share its inode with c/<digest>.

        Repairs entries left behind by a crash between writing a file and
        linking it. Safe to call on an already linked entry.

        Args:
            logical_path: Existing b/<txid> or bcat/<txid> entry

        Returns:
            SHA-256 hex digest of the content
        """
        digest = compute_file_checksum(logical_path)
        canonical = self.canonical_path(digest)

        if link_if_absent(logical_path, canonical):
            logger.info(f"Recreated canonical file c/{digest} from {logical_path}")
            return digest

        if not os.path.samefile(logical_path, canonical):
            replacement = self.context.create_partial(logical_path.parent.name, logical_path.name)
            try:
                replacement.unlink()
                os.link(canonical, replacement)
                os.replace(replacement, logical_path)
            finally:
                replacement.unlink(missing_ok=True)
            logger.info(f"Relinked {logical_path} to c/{digest}")

        return digest

    def verify(self, digest: str) -> bool:
        """
        Check that c/<digest> still hashes to its name.
        """
        canonical = self.canonical_path(digest)
        if not canonical.exists():
            return False
        return verify_file_checksum(canonical, digest)
