"""Builds B and BCAT files as partial files ready for promotion by the dedup layer."""

from pathlib import Path
from typing import List, Optional

from common.constants import CATEGORY_B, CATEGORY_BCAT
from common.logging_config import get_logger
from common.protocol import decode_payload
from common.types import MultiChunkManifest, SingleFile
from store.chunk_storage import ChunkStore
from store.context import StorageContext
from store.exceptions import ChunksMissingError

logger = get_logger(__name__)


class FileMaterializer:
    """
    Writes file content for one transaction.

    Output always goes to a hidden partial file in the destination's
    category directory; the logical path itself is only ever created by
    linking a complete file into place.
    """

    def __init__(self, context: StorageContext, chunk_store: ChunkStore):
        self.context = context
        self.chunk_store = chunk_store

    def materialize_single(self, tx_id: str, record: SingleFile) -> Optional[Path]:
        """
        Decode a B payload into a partial file.

        Args:
            tx_id: Transaction id owning the file
            record: Decoded B record

        Returns:
            Path of the partial file, or None if b/<tx_id> already exists
        """
        if self.context.logical_path(CATEGORY_B, tx_id).exists():
            return None

        data = decode_payload(record.payload)
        partial = self.context.create_partial(CATEGORY_B, tx_id)
        try:
            partial.write_bytes(data)
        except Exception:
            partial.unlink(missing_ok=True)
            raise

        logger.info(f"Saving B: {tx_id} ({len(data)} bytes)")
        return partial

    def missing_chunks(self, record: MultiChunkManifest) -> List[str]:
        """Chunk ids of a manifest not yet in the chunk store, in manifest order."""
        return [chunk_id for chunk_id in record.chunk_ids if not self.chunk_store.exists(chunk_id)]

    def materialize_manifest(self, tx_id: str, record: MultiChunkManifest) -> Optional[Path]:
        """
        Concatenate a BCAT manifest's chunks, in manifest order, into a partial file.

        Args:
            tx_id: Transaction id of the manifest
            record: Decoded BCAT manifest

        Returns:
            Path of the partial file, or None if the manifest lists no chunks
            or bcat/<tx_id> already exists

        Raises:
            ChunksMissingError: If any referenced chunk is not stored yet
        """
        if not record.chunk_ids:
            return None
        if self.context.logical_path(CATEGORY_BCAT, tx_id).exists():
            return None

        missing = self.missing_chunks(record)
        if missing:
            raise ChunksMissingError(tx_id, missing)

        partial = self.context.create_partial(CATEGORY_BCAT, tx_id)
        total = 0
        try:
            with open(partial, 'ab') as destination:
                for chunk_id in record.chunk_ids:
                    total += self.chunk_store.stream_into(chunk_id, destination)
        except Exception:
            partial.unlink(missing_ok=True)
            raise

        logger.info(f"Saving BCAT: {tx_id} ({len(record.chunk_ids)} chunks, {total} bytes)")
        return partial
