"""Storage root layout and the context object passed to every component."""

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple, Union

from common.constants import CATEGORIES, PARTIAL_SUFFIX
from common.logging_config import get_logger
from store.database import init_database
from store.exceptions import InvalidPathError

logger = get_logger(__name__)


def validate_identifier(identifier: str) -> str:
    """
    Check that an identifier can be used as a flat file name.

    Args:
        identifier: Transaction id, chunk id or content hash

    Returns:
        The identifier unchanged

    Raises:
        InvalidPathError: If the identifier is empty, hidden or contains a separator
    """
    if not isinstance(identifier, str) or not identifier:
        raise InvalidPathError("Empty identifier")
    if identifier.startswith("."):
        raise InvalidPathError(f"Hidden identifier not allowed: {identifier!r}")
    if "/" in identifier or "\\" in identifier or "\x00" in identifier:
        raise InvalidPathError(f"Identifier contains a path separator: {identifier!r}")
    return identifier


def validate_category(category: str) -> str:
    if category not in CATEGORIES:
        raise InvalidPathError(f"Unknown category: {category!r}")
    return category


def split_logical_path(relative_path: str) -> Tuple[str, str]:
    """
    Split ``<category>/<identifier>`` into its two validated parts.

    Raises:
        InvalidPathError: If the path is not exactly two valid components
    """
    parts = relative_path.strip("/").split("/")
    if len(parts) != 2:
        raise InvalidPathError(f"Not a logical path: {relative_path!r}")
    category, identifier = parts
    return validate_category(category), validate_identifier(identifier)


@dataclass(frozen=True)
class StorageContext:
    """
    Process-wide storage state: where files live and where metadata lives.

    Built once at startup and handed to every component explicitly.
    """
    root: Path
    database_path: Path

    @classmethod
    def from_paths(cls, root: Union[str, Path], database_path: Union[str, Path]) -> 'StorageContext':
        return cls(root=Path(root), database_path=Path(database_path))

    def ensure_layout(self) -> None:
        """Create the four category directories and the metadata database."""
        for category in CATEGORIES:
            (self.root / category).mkdir(parents=True, exist_ok=True)
        init_database(self.database_path)
        logger.info(f"Storage ready at {self.root} (metadata: {self.database_path})")

    def category_dir(self, category: str) -> Path:
        return self.root / validate_category(category)

    def logical_path(self, category: str, identifier: str) -> Path:
        """
        Get the on-disk path of a logical entry.

        Args:
            category: One of ``b``, ``bcat``, ``chunks``, ``c``
            identifier: Transaction id or content hash

        Returns:
            Path under the storage root
        """
        return self.category_dir(category) / validate_identifier(identifier)

    def create_partial(self, category: str, identifier: str) -> Path:
        """
        Create an empty, uniquely named partial file next to the final entry.

        Partial files are hidden (dot-prefixed) so they are never served and
        live on the same volume as their destination so they can be linked.
        """
        validate_identifier(identifier)
        fd, name = tempfile.mkstemp(
            dir=self.category_dir(category),
            prefix=f".{identifier}.",
            suffix=PARTIAL_SUFFIX
        )
        os.close(fd)
        return Path(name)

    def relative_key(self, category: str, identifier: str) -> str:
        """Metadata key of a logical entry (``<category>/<identifier>``)."""
        return f"{validate_category(category)}/{validate_identifier(identifier)}"
