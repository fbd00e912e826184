"""Read-side adapter: resolves logical paths and their recorded content types."""

from pathlib import Path
from typing import Optional

from store.context import StorageContext, split_logical_path
from store.exceptions import StoredFileNotFoundError
from store.metadata_index import MetadataIndex


class ServingAdapter:
    """
    Answers "which file and which content-type?" for a requested path.

    Has no write capability.
    """

    def __init__(self, context: StorageContext, metadata_index: MetadataIndex):
        self.context = context
        self.metadata_index = metadata_index

    def content_type_for(self, relative_path: str) -> Optional[str]:
        """
        Content-type recorded for a logical path.

        Args:
            relative_path: ``<category>/<identifier>`` relative to the storage root

        Returns:
            Content-type string, or None to let the server infer one

        Raises:
            InvalidPathError: If the path is not a valid logical path
        """
        category, identifier = split_logical_path(relative_path)
        return self.metadata_index.get(self.context.relative_key(category, identifier))

    def resolve(self, relative_path: str) -> Path:
        """
        On-disk file behind a logical path.

        Raises:
            InvalidPathError: If the path is not a valid logical path
            StoredFileNotFoundError: If nothing is stored there
        """
        category, identifier = split_logical_path(relative_path)
        path = self.context.logical_path(category, identifier)
        if not path.is_file():
            raise StoredFileNotFoundError(f"No file stored at {category}/{identifier}")
        return path
