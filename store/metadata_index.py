"""Content-type index keyed by logical path (b/<txid>, bcat/<txid>, c/<sha256>)."""

from pathlib import Path
from typing import Optional, Union

from common.logging_config import get_logger
from store.database import get_db_connection

logger = get_logger(__name__)


class MetadataIndex:
    """
    Persistent logical path -> content-type map.

    Every operation runs in its own short transaction; there is no
    atomicity across keys or between a file write and its entry.
    """

    def __init__(self, database_path: Union[str, Path]):
        self.database_path = Path(database_path)

    def put(self, path: str, content_type: Optional[str]) -> None:
        """
        Write or overwrite the content-type for a path.

        A missing or empty content-type records nothing.

        Args:
            path: Logical path relative to the storage root
            content_type: MIME type, or None
        """
        if not content_type:
            return

        logger.info(f"Saving metadata {path} - {content_type}")
        with get_db_connection(self.database_path) as conn:
            conn.execute(
                "INSERT OR REPLACE INTO metadata (path, content_type) VALUES (?, ?)",
                (path, content_type)
            )
            conn.commit()

    def put_if_absent(self, path: str, content_type: Optional[str]) -> bool:
        """
        Record the content-type for a path only if it has none yet.

        Args:
            path: Logical path relative to the storage root
            content_type: MIME type, or None

        Returns:
            True if a new entry was written
        """
        if not content_type:
            return False

        with get_db_connection(self.database_path) as conn:
            cursor = conn.execute(
                "INSERT OR IGNORE INTO metadata (path, content_type) VALUES (?, ?)",
                (path, content_type)
            )
            conn.commit()
            created = cursor.rowcount == 1

        if created:
            logger.info(f"Saving metadata {path} - {content_type}")
        return created

    def get(self, path: str) -> Optional[str]:
        """
        Look up the content-type recorded for a path.

        Returns:
            Content-type string, or None if nothing was recorded
        """
        with get_db_connection(self.database_path) as conn:
            row = conn.execute(
                "SELECT content_type FROM metadata WHERE path = ?",
                (path,)
            ).fetchone()
        return row["content_type"] if row else None

    def count(self) -> int:
        with get_db_connection(self.database_path) as conn:
            row = conn.execute("SELECT COUNT(*) AS n FROM metadata").fetchone()
        return row["n"]
