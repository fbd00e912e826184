"""Table of BCAT manifests waiting for chunks, keyed by manifest tx id."""

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Union

from common.logging_config import get_logger
from common.types import MultiChunkManifest
from store.database import get_db_connection

logger = get_logger(__name__)


@dataclass
class PendingManifest:
    tx_id: str
    manifest: MultiChunkManifest
    created_at: str


class PendingManifestRepository:
    """
    Lets a newly stored chunk find the manifests that were waiting on it,
    so deferred BCAT files complete without relying on feed re-delivery.
    """

    def __init__(self, database_path: Union[str, Path]):
        self.database_path = Path(database_path)

    def add(self, tx_id: str, manifest: MultiChunkManifest, missing_chunk_ids: Iterable[str]) -> None:
        """
        Register (or refresh) a deferred manifest and the chunks it still needs.

        Args:
            tx_id: Transaction id of the BCAT manifest
            manifest: Decoded manifest
            missing_chunk_ids: Chunk ids not yet present in the chunk store
        """
        missing = sorted(set(missing_chunk_ids))
        with get_db_connection(self.database_path) as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT OR IGNORE INTO pending_manifests (tx_id, manifest, created_at)
                VALUES (?, ?, ?)
                """,
                (tx_id, json.dumps(manifest.to_dict()), datetime.now(timezone.utc).isoformat())
            )
            cursor.execute("DELETE FROM pending_manifest_chunks WHERE tx_id = ?", (tx_id,))
            cursor.executemany(
                "INSERT INTO pending_manifest_chunks (tx_id, chunk_id) VALUES (?, ?)",
                [(tx_id, chunk_id) for chunk_id in missing]
            )
            conn.commit()
        logger.debug(f"Manifest {tx_id} pending on {len(missing)} chunk(s)")

    def remove(self, tx_id: str) -> bool:
        """
        Forget a manifest once its file is materialized.

        Returns:
            True if a pending row was removed
        """
        with get_db_connection(self.database_path) as conn:
            cursor = conn.execute("DELETE FROM pending_manifests WHERE tx_id = ?", (tx_id,))
            conn.commit()
            return cursor.rowcount > 0

    def waiting_on(self, chunk_id: str) -> List[PendingManifest]:
        """
        Manifests that listed this chunk as missing, oldest first.
        """
        with get_db_connection(self.database_path) as conn:
            rows = conn.execute(
                """
                SELECT m.tx_id, m.manifest, m.created_at
                FROM pending_manifests m
                JOIN pending_manifest_chunks c ON c.tx_id = m.tx_id
                WHERE c.chunk_id = ?
                ORDER BY m.created_at, m.tx_id
                """,
                (chunk_id,)
            ).fetchall()
        return [self._row_to_pending(row) for row in rows]

    def list_all(self) -> List[PendingManifest]:
        with get_db_connection(self.database_path) as conn:
            rows = conn.execute(
                "SELECT tx_id, manifest, created_at FROM pending_manifests ORDER BY created_at, tx_id"
            ).fetchall()
        return [self._row_to_pending(row) for row in rows]

    def count(self) -> int:
        with get_db_connection(self.database_path) as conn:
            row = conn.execute("SELECT COUNT(*) AS n FROM pending_manifests").fetchone()
        return row["n"]

    @staticmethod
    def _row_to_pending(row) -> PendingManifest:
        return PendingManifest(
            tx_id=row["tx_id"],
            manifest=MultiChunkManifest.from_dict(json.loads(row["manifest"])),
            created_at=row["created_at"],
        )
