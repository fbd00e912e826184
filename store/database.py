"""Database schema and connection management for SQLite."""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Union


def init_database(database_path: Union[str, Path]) -> None:
    """
    Initialize database and create tables if they don't exist.
    """
    db_path = Path(database_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    with get_db_connection(db_path) as conn:
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS metadata (
                path TEXT PRIMARY KEY,
                content_type TEXT NOT NULL
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS pending_manifests (
                tx_id TEXT PRIMARY KEY,
                manifest TEXT NOT NULL,
                created_at TEXT NOT NULL
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS pending_manifest_chunks (
                tx_id TEXT NOT NULL,
                chunk_id TEXT NOT NULL,
                PRIMARY KEY(tx_id, chunk_id),
                FOREIGN KEY(tx_id) REFERENCES pending_manifests(tx_id) ON DELETE CASCADE
            )
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_pending_chunk_id ON pending_manifest_chunks(chunk_id)
        """)

        conn.commit()


@contextmanager
def get_db_connection(database_path: Union[str, Path]) -> Generator[sqlite3.Connection, None, None]:
    """
    Context manager for database connections.
    """
    conn = sqlite3.connect(str(database_path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
    finally:
        conn.close()
