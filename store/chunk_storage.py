"""Persists BCHUNK payloads under chunks/<txid> and streams them back out."""

import os
from pathlib import Path
from typing import BinaryIO, Iterator, List

from common.constants import CATEGORY_CHUNKS, STREAM_PIECE_SIZE
from common.logging_config import get_logger
from store.context import StorageContext

logger = get_logger(__name__)


def link_if_absent(source: Path, destination: Path) -> bool:
    """
    Hard-link source to destination unless destination already exists.

    Returns:
        True if the link was created, False if destination was already there
    """
    try:
        os.link(source, destination)
        return True
    except FileExistsError:
        return False


class ChunkStore:
    """
    Chunk payloads keyed by the transaction id of the BCHUNK transaction.

    Chunks are immutable and never deleted so that manifests replayed later
    can still be materialized.
    """

    def __init__(self, context: StorageContext):
        self.context = context

    def get_chunk_path(self, chunk_id: str) -> Path:
        return self.context.logical_path(CATEGORY_CHUNKS, chunk_id)

    def exists(self, chunk_id: str) -> bool:
        """
        Check if chunk file exists on disk. No content validation.

        Args:
            chunk_id: Transaction id of the chunk

        Returns:
            True if chunk file exists, False otherwise
        """
        return self.get_chunk_path(chunk_id).exists()

    def put(self, chunk_id: str, data: bytes) -> bool:
        """
        Write chunk data to disk unless the chunk is already stored.

        Args:
            chunk_id: Transaction id of the chunk
            data: Raw chunk bytes

        Returns:
            True if the chunk was written, False if it already existed

        Raises:
            OSError: If write operation fails
        """
        filepath = self.get_chunk_path(chunk_id)
        if filepath.exists():
            logger.debug(f"Chunk {chunk_id} already stored")
            return False

        partial = self.context.create_partial(CATEGORY_CHUNKS, chunk_id)
        try:
            partial.write_bytes(data)
            created = link_if_absent(partial, filepath)
        finally:
            partial.unlink(missing_ok=True)

        if created:
            logger.info(f"Saved chunk {chunk_id} ({len(data)} bytes)")
        return created

    def read_streaming(self, chunk_id: str, piece_size: int = STREAM_PIECE_SIZE) -> Iterator[bytes]:
        """
        Stream chunk data in pieces.

        Raises:
            FileNotFoundError: If chunk does not exist
        """
        with open(self.get_chunk_path(chunk_id), 'rb') as f:
            while True:
                piece = f.read(piece_size)
                if not piece:
                    break
                yield piece

    def stream_into(self, chunk_id: str, destination: BinaryIO) -> int:
        """
        Append a chunk's bytes to an open destination stream.

        Args:
            chunk_id: Transaction id of the chunk
            destination: Binary stream opened for writing/appending

        Returns:
            Number of bytes written

        Raises:
            FileNotFoundError: If chunk does not exist
        """
        written = 0
        for piece in self.read_streaming(chunk_id):
            destination.write(piece)
            written += len(piece)
        return written

    def list_chunks(self) -> List[str]:
        """
        List all stored chunk ids (partial files excluded).
        """
        directory = self.context.category_dir(CATEGORY_CHUNKS)
        if not directory.exists():
            return []
        return sorted(p.name for p in directory.iterdir() if not p.name.startswith("."))
