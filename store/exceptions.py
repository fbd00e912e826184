"""Custom exception classes for the storage engine."""

from typing import Iterable


class NeonFSError(Exception):
    """
    Base exception class for all storage engine errors.
    """
    pass


class InvalidPathError(NeonFSError):
    """
    Raised when a logical path or identifier is not a valid storage entry name.
    """
    pass


class StoredFileNotFoundError(NeonFSError):
    """
    Raised when a requested logical path has no file behind it.
    """
    pass


class ChunksMissingError(NeonFSError):
    """
    Raised when a BCAT manifest references chunks that have not arrived yet.
    """

    def __init__(self, tx_id: str, missing: Iterable[str]):
        self.tx_id = tx_id
        self.missing = list(missing)
        super().__init__(
            f"Manifest {tx_id} is waiting for {len(self.missing)} chunk(s)"
        )
