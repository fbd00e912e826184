"""Provides SHA-256 checksum calculation and verification helpers."""

import hashlib
from pathlib import Path

from common.constants import STREAM_PIECE_SIZE


def compute_checksum(data: bytes) -> str:
    """
    Compute SHA-256 checksum for given data.

    Args:
        data: Bytes to compute checksum for

    Returns:
        Hexadecimal string representation of SHA-256 hash
    """
    return hashlib.sha256(data).hexdigest()


def compute_file_checksum(path: Path, piece_size: int = STREAM_PIECE_SIZE) -> str:
    """
    Compute SHA-256 checksum of a file without loading it whole.

    Args:
        path: File to hash
        piece_size: Read size in bytes

    Returns:
        Hexadecimal string representation of SHA-256 hash
    """
    calculator = IncrementalChecksumCalculator()
    with open(path, 'rb') as f:
        while True:
            piece = f.read(piece_size)
            if not piece:
                break
            calculator.update(piece)
    return calculator.finalize()


def verify_file_checksum(path: Path, expected: str) -> bool:
    """
    Verify that a file's content matches expected checksum.

    Args:
        path: File to verify
        expected: Expected SHA-256 checksum (hex string)

    Returns:
        True if checksum matches, False otherwise
    """
    return compute_file_checksum(path) == expected


class IncrementalChecksumCalculator:
    """
    Calculate SHA-256 checksum incrementally for streaming data.

    Usage:
        calculator = IncrementalChecksumCalculator()
        calculator.update(piece1)
        calculator.update(piece2)
        final_checksum = calculator.finalize()
    """

    def __init__(self):
        self._hasher = hashlib.sha256()
        self._finalized = False

    def update(self, data: bytes) -> None:
        """
        Update checksum with new data.

        Args:
            data: Bytes to add to checksum calculation
        """
        if self._finalized:
            raise ValueError("Cannot update after finalization")
        self._hasher.update(data)

    def finalize(self) -> str:
        """
        Finalize checksum calculation and return result.

        Returns:
            Hexadecimal string representation of SHA-256 hash
        """
        self._finalized = True
        return self._hasher.hexdigest()
