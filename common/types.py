"""Shared data type definitions (TransactionRecord and decoded protocol records)."""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple


@dataclass(frozen=True)
class TransactionRecord:
    """
    One transaction as delivered by the upstream feed.
    """
    tx_id: str
    outputs: Tuple[Mapping[str, Any], ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'TransactionRecord':
        """
        Build a record from either the bitdb shape or the flat shape.

        Args:
            data: ``{"tx": {"h": txid}, "out": [...]}`` or
                ``{"transactionId": txid, "outputs": [...]}``

        Returns:
            TransactionRecord

        Raises:
            ValueError: If no transaction id can be found
        """
        tx_id = data.get("transactionId")
        if tx_id is None:
            tx = data.get("tx") or {}
            tx_id = tx.get("h") if isinstance(tx, Mapping) else None
        if not isinstance(tx_id, str) or not tx_id:
            raise ValueError("Transaction record has no transaction id")

        outputs = data.get("outputs")
        if outputs is None:
            outputs = data.get("out") or []
        return cls(tx_id=tx_id, outputs=tuple(outputs))


@dataclass(frozen=True)
class SingleFile:
    """B protocol: the whole file is carried in one transaction."""
    content_type: Optional[str]
    encoding: Optional[str]
    filename: Optional[str]
    payload: str


@dataclass(frozen=True)
class MultiChunkManifest:
    """BCAT protocol: file is the ordered concatenation of BCHUNK transactions."""
    content_type: Optional[str]
    encoding: Optional[str]
    filename: Optional[str]
    chunk_ids: Tuple[str, ...]
    info: Optional[str] = None
    flag: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content_type": self.content_type,
            "encoding": self.encoding,
            "filename": self.filename,
            "chunk_ids": list(self.chunk_ids),
            "info": self.info,
            "flag": self.flag,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'MultiChunkManifest':
        return cls(
            content_type=data.get("content_type"),
            encoding=data.get("encoding"),
            filename=data.get("filename"),
            chunk_ids=tuple(data.get("chunk_ids") or ()),
            info=data.get("info"),
            flag=data.get("flag"),
        )


@dataclass(frozen=True)
class ChunkPart:
    """BCHUNK protocol: one piece of a BCAT file."""
    payload: str


class _NotApplicable:
    """Marker for transactions that carry no recognized file record."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NotApplicable"

    def __bool__(self) -> bool:
        return False


NotApplicable = _NotApplicable()
