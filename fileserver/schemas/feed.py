"""Pydantic schemas for feed intake endpoints."""

from typing import Any, Dict, List
from pydantic import BaseModel, Field


class BlockRequest(BaseModel):
    """
    Request model for a block delivery.

    Transactions are kept as raw feed entries (bitdb ``tx.h``/``out`` or flat
    ``transactionId``/``outputs``) and only read by the ingestion pipeline,
    so one unreadable entry is skipped without rejecting the rest of the block.
    """
    height: int
    tx: List[Any] = Field(default_factory=list)
    mem: List[Any] = Field(default_factory=list)


class MempoolResponse(BaseModel):
    """Response model for a single live transaction."""
    outcome: str


class BlockResponse(BaseModel):
    """Response model for a block delivery."""
    height: int
    processed: int
    counts: Dict[str, int]
