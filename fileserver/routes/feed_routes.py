"""Internal routes through which the chain crawler pushes transactions."""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException, status

from common.logging_config import get_logger
from fileserver.schemas.feed import BlockRequest, BlockResponse, MempoolResponse
from fileserver.service_locator import get_pipeline
from store.ingestion import IngestionPipeline

logger = get_logger(__name__)

router = APIRouter(prefix="/internal/feed", tags=["Feed"])


def require_pipeline(pipeline: IngestionPipeline = Depends(get_pipeline)) -> IngestionPipeline:
    """Dependency that fails with 503 until the pipeline is started"""
    if pipeline is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Ingestion pipeline not started"
        )
    return pipeline


@router.post("/mempool", response_model=MempoolResponse)
def receive_mempool_transaction(
    transaction: Dict[str, Any] = Body(...),
    pipeline: IngestionPipeline = Depends(require_pipeline)
):
    """
    Process one unconfirmed transaction from the live feed.

    Returns:
        - outcome: skipped | stored | repaired | unchanged | deferred | failed
    """
    outcome = pipeline.process_mempool(transaction)
    return MempoolResponse(outcome=outcome.value)


@router.post("/block", response_model=BlockResponse)
def receive_block(
    block: BlockRequest,
    pipeline: IngestionPipeline = Depends(require_pipeline)
):
    """
    Process a block: confirmed transactions first, then the pending ones
    delivered with it.

    Returns:
        - height: Block height
        - processed: Number of transactions looked at
        - counts: Transactions per outcome
    """
    summary = pipeline.process_block(block.height, block.tx, block.mem)
    return BlockResponse(height=block.height, processed=summary.total, counts=summary.counts)
