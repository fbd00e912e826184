"""Service locator for the components shared by the HTTP routes."""

from typing import Optional

from fileserver.serving import ServingAdapter
from store.ingestion import IngestionPipeline

_pipeline: Optional[IngestionPipeline] = None
_serving_adapter: Optional[ServingAdapter] = None


def set_pipeline(pipeline: IngestionPipeline):
    """Set global ingestion pipeline instance"""
    global _pipeline
    _pipeline = pipeline


def get_pipeline() -> Optional[IngestionPipeline]:
    """Get global ingestion pipeline instance"""
    return _pipeline


def set_serving_adapter(adapter: ServingAdapter):
    """Set global serving adapter instance"""
    global _serving_adapter
    _serving_adapter = adapter


def get_serving_adapter() -> Optional[ServingAdapter]:
    """Get global serving adapter instance"""
    return _serving_adapter
