"""Shared pytest fixtures for all tests."""

import base64

import pytest

from common.constants import B_PROTOCOL_ID, BCAT_PROTOCOL_ID, BCHUNK_PROTOCOL_ID
from store.context import StorageContext
from store.ingestion import IngestionPipeline


@pytest.fixture
def context(tmp_path):
    """
    Create a storage context rooted in a temporary directory.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        StorageContext with its layout created
    """
    ctx = StorageContext.from_paths(tmp_path / 'data', tmp_path / 'metadata.db')
    ctx.ensure_layout()
    return ctx


@pytest.fixture
def pipeline(context):
    """Pipeline that only completes deferred manifests on re-delivery."""
    return IngestionPipeline(context, retry_pending=False)


@pytest.fixture
def retrying_pipeline(context):
    """Pipeline that re-attempts deferred manifests when chunks land."""
    return IngestionPipeline(context, retry_pending=True)


def _nulldata(fields: dict) -> dict:
    output = {"i": 0, "b0": {"op": 106}}
    output.update(fields)
    return output


@pytest.fixture
def b_tx():
    """Factory for B protocol transactions in the bitdb shape."""
    def build(tx_id, data, content_type="image/png", encoding="binary", filename="file.bin"):
        fields = {"s1": B_PROTOCOL_ID, "b2": base64.b64encode(data).decode('ascii')}
        if content_type is not None:
            fields["s3"] = content_type
        if encoding is not None:
            fields["s4"] = encoding
        if filename is not None:
            fields["s5"] = filename
        return {"tx": {"h": tx_id}, "out": [{"i": 0, "b0": {"op": 118}}, _nulldata(fields)]}
    return build


@pytest.fixture
def bcat_tx():
    """Factory for BCAT manifest transactions."""
    def build(tx_id, chunk_ids, content_type="video/mp4", encoding="binary", filename="movie.mp4"):
        fields = {
            "s1": BCAT_PROTOCOL_ID,
            "s2": "neon",
            "s3": content_type,
            "s4": encoding,
            "s5": filename,
            "s6": " ",
        }
        for offset, chunk_id in enumerate(chunk_ids):
            fields[f"h{7 + offset}"] = chunk_id
        return {"tx": {"h": tx_id}, "out": [_nulldata(fields)]}
    return build


@pytest.fixture
def chunk_tx():
    """Factory for BCHUNK transactions."""
    def build(tx_id, data):
        fields = {"s1": BCHUNK_PROTOCOL_ID, "lb2": base64.b64encode(data).decode('ascii')}
        return {"tx": {"h": tx_id}, "out": [_nulldata(fields)]}
    return build
