"""Tests for decoding B / BCAT / BCHUNK records."""

import base64

import pytest

from common.constants import B_PROTOCOL_ID, BCAT_PROTOCOL_ID, BCHUNK_PROTOCOL_ID
from common.protocol import decode_payload, decode_transaction
from common.types import (
    ChunkPart,
    MultiChunkManifest,
    NotApplicable,
    SingleFile,
    TransactionRecord,
)


def record(fields, tx_id="tx1"):
    output = {"b0": {"op": 106}}
    output.update(fields)
    return TransactionRecord.from_dict({"tx": {"h": tx_id}, "out": [output]})


class TestTransactionRecord:
    """Test building records from feed entries."""

    def test_bitdb_shape(self):
        rec = TransactionRecord.from_dict({"tx": {"h": "abc"}, "out": [{"b0": {"op": 106}}]})
        assert rec.tx_id == "abc"
        assert len(rec.outputs) == 1

    def test_flat_shape(self):
        rec = TransactionRecord.from_dict({"transactionId": "abc", "outputs": []})
        assert rec.tx_id == "abc"
        assert rec.outputs == ()

    def test_missing_id_raises(self):
        with pytest.raises(ValueError):
            TransactionRecord.from_dict({"out": []})


class TestDecodeTransaction:
    """Test protocol dispatch and field offsets."""

    def test_single_file(self, b_tx):
        decoded = decode_transaction(TransactionRecord.from_dict(b_tx("tx1", b"hello", "text/plain")))

        assert isinstance(decoded, SingleFile)
        assert decoded.content_type == "text/plain"
        assert decoded.encoding == "binary"
        assert decoded.filename == "file.bin"
        assert decode_payload(decoded.payload) == b"hello"

    def test_single_file_prefers_large_payload_field(self):
        decoded = decode_transaction(record({
            "s1": B_PROTOCOL_ID,
            "lb2": base64.b64encode(b"large").decode(),
            "b2": base64.b64encode(b"small").decode(),
        }))
        assert decode_payload(decoded.payload) == b"large"

    def test_single_file_without_payload_is_empty(self):
        decoded = decode_transaction(record({"s1": B_PROTOCOL_ID, "s3": "text/plain"}))
        assert isinstance(decoded, SingleFile)
        assert decode_payload(decoded.payload) == b""

    def test_manifest_reads_contiguous_chunk_ids(self, bcat_tx):
        tx = bcat_tx("m1", ["c1", "c2", "c3"])
        tx["out"][0]["h11"] = "after-gap"

        decoded = decode_transaction(TransactionRecord.from_dict(tx))

        assert isinstance(decoded, MultiChunkManifest)
        assert decoded.chunk_ids == ("c1", "c2", "c3")
        assert decoded.content_type == "video/mp4"
        assert decoded.filename == "movie.mp4"
        assert decoded.info == "neon"

    def test_manifest_with_zero_chunks(self, bcat_tx):
        decoded = decode_transaction(TransactionRecord.from_dict(bcat_tx("m1", [])))
        assert isinstance(decoded, MultiChunkManifest)
        assert decoded.chunk_ids == ()

    def test_chunk(self, chunk_tx):
        decoded = decode_transaction(TransactionRecord.from_dict(chunk_tx("c1", b"\x00\x01")))
        assert isinstance(decoded, ChunkPart)
        assert decode_payload(decoded.payload) == b"\x00\x01"

    def test_no_nulldata_output(self):
        rec = TransactionRecord.from_dict({"tx": {"h": "tx1"}, "out": [{"b0": {"op": 118}, "s1": B_PROTOCOL_ID}]})
        assert decode_transaction(rec) is NotApplicable

    def test_unknown_protocol(self):
        assert decode_transaction(record({"s1": "1SomeOtherProtocol"})) is NotApplicable

    def test_first_nulldata_output_wins(self, chunk_tx):
        tx = chunk_tx("c1", b"data")
        tx["out"].insert(0, {"b0": {"op": 106}, "s1": "unrelated"})
        assert decode_transaction(TransactionRecord.from_dict(tx)) is NotApplicable


class TestMalformedRecords:
    """Malformed input decodes to NotApplicable instead of raising."""

    def test_payload_not_text(self):
        assert decode_transaction(record({"s1": B_PROTOCOL_ID, "b2": 12345})) is NotApplicable

    def test_payload_not_base64(self):
        assert decode_transaction(record({"s1": BCHUNK_PROTOCOL_ID, "b2": "abc"})) is NotApplicable

    def test_chunk_id_not_text(self):
        assert decode_transaction(record({"s1": BCAT_PROTOCOL_ID, "h7": ["c1"]})) is NotApplicable

    def test_content_type_not_text(self):
        assert decode_transaction(record({"s1": B_PROTOCOL_ID, "s3": {"x": 1}})) is NotApplicable

    def test_output_not_a_mapping(self):
        rec = TransactionRecord(tx_id="tx1", outputs=("garbage", None))
        assert decode_transaction(rec) is NotApplicable

    def test_not_applicable_is_falsy(self):
        assert not NotApplicable
