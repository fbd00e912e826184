"""Tests for chunk storage and checksum helpers."""

import io

import pytest

from store.checksum_validator import (
    IncrementalChecksumCalculator,
    compute_checksum,
    compute_file_checksum,
    verify_file_checksum,
)
from store.chunk_storage import ChunkStore
from store.exceptions import InvalidPathError


@pytest.fixture
def chunk_store(context):
    return ChunkStore(context)


def test_put_writes_bytes_verbatim(chunk_store, context):
    assert chunk_store.put("c1", b"\x00payload\xff") is True

    assert chunk_store.exists("c1")
    assert (context.root / "chunks" / "c1").read_bytes() == b"\x00payload\xff"


def test_put_is_noop_when_chunk_exists(chunk_store, context):
    chunk_store.put("c1", b"first")
    assert chunk_store.put("c1", b"second") is False
    assert (context.root / "chunks" / "c1").read_bytes() == b"first"


def test_put_leaves_no_partial_files(chunk_store, context):
    chunk_store.put("c1", b"data")
    chunk_store.put("c1", b"data")
    assert [p.name for p in (context.root / "chunks").iterdir()] == ["c1"]


def test_stream_into_appends(chunk_store):
    chunk_store.put("c1", b"abc")
    chunk_store.put("c2", b"def")
    destination = io.BytesIO()

    assert chunk_store.stream_into("c2", destination) == 3
    assert chunk_store.stream_into("c1", destination) == 3
    assert destination.getvalue() == b"defabc"


def test_stream_into_missing_chunk_raises(chunk_store):
    with pytest.raises(FileNotFoundError):
        chunk_store.stream_into("missing", io.BytesIO())


def test_list_chunks(chunk_store):
    chunk_store.put("b", b"2")
    chunk_store.put("a", b"1")
    assert chunk_store.list_chunks() == ["a", "b"]


@pytest.mark.parametrize("chunk_id", ["", "../escape", "a/b", ".hidden"])
def test_rejects_unsafe_ids(chunk_store, chunk_id):
    with pytest.raises(InvalidPathError):
        chunk_store.exists(chunk_id)


def test_file_checksum_matches_in_memory_checksum(tmp_path):
    data = b"x" * (200 * 1024 + 7)
    path = tmp_path / "blob"
    path.write_bytes(data)

    assert compute_file_checksum(path, piece_size=4096) == compute_checksum(data)
    assert verify_file_checksum(path, compute_checksum(data))
    assert not verify_file_checksum(path, compute_checksum(b"other"))


def test_incremental_calculator_rejects_update_after_finalize():
    calculator = IncrementalChecksumCalculator()
    calculator.update(b"abc")
    assert calculator.finalize() == compute_checksum(b"abc")
    with pytest.raises(ValueError):
        calculator.update(b"more")
