"""Tests for file materialization and content-addressed linking."""

import base64
import hashlib
import os

import pytest

from common.types import MultiChunkManifest, SingleFile
from store.chunk_storage import ChunkStore
from store.dedup import DedupLayer
from store.exceptions import ChunksMissingError
from store.materializer import FileMaterializer


@pytest.fixture
def chunk_store(context):
    return ChunkStore(context)


@pytest.fixture
def materializer(context, chunk_store):
    return FileMaterializer(context, chunk_store)


@pytest.fixture
def dedup(context):
    return DedupLayer(context)


def single(data, content_type="text/plain"):
    return SingleFile(content_type, None, None, base64.b64encode(data).decode())


def manifest(*chunk_ids):
    return MultiChunkManifest("video/mp4", None, None, tuple(chunk_ids))


class TestFileMaterializer:

    def test_single_writes_hidden_partial(self, materializer, context):
        partial = materializer.materialize_single("tx1", single(b"hello"))

        assert partial.read_bytes() == b"hello"
        assert partial.parent == context.root / "b"
        assert partial.name.startswith(".")
        assert not (context.root / "b" / "tx1").exists()

    def test_single_noop_when_target_exists(self, materializer, context):
        (context.root / "b" / "tx1").write_bytes(b"old")
        assert materializer.materialize_single("tx1", single(b"new")) is None
        assert (context.root / "b" / "tx1").read_bytes() == b"old"

    def test_manifest_concatenates_in_manifest_order(self, materializer, chunk_store):
        chunk_store.put("c2", b"world")
        chunk_store.put("c1", b"hello ")

        partial = materializer.materialize_manifest("m1", manifest("c1", "c2"))

        assert partial.read_bytes() == b"hello world"

    def test_manifest_may_repeat_a_chunk(self, materializer, chunk_store):
        chunk_store.put("c1", b"ab")
        partial = materializer.materialize_manifest("m1", manifest("c1", "c1"))
        assert partial.read_bytes() == b"abab"

    def test_manifest_missing_chunks_raises(self, materializer, chunk_store, context):
        chunk_store.put("c1", b"a")

        with pytest.raises(ChunksMissingError) as exc_info:
            materializer.materialize_manifest("m1", manifest("c1", "c2", "c3"))

        assert exc_info.value.missing == ["c2", "c3"]
        assert list((context.root / "bcat").iterdir()) == []

    def test_zero_chunk_manifest(self, materializer, context):
        assert materializer.materialize_manifest("m1", manifest()) is None
        assert list((context.root / "bcat").iterdir()) == []


class TestDedupLayer:

    def test_promote_creates_canonical_and_link(self, materializer, dedup, context):
        partial = materializer.materialize_single("tx1", single(b"0123456789"))
        logical = context.root / "b" / "tx1"

        digest = dedup.promote(partial, logical)

        canonical = context.root / "c" / digest
        assert digest == hashlib.sha256(b"0123456789").hexdigest()
        assert os.path.samefile(logical, canonical)
        assert not partial.exists()
        assert logical.stat().st_nlink == 2

    def test_promote_reuses_existing_canonical(self, materializer, dedup, context):
        first = dedup.promote(materializer.materialize_single("tx1", single(b"same")), context.root / "b" / "tx1")
        second = dedup.promote(materializer.materialize_single("tx2", single(b"same")), context.root / "b" / "tx2")

        assert first == second
        assert len(list((context.root / "c").iterdir())) == 1
        assert os.path.samefile(context.root / "b" / "tx1", context.root / "b" / "tx2")
        assert (context.root / "c" / first).stat().st_nlink == 3
        assert sorted(p.name for p in (context.root / "b").iterdir()) == ["tx1", "tx2"]

    def test_ensure_linked_recreates_canonical(self, dedup, context):
        logical = context.root / "b" / "tx1"
        logical.write_bytes(b"orphan")

        digest = dedup.ensure_linked(logical)

        assert os.path.samefile(logical, context.root / "c" / digest)

    def test_ensure_linked_replaces_separate_copy(self, materializer, dedup, context):
        digest = dedup.promote(materializer.materialize_single("tx1", single(b"shared")), context.root / "b" / "tx1")
        copy = context.root / "b" / "tx2"
        copy.write_bytes(b"shared")
        assert not dedup.is_linked(copy)

        assert dedup.ensure_linked(copy) == digest

        assert os.path.samefile(copy, context.root / "c" / digest)
        assert copy.read_bytes() == b"shared"
        assert [p.name for p in (context.root / "b").iterdir() if p.name.startswith(".")] == []

    def test_ensure_linked_is_idempotent(self, materializer, dedup, context):
        logical = context.root / "b" / "tx1"
        digest = dedup.promote(materializer.materialize_single("tx1", single(b"x")), logical)
        inode = logical.stat().st_ino

        assert dedup.ensure_linked(logical) == digest
        assert logical.stat().st_ino == inode

    def test_verify(self, materializer, dedup, context):
        digest = dedup.promote(materializer.materialize_single("tx1", single(b"intact")), context.root / "b" / "tx1")
        assert dedup.verify(digest)
        assert not dedup.verify("0" * 64)
