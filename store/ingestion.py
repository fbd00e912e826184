"""Orchestrates decode -> materialize -> dedup -> index for each fed transaction."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from common.constants import CATEGORY_B, CATEGORY_BCAT, CATEGORY_CANONICAL
from common.logging_config import get_logger
from common.protocol import decode_payload, decode_transaction
from common.types import ChunkPart, MultiChunkManifest, SingleFile, TransactionRecord
from store.chunk_storage import ChunkStore
from store.context import StorageContext
from store.dedup import DedupLayer
from store.exceptions import ChunksMissingError
from store.materializer import FileMaterializer
from store.metadata_index import MetadataIndex
from store.pending_manifests import PendingManifestRepository

logger = get_logger(__name__)

FeedTransaction = Union[TransactionRecord, Mapping[str, Any]]


class IngestOutcome(str, Enum):
    SKIPPED = "skipped"
    STORED = "stored"
    REPAIRED = "repaired"
    UNCHANGED = "unchanged"
    DEFERRED = "deferred"
    FAILED = "failed"


@dataclass
class BatchSummary:
    """Per-outcome counts for one delivery (a block or a mempool transaction)."""
    height: Optional[int] = None
    counts: Dict[str, int] = field(default_factory=lambda: {o.value: 0 for o in IngestOutcome})

    def record(self, outcome: IngestOutcome) -> None:
        self.counts[outcome.value] += 1

    @property
    def total(self) -> int:
        return sum(self.counts.values())


class IngestionPipeline:
    """
    Applies transactions from the upstream feed to the store.

    Every step checks for its own result before acting, so delivering the
    same transaction any number of times, on either channel and in any
    order relative to its siblings, converges on the same stored state.
    """

    def __init__(
        self,
        context: StorageContext,
        metadata_index: Optional[MetadataIndex] = None,
        retry_pending: bool = True,
        start_height: int = 0
    ):
        """
        Initialize pipeline and its storage components.

        Args:
            context: Storage root and metadata database location
            metadata_index: Index to record content types in (default: one on context.database_path)
            retry_pending: Re-attempt deferred manifests as soon as their chunks land
            start_height: Blocks below this height are ignored
        """
        self.context = context
        self.metadata_index = metadata_index or MetadataIndex(context.database_path)
        self.chunk_store = ChunkStore(context)
        self.materializer = FileMaterializer(context, self.chunk_store)
        self.dedup = DedupLayer(context)
        self.pending = PendingManifestRepository(context.database_path)
        self.retry_pending = retry_pending
        self.start_height = start_height

    def process_mempool(self, transaction: FeedTransaction) -> IngestOutcome:
        """Live-feed entry point for one unconfirmed transaction."""
        return self.process_transaction(transaction)

    def process_block(
        self,
        height: int,
        confirmed: Iterable[FeedTransaction],
        pending: Iterable[FeedTransaction] = ()
    ) -> BatchSummary:
        """
        Process a block delivery: its confirmed transactions, then the
        still-unconfirmed ones delivered with it.

        Args:
            height: Block height
            confirmed: Transactions mined in the block
            pending: Mempool transactions delivered alongside the block

        Returns:
            BatchSummary with one count per transaction
        """
        summary = BatchSummary(height=height)
        if height < self.start_height:
            logger.debug(f"Ignoring block {height} below start height {self.start_height}")
            return summary

        logger.info(f"## onblock block height = {height}")
        for transaction in list(confirmed) + list(pending):
            summary.record(self.process_transaction(transaction))

        logger.info(f"Block {height} done: {summary.counts}")
        return summary

    def process_transaction(self, transaction: FeedTransaction) -> IngestOutcome:
        """
        Process one transaction. Never raises.

        Args:
            transaction: TransactionRecord or raw feed dict

        Returns:
            IngestOutcome describing what happened
        """
        if not isinstance(transaction, TransactionRecord):
            try:
                transaction = TransactionRecord.from_dict(transaction)
            except (ValueError, TypeError, AttributeError) as e:
                logger.debug(f"Skipping unreadable feed entry: {e}")
                return IngestOutcome.SKIPPED

        try:
            return self._dispatch(transaction)
        except Exception as e:
            logger.error(f"Failed to process tx {transaction.tx_id}: {e}", exc_info=True)
            return IngestOutcome.FAILED

    def _dispatch(self, transaction: TransactionRecord) -> IngestOutcome:
        record = decode_transaction(transaction)
        tx_id = transaction.tx_id

        if isinstance(record, SingleFile):
            logger.info(f"Processing B: {tx_id}")
            return self.ingest_single(tx_id, record)
        if isinstance(record, MultiChunkManifest):
            logger.info(f"Processing BCAT: {tx_id}")
            return self.ingest_manifest(tx_id, record)
        if isinstance(record, ChunkPart):
            logger.info(f"Processing Chunk: {tx_id}")
            return self.ingest_chunk(tx_id, record)
        return IngestOutcome.SKIPPED

    def ingest_single(self, tx_id: str, record: SingleFile) -> IngestOutcome:
        logical = self.context.logical_path(CATEGORY_B, tx_id)
        partial = self.materializer.materialize_single(tx_id, record)
        if partial is None:
            return self._complete_existing(CATEGORY_B, tx_id, record.content_type)

        digest = self.dedup.promote(partial, logical)
        self._record_metadata(CATEGORY_B, tx_id, digest, record.content_type)
        return IngestOutcome.STORED

    def ingest_manifest(self, tx_id: str, record: MultiChunkManifest) -> IngestOutcome:
        """
        Materialize a BCAT file, or defer it until its chunks are stored.

        States: unseen -> awaiting-chunks -> materialized -> deduped -> indexed.
        """
        if not record.chunk_ids:
            logger.info(f"Skipping BCAT {tx_id}: manifest lists no chunks")
            return IngestOutcome.SKIPPED

        logical = self.context.logical_path(CATEGORY_BCAT, tx_id)
        try:
            partial = self.materializer.materialize_manifest(tx_id, record)
        except ChunksMissingError as e:
            logger.info(f"Deferring BCAT {tx_id}: {len(e.missing)} of {len(record.chunk_ids)} chunks missing")
            if self.retry_pending:
                self.pending.add(tx_id, record, e.missing)
            return IngestOutcome.DEFERRED

        if partial is None:
            outcome = self._complete_existing(CATEGORY_BCAT, tx_id, record.content_type)
        else:
            digest = self.dedup.promote(partial, logical)
            self._record_metadata(CATEGORY_BCAT, tx_id, digest, record.content_type)
            outcome = IngestOutcome.STORED

        if self.retry_pending:
            self.pending.remove(tx_id)
        return outcome

    def ingest_chunk(self, chunk_id: str, record: ChunkPart) -> IngestOutcome:
        stored = self.chunk_store.put(chunk_id, decode_payload(record.payload))
        if self.retry_pending:
            self._retry_manifests_waiting_on(chunk_id)
        return IngestOutcome.STORED if stored else IngestOutcome.UNCHANGED

    def retry_all_pending(self) -> BatchSummary:
        """
        Re-attempt every deferred manifest (e.g. after a restart).
        """
        summary = BatchSummary()
        for pending in self.pending.list_all():
            summary.record(self._retry_manifest(pending.tx_id, pending.manifest))
        return summary

    def _retry_manifests_waiting_on(self, chunk_id: str) -> None:
        for pending in self.pending.waiting_on(chunk_id):
            outcome = self._retry_manifest(pending.tx_id, pending.manifest)
            logger.debug(f"Retried BCAT {pending.tx_id} after chunk {chunk_id}: {outcome.value}")

    def _retry_manifest(self, tx_id: str, manifest: MultiChunkManifest) -> IngestOutcome:
        try:
            return self.ingest_manifest(tx_id, manifest)
        except Exception as e:
            logger.error(f"Failed to retry BCAT {tx_id}: {e}", exc_info=True)
            return IngestOutcome.FAILED

    def _complete_existing(self, category: str, tx_id: str, content_type: Optional[str]) -> IngestOutcome:
        """
        Finish whatever a previous run left undone for an existing file.

        The file check and the metadata check are independent: a crash after
        the file was written but before it was linked or indexed is repaired
        here instead of being skipped forever.
        """
        logical = self.context.logical_path(category, tx_id)
        needs_link = not self.dedup.is_linked(logical)
        needs_metadata = bool(content_type) and self.metadata_index.get(
            self.context.relative_key(category, tx_id)
        ) is None

        if not needs_link and not needs_metadata:
            return IngestOutcome.UNCHANGED

        digest = self.dedup.ensure_linked(logical)
        self._record_metadata(category, tx_id, digest, content_type)
        logger.info(f"Completed {category}/{tx_id} on replay")
        return IngestOutcome.REPAIRED

    def _record_metadata(self, category: str, tx_id: str, digest: str, content_type: Optional[str]) -> None:
        # Canonical entry first: a logical entry implies its canonical one exists.
        self.metadata_index.put_if_absent(
            self.context.relative_key(CATEGORY_CANONICAL, digest), content_type
        )
        self.metadata_index.put_if_absent(
            self.context.relative_key(category, tx_id), content_type
        )
