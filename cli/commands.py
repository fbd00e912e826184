"""Command handler functions for CLI operations."""

import json
from pathlib import Path
from typing import Iterator, Optional, TextIO

from common.constants import CATEGORY_CANONICAL
from common.logging_config import get_logger
from fileserver import config
from store.context import StorageContext
from store.dedup import DedupLayer
from store.ingestion import BatchSummary, IngestionPipeline
from store.metadata_index import MetadataIndex

logger = get_logger(__name__)


def build_context(data_path: Optional[str] = None, database_path: Optional[str] = None) -> StorageContext:
    """
    Build and prepare a storage context, defaulting to the server configuration.
    """
    context = StorageContext.from_paths(
        data_path or config.DATA_PATH,
        database_path or config.DATABASE_PATH
    )
    context.ensure_layout()
    return context


def iter_feed_lines(stream: TextIO) -> Iterator[dict]:
    """
    Yield JSON objects from a JSON-lines feed dump, skipping blank and
    unparseable lines.
    """
    for line_number, line in enumerate(stream, start=1):
        line = line.strip()
        if not line:
            continue
        try:
            entry = json.loads(line)
        except json.JSONDecodeError as e:
            logger.warning(f"Skipping line {line_number}: {e}")
            continue
        if isinstance(entry, dict):
            yield entry
        else:
            logger.warning(f"Skipping line {line_number}: not an object")


def handle_ingest(
    feed_path: Path,
    context: StorageContext,
    start_height: Optional[int] = None,
    retry_pending: Optional[bool] = None
) -> str:
    """
    Replay a feed dump into the store.

    Each line is either a block (``{"height": ..., "tx": [...], "mem": [...]}``)
    or a single transaction, applied in file order.

    Args:
        feed_path: JSON-lines file
        context: Storage context to write into
        start_height: Ignore blocks below this height (default: server config)
        retry_pending: Use the pending-manifest table (default: server config)

    Returns:
        Summary message
    """
    pipeline = IngestionPipeline(
        context,
        retry_pending=config.RETRY_PENDING_MANIFESTS if retry_pending is None else retry_pending,
        start_height=config.START_HEIGHT if start_height is None else start_height
    )
    totals = BatchSummary()

    with open(feed_path, 'r') as stream:
        for entry in iter_feed_lines(stream):
            if "height" in entry and ("tx" in entry or "mem" in entry):
                block = pipeline.process_block(
                    int(entry["height"]), entry.get("tx") or [], entry.get("mem") or []
                )
                for outcome, count in block.counts.items():
                    totals.counts[outcome] += count
            else:
                totals.record(pipeline.process_mempool(entry))

    details = ", ".join(f"{name}={count}" for name, count in totals.counts.items() if count)
    return f"Processed {totals.total} transaction(s)" + (f": {details}" if details else "")


def handle_content_type(relative_path: str, context: StorageContext) -> str:
    """
    Look up the content-type recorded for a logical path.

    Returns:
        The content-type, or a message saying none is recorded
    """
    content_type = MetadataIndex(context.database_path).get(relative_path.strip("/"))
    if content_type is None:
        return f"No content-type recorded for {relative_path}"
    return content_type


def handle_pending(context: StorageContext) -> str:
    """List deferred BCAT manifests and the chunks they reference."""
    pipeline = IngestionPipeline(context)
    pending = pipeline.pending.list_all()
    if not pending:
        return "No pending manifests"

    lines = []
    for item in pending:
        missing = pipeline.materializer.missing_chunks(item.manifest)
        lines.append(
            f"{item.tx_id}: {len(missing)}/{len(item.manifest.chunk_ids)} chunks missing (since {item.created_at})"
        )
    return "\n".join(lines)


def handle_verify(context: StorageContext) -> str:
    """
    Re-hash every canonical file and report the ones whose content no longer
    matches their name.
    """
    dedup = DedupLayer(context)
    directory = context.category_dir(CATEGORY_CANONICAL)
    digests = sorted(p.name for p in directory.iterdir() if not p.name.startswith("."))

    corrupted = [digest for digest in digests if not dedup.verify(digest)]
    for digest in corrupted:
        logger.error(f"Checksum mismatch for c/{digest}")

    if corrupted:
        return f"{len(corrupted)} of {len(digests)} canonical file(s) corrupted:\n" + "\n".join(corrupted)
    return f"All {len(digests)} canonical file(s) verified"
