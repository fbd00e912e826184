"""CLI entry point."""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from common.logging_config import setup_logging
from cli.commands import (
    build_context,
    handle_content_type,
    handle_ingest,
    handle_pending,
    handle_verify,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="neonfs",
        description="Reconstruct and serve files embedded with the B/BCAT/BCHUNK protocols"
    )
    parser.add_argument("--data-path", help="Storage root (default: NEONFS_DATA_PATH)")
    parser.add_argument("--database-path", help="Metadata database (default: NEONFS_DATABASE_PATH)")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest = subparsers.add_parser("ingest", help="Replay a JSON-lines feed dump")
    ingest.add_argument("feed", type=Path)
    ingest.add_argument("--start-height", type=int, default=None)
    ingest.add_argument(
        "--no-retry-pending",
        dest="retry_pending",
        action="store_false",
        default=None,
        help="Only complete deferred manifests on re-delivery"
    )

    content_type = subparsers.add_parser("content-type", help="Show the content-type of a logical path")
    content_type.add_argument("path")

    subparsers.add_parser("pending", help="List manifests waiting for chunks")
    subparsers.add_parser("verify", help="Re-hash canonical files")
    subparsers.add_parser("serve", help="Run the HTTP file server")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for CLI."""
    args = build_parser().parse_args(argv)
    logger = setup_logging('cli', log_level='DEBUG' if args.debug else None)

    if args.command == "serve":
        from fileserver.main import main as serve
        serve()
        return 0

    try:
        context = build_context(args.data_path, args.database_path)
        if args.command == "ingest":
            message = handle_ingest(args.feed, context, args.start_height, args.retry_pending)
        elif args.command == "content-type":
            message = handle_content_type(args.path, context)
        elif args.command == "pending":
            message = handle_pending(context)
        else:
            message = handle_verify(context)
    except Exception as e:
        logger.error(f"CLI error: {e}", exc_info=True)
        raise

    print(message)
    return 0


if __name__ == "__main__":
    sys.exit(main())
