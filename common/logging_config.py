import logging
import os
import re
import sys
from typing import Optional


class PayloadTruncationFilter(logging.Filter):
    """Filter to shorten long base64 blobs in log records.

    Only runs far longer than any storage key are touched: a txid or digest
    is 64 hex characters, so `c/<digest>` and absolute paths to stored
    files pass through unchanged.
    """

    KEEP_PREFIX = 64
    MIN_BLOB_LENGTH = 257
    BLOB_PATTERN = re.compile(r'(?<![\w/+=])[A-Za-z0-9+/=]{%d,}' % MIN_BLOB_LENGTH)

    def filter(self, record: logging.LogRecord) -> bool:
        """Truncate blobs in the log message and its arguments."""
        if isinstance(record.msg, str):
            record.msg = self._truncate(record.msg)

        if hasattr(record, 'args') and record.args:
            if isinstance(record.args, dict):
                record.args = {k: self._truncate_value(v) for k, v in record.args.items()}
            elif isinstance(record.args, tuple):
                record.args = tuple(self._truncate_value(arg) for arg in record.args)

        return True

    def _truncate(self, text: str) -> str:
        return self.BLOB_PATTERN.sub(
            lambda m: f"{m.group(0)[:self.KEEP_PREFIX]}...({len(m.group(0))} chars)",
            text
        )

    def _truncate_value(self, value):
        if isinstance(value, str):
            return self._truncate(value)
        return value


def setup_logging(
    component_name: str,
    log_level: Optional[str] = None
) -> logging.Logger:
    """
    Set up logging configuration for a component.

    Module loggers (``get_logger(__name__)``) propagate to the root logger,
    so the stdout handler is installed there once and shared by every
    component in the process.

    Args:
        component_name: Name of the component (e.g., 'fileserver', 'cli')
        log_level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to LOG_LEVEL env var or INFO

    Returns:
        Configured logger instance
    """
    if log_level is None:
        log_level = os.getenv('LOG_LEVEL', 'INFO')

    level = getattr(logging, log_level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)

    if not any(getattr(h, '_neonfs_handler', False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        handler.addFilter(PayloadTruncationFilter())
        handler._neonfs_handler = True
        root.addHandler(handler)

    logger = logging.getLogger(component_name)
    logger.setLevel(level)
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the given name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
