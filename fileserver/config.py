"""Configuration settings for the file server."""

import os

from common.constants import DEFAULT_DATA_PATH, DEFAULT_DATABASE_PATH, DEFAULT_PORT, DEFAULT_START_HEIGHT


DATA_PATH = os.environ.get("NEONFS_DATA_PATH", DEFAULT_DATA_PATH)

DATABASE_PATH = os.environ.get("NEONFS_DATABASE_PATH", DEFAULT_DATABASE_PATH)

SERVER_HOST = os.environ.get("NEONFS_HOST", "0.0.0.0")

SERVER_PORT = int(os.environ.get("NEONFS_PORT", str(DEFAULT_PORT)))

START_HEIGHT = int(os.environ.get("NEONFS_START_HEIGHT", str(DEFAULT_START_HEIGHT)))

RETRY_PENDING_MANIFESTS = os.environ.get("NEONFS_RETRY_PENDING", "true").lower() in ("1", "true", "yes")
