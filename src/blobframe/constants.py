"""Constants for blobframe."""

# Project marker directory
BLOBFRAME_DIR = ".blobframe"

# Files inside BLOBFRAME_DIR
CONFIG_FILE = "config.yaml"
LEDGER_FILE = "versions.json"
BLOBS_DIR = "blobs"

# Frame separator between JSON metadata and raw payload.
# Every writer and reader must agree on this literal; changing it orphans stored blobs.
FRAME_SEPARATOR = b"\n---WALRUS_META_SEPARATOR---\n"

# Media type used when a frame is uploaded as an OCI blob
FRAME_MEDIA_TYPE = "application/vnd.blobframe.frame.v1"

# Seed version for a logical file that has never been uploaded
SEED_VERSION = "0.1.0"

# Environment variable prefix for configuration overrides
ENV_PREFIX = "BLOBFRAME_"

# Version
BLOBFRAME_VERSION = "0.1.0"
