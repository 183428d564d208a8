"""Storage package for remote blob store support."""

from .base import BlobStore, DurabilityHint
from .factory import make_blob_store
from .fs import FilesystemBlobStore

__all__ = ["BlobStore", "DurabilityHint", "FilesystemBlobStore", "make_blob_store"]
