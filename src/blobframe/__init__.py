"""Self-describing blob storage with retried writes and local upload versioning."""

from .auth import Credential, Signer
from .client import BlobInfo, BlobStoreClient
from .constants import BLOBFRAME_VERSION
from .frame import FrameMetadata, MetadataFrame, decode_frame, encode_frame
from .ledger import VersionEntry, VersionLedger, increment_version
from .ops import UploadResult, download_file, upload_file
from .retry import RetryPolicy
from .storage import BlobStore, DurabilityHint, FilesystemBlobStore, make_blob_store

__version__ = BLOBFRAME_VERSION

__all__ = [
    "BlobInfo",
    "BlobStore",
    "BlobStoreClient",
    "Credential",
    "DurabilityHint",
    "FilesystemBlobStore",
    "FrameMetadata",
    "MetadataFrame",
    "RetryPolicy",
    "Signer",
    "UploadResult",
    "VersionEntry",
    "VersionLedger",
    "decode_frame",
    "download_file",
    "encode_frame",
    "increment_version",
    "make_blob_store",
    "upload_file",
]
