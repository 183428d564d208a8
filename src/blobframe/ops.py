"""Upload/download orchestration.

upload_file ties the ledger to the client: resolve the next version, store
the file (retried by the client's policy), optionally read it back, and only
then record the version. A store that raises leaves the ledger untouched.
"""

from pathlib import Path
from typing import List, Optional, Union
import logging

from pydantic import BaseModel

from .client import BlobStoreClient
from .frame import FrameMetadata
from .ledger import VersionLedger
from .utils import humanize_size

logger = logging.getLogger(__name__)


class UploadResult(BaseModel):
    """Outcome of a versioned upload."""

    handle: str
    version: str
    identity: str
    original_size: int
    # None when verification was skipped
    retrieved_size: Optional[int] = None

    @property
    def verified(self) -> bool:
        return self.retrieved_size is not None and self.retrieved_size == self.original_size


def upload_file(
    client: BlobStoreClient,
    ledger: VersionLedger,
    path: Union[str, Path],
    manual_version: Optional[str] = None,
    description: Optional[str] = None,
    tags: Optional[List[str]] = None,
    verify: bool = True,
) -> UploadResult:
    """Store a file under the next version of its identity.

    The identity is the path string exactly as given; ``./a.tar`` and
    ``a.tar`` are distinct identities.

    Args:
        client: Blob store client
        ledger: Version ledger to read and update
        path: File to upload
        manual_version: Version to use instead of the auto-incremented one
        description: Optional free text stored in metadata
        tags: Optional labels stored in metadata
        verify: Read the blob back and compare payload size

    Returns:
        UploadResult with handle, version and sizes

    Raises:
        FileNotFoundError: If path is not a file
        InvalidVersionError: If the recorded version cannot be incremented
        RetryExhaustedError: If every write attempt failed (ledger unchanged)
        StoreError: If the verification read fails (ledger unchanged)
    """
    identity = str(path)
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"File not found: {path}")

    version = ledger.next_version(identity, manual_version)
    original_size = path.stat().st_size
    logger.info("Uploading %s (%s) as version %s", identity, humanize_size(original_size), version)

    handle = client.store_file(
        path,
        description=description,
        tags=tags,
        extra={"version": version},
    )

    retrieved_size = None
    if verify:
        logger.info("Verifying blob integrity...")
        retrieved_size = client.read_metadata(handle).payload_size
        if retrieved_size == original_size:
            logger.info("Blob verification successful - sizes match")
        else:
            logger.warning(
                "Size mismatch: original %d bytes, retrieved %d bytes",
                original_size, retrieved_size,
            )

    ledger.record(identity, version)

    return UploadResult(
        handle=handle,
        version=version,
        identity=identity,
        original_size=original_size,
        retrieved_size=retrieved_size,
    )


def download_file(
    client: BlobStoreClient,
    handle: str,
    output_path: Union[str, Path],
) -> FrameMetadata:
    """Retrieve a stored file to output_path and return its metadata."""
    return client.retrieve_file(handle, output_path)
