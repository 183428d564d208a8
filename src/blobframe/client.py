"""Blob store client: framing plus retried writes against a remote store.

Writes go through a RetryPolicy because the remote store is expected to fail
transiently. Reads are a single attempt: an unknown handle fails the same way
every time, and a malformed frame never becomes valid on retry.
"""

from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union
import json
import logging

from pydantic import BaseModel, Field

from .auth import Signer
from .errors import EncodingError, FrameFormatError
from .frame import FrameMetadata, MetadataFrame, encode_frame
from .retry import RetryPolicy
from .storage.base import BlobStore, DurabilityHint
from .utils import atomic_write_bytes, get_iso_timestamp, humanize_size

logger = logging.getLogger(__name__)


class BlobInfo(BaseModel):
    """Metadata and sizes of a stored frame, without its payload."""

    handle: str
    metadata: Dict[str, Any] = Field(default_factory=dict)
    blob_size: int
    payload_size: int


class BlobStoreClient:
    """Store and retrieve framed records and files.

    Usage:
        client = BlobStoreClient(FilesystemBlobStore(tmp), Credential("me"))
        handle = client.store_record({"message": "hi"}, description="test")
        assert client.retrieve_record(handle) == {"message": "hi"}
    """

    def __init__(
        self,
        store: BlobStore,
        signer: Signer,
        retry_policy: Optional[RetryPolicy] = None,
        durability: Optional[DurabilityHint] = None,
    ):
        """
        Args:
            store: Remote blob store
            signer: Credential passed to every write
            retry_policy: Policy wrapping writes (default: 3 attempts, 3s apart)
            durability: Retention hint passed to every write
        """
        self.store = store
        self.signer = signer
        self.retry_policy = retry_policy or RetryPolicy()
        self.durability = durability or DurabilityHint()

    # ---- internal helpers ---------------------------------------------------

    def _write(self, blob: bytes, description: str) -> str:
        return self.retry_policy.execute(
            lambda: self.store.write(blob, self.durability, self.signer),
            description=description,
        )

    def _read_frame(self, handle: str) -> MetadataFrame:
        blob = self.store.read(handle)
        return MetadataFrame.decode(blob)

    # ---- records ------------------------------------------------------------

    def store_record(
        self,
        content: Any,
        description: Optional[str] = None,
        tags: Optional[List[str]] = None,
    ) -> str:
        """Store a JSON-serializable value with timestamp/description/tags.

        Returns:
            Handle of the stored blob

        Raises:
            EncodingError: If content or metadata is not JSON-serializable
            RetryExhaustedError: If every write attempt failed
        """
        try:
            payload = json.dumps(content, ensure_ascii=False, allow_nan=False).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise EncodingError(f"Record content is not JSON-serializable: {e}") from e

        metadata = FrameMetadata(
            timestamp=get_iso_timestamp(),
            description=description,
            tags=tags,
        )
        blob = encode_frame(metadata, payload)

        logger.info("Storing record (%d bytes): %s", len(blob), description or "No description")
        handle = self._write(blob, "store record")
        logger.info("Record stored as %s", handle)
        return handle

    def retrieve_record(self, handle: str) -> Any:
        """Fetch a record stored by store_record and return its content.

        Raises:
            NotFoundError: If the handle is unknown
            FrameFormatError: If the blob is not a frame or the payload is not JSON
            MetadataParseError: If the frame metadata is malformed
        """
        frame = self._read_frame(handle)

        try:
            content = json.loads(frame.payload.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise FrameFormatError(f"Record payload of {handle} is not valid JSON: {e}") from e

        meta = frame.metadata
        logger.info(
            "Retrieved record %s (timestamp=%s, description=%s, tags=%s)",
            handle, meta.get("timestamp"), meta.get("description"), meta.get("tags") or [],
        )
        return content

    # ---- files --------------------------------------------------------------

    def store_file(
        self,
        path: Union[str, Path],
        description: Optional[str] = None,
        tags: Optional[List[str]] = None,
        extra: Optional[Mapping[str, Any]] = None,
    ) -> str:
        """Store a file's bytes with its name and timestamp/description/tags.

        The whole file is read into memory before framing.

        Args:
            path: File to store
            description: Optional free text
            tags: Optional labels
            extra: Additional metadata keys (known fields take precedence)

        Returns:
            Handle of the stored blob

        Raises:
            FileNotFoundError: If path is not a file
            EncodingError: If extra metadata is not JSON-serializable
            RetryExhaustedError: If every write attempt failed
        """
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"File not found: {path}")

        data = path.read_bytes()
        metadata = dict(extra or {})
        metadata.update(
            FrameMetadata(
                file_name=path.name,
                timestamp=get_iso_timestamp(),
                description=description,
                tags=tags,
            ).to_mapping()
        )
        blob = encode_frame(metadata, data)

        logger.info("Storing file %s (%s)", path, humanize_size(len(data)))
        handle = self._write(blob, f"store file {path.name}")
        logger.info("File stored as %s", handle)
        return handle

    def retrieve_file(self, handle: str, output_path: Union[str, Path]) -> FrameMetadata:
        """Write the payload of a stored file to output_path.

        The payload is written byte-for-byte, atomically.

        Returns:
            Recovered metadata (file name, timestamp, description, tags, extras)

        Raises:
            NotFoundError: If the handle is unknown
            FrameFormatError: If the blob lacks the frame separator
            MetadataParseError: If the frame metadata is not a JSON object
        """
        frame = self._read_frame(handle)
        metadata = frame.file_metadata

        atomic_write_bytes(Path(output_path), frame.payload)
        logger.info(
            "File %s retrieved and saved to %s (%s)",
            metadata.file_name or handle, output_path, humanize_size(len(frame.payload)),
        )
        return metadata

    def read_metadata(self, handle: str) -> BlobInfo:
        """Inspect a stored frame without writing its payload anywhere."""
        blob = self.store.read(handle)
        frame = MetadataFrame.decode(blob)
        return BlobInfo(
            handle=handle,
            metadata=frame.metadata,
            blob_size=len(blob),
            payload_size=len(frame.payload),
        )

    # ---- identity and listing -----------------------------------------------

    def get_address(self) -> str:
        """Address of the signer used for writes (no remote call)."""
        return self.signer.address

    def list_recent_blobs(self, limit: int = 10) -> List[str]:
        """Not supported: the remote store has no enumeration primitive.

        Always returns an empty list. Version history for uploaded files is
        only available from the local VersionLedger.
        """
        logger.warning(
            "Listing blobs is not supported by the remote store (requested %d); "
            "only the local version ledger tracks upload history",
            limit,
        )
        return []
