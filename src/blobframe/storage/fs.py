"""Filesystem blob store implementation."""

from pathlib import Path
import logging
import re

from ..auth import Signer
from ..errors import NotFoundError
from ..utils import atomic_write_bytes, compute_digest
from .base import DurabilityHint

logger = logging.getLogger(__name__)

_HANDLE = re.compile(r"^sha256:([0-9a-f]{64})$")


class FilesystemBlobStore:
    """
    Local directory store, content-addressed by SHA256.

    Blobs are stored with sharding: base_dir/ab/cd/<full_sha256>. Handles
    are ``sha256:<hex>`` digests of the blob. Used for tests and for
    single-machine setups; durability hints are accepted and ignored.
    """

    def __init__(self, base_dir: Path):
        """
        Initialize filesystem store.

        Args:
            base_dir: Base directory for blob storage
        """
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, handle: str) -> Path:
        """
        Resolve a handle to its on-disk location.

        Raises:
            NotFoundError: If handle is not a sha256 digest (cannot exist here)
        """
        match = _HANDLE.fullmatch(handle)
        if not match:
            raise NotFoundError(handle)
        hex_part = match.group(1)
        return self.base_dir / hex_part[:2] / hex_part[2:4] / hex_part

    def write(self, data: bytes, durability: DurabilityHint, signer: Signer) -> str:
        """
        Write bytes under their digest (idempotent).

        Returns:
            ``sha256:<hex>`` handle
        """
        handle = compute_digest(data)
        if self.exists(handle):
            logger.debug("Blob already present: %s", handle)
            return handle

        atomic_write_bytes(self.path_for(handle), data)
        logger.debug(
            "Stored %d bytes as %s for %s (epochs=%d, deletable=%s)",
            len(data), handle, signer.address, durability.epochs, durability.deletable,
        )
        return handle

    def read(self, handle: str) -> bytes:
        """
        Read bytes for handle.

        Raises:
            NotFoundError: If no blob is stored under handle
        """
        src = self.path_for(handle)
        if not src.exists():
            raise NotFoundError(handle)
        return src.read_bytes()

    def exists(self, handle: str) -> bool:
        """Check whether a blob is stored under handle."""
        try:
            return self.path_for(handle).exists()
        except NotFoundError:
            return False
