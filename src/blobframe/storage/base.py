"""Base protocol for remote blob store implementations."""

from dataclasses import dataclass
from typing import Protocol

from ..auth import Signer


@dataclass(frozen=True)
class DurabilityHint:
    """How long, and how removably, a blob should be kept.

    Attributes:
        epochs: Storage periods requested from the store
        deletable: Whether the blob may be deleted before it expires
    """

    epochs: int = 3
    deletable: bool = False


class BlobStore(Protocol):
    """
    Protocol for remote blob stores.

    A store keeps opaque bytes and hands back an opaque handle; the same
    handle later returns the same bytes. Stores make no promise about
    transient failures on write; callers wrap writes in a RetryPolicy.
    """

    def write(self, data: bytes, durability: DurabilityHint, signer: Signer) -> str:
        """
        Store bytes.

        Args:
            data: Blob content
            durability: Retention hint
            signer: Credential authorizing the write

        Returns:
            Handle for later retrieval
        """
        ...

    def read(self, handle: str) -> bytes:
        """
        Fetch bytes previously stored under handle.

        Args:
            handle: Handle returned by write

        Returns:
            Blob content

        Raises:
            NotFoundError: If the handle is unknown
        """
        ...
