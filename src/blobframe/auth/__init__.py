"""Signing identity for remote writes.

The client never inspects a signer beyond asking for its address; stores
receive it on every write and decide how to apply it. For the OCI store the
credential becomes registry basic auth. The filesystem store only logs the
address.
"""

from dataclasses import dataclass, field
from typing import Optional, Protocol
import getpass
import os

from ..constants import ENV_PREFIX
from ..errors import AuthError


class Signer(Protocol):
    """Opaque credential injected into remote writes."""

    @property
    def address(self) -> str:
        """Public identity of the signer."""
        ...


@dataclass(frozen=True)
class Credential:
    """Username/secret pair used to authorize writes."""

    username: str
    secret: Optional[str] = field(default=None, repr=False)

    @property
    def address(self) -> str:
        return self.username


def load_credential(require_secret: bool = False) -> Credential:
    """Build a credential from BLOBFRAME_USERNAME / BLOBFRAME_SECRET.

    Args:
        require_secret: Fail when no secret is configured

    Returns:
        Credential; username defaults to the local user name

    Raises:
        AuthError: If require_secret is set and no secret is available
    """
    username = os.environ.get(f"{ENV_PREFIX}USERNAME") or getpass.getuser()
    secret = os.environ.get(f"{ENV_PREFIX}SECRET") or None

    if require_secret and not secret:
        raise AuthError(
            f"{ENV_PREFIX}SECRET environment variable is required for this store"
        )
    return Credential(username=username, secret=secret)


__all__ = ["Credential", "Signer", "load_credential"]
