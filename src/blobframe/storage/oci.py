"""OCI registry blob store using oras-py.

Each frame is uploaded as a single content-addressed blob into a registry
repository; the blob digest is the handle. Reads go through the registry's
blob endpoint. No manifest is pushed; the handle alone locates the blob.
"""

from pathlib import Path
from typing import Optional, Set
import logging
import os
import tempfile

import oras.client
import requests
from oras.container import Container

from ..auth import Signer
from ..constants import ENV_PREFIX, FRAME_MEDIA_TYPE
from ..errors import AuthError, NetworkError, NotFoundError, StoreError
from ..utils import compute_digest
from .base import DurabilityHint

logger = logging.getLogger(__name__)


def _is_localhost(registry_host: str) -> bool:
    return registry_host.startswith("localhost") or registry_host.startswith("127.0.0.1")


def _env_insecure() -> bool:
    return os.environ.get(f"{ENV_PREFIX}INSECURE", "false").lower() in ("true", "1", "yes")


class OciBlobStore:
    """Blob store backed by an OCI registry repository."""

    def __init__(self, registry_ref: str, insecure: Optional[bool] = None, client=None):
        """Initialize ORAS client for a repository.

        Args:
            registry_ref: Repository reference (e.g., "localhost:5555/frames")
            insecure: Whether to use plain HTTP. If None, auto-detects localhost
                and otherwise reads BLOBFRAME_INSECURE
            client: Optional pre-built OrasClient (tests)
        """
        self.registry_ref = registry_ref
        self.registry_host = registry_ref.split("/")[0]

        if insecure is None:
            insecure = True if _is_localhost(self.registry_host) else _env_insecure()
        self.insecure = insecure

        self.client = client or oras.client.OrasClient(insecure=insecure)
        self._authenticated: Set[str] = set()

    def _container(self) -> Container:
        return Container(self.registry_ref)

    def _ensure_authenticated(self, signer: Signer) -> None:
        """Apply the signer's credential as registry basic auth (once per address)."""
        secret = getattr(signer, "secret", None)
        if not secret:
            # Anonymous push may still be accepted by local registries
            return
        if signer.address in self._authenticated:
            return

        self.client.auth.set_basic_auth(signer.address, secret)
        self._authenticated.add(signer.address)
        logger.debug("Using basic authentication for %s as %s", self.registry_host, signer.address)

    def _check_response(self, resp, handle: str, action: str) -> None:
        """Map registry HTTP status to typed errors."""
        status = resp.status_code
        if status in (200, 201, 202):
            return
        if status == 404:
            raise NotFoundError(handle)
        if status in (401, 403):
            raise AuthError(f"Authentication failed for {action} on {self.registry_ref}")
        if status >= 500:
            raise NetworkError(f"Registry error {status} during {action}: {self.registry_ref}")
        raise StoreError(f"Registry returned {status} during {action}: {self.registry_ref}")

    def write(self, data: bytes, durability: DurabilityHint, signer: Signer) -> str:
        """Upload bytes as a blob and return its digest.

        Registries keep blobs until garbage collected, so the durability
        hint is logged but not enforced.
        """
        self._ensure_authenticated(signer)

        digest = compute_digest(data)
        layer = {"mediaType": FRAME_MEDIA_TYPE, "digest": digest, "size": len(data)}
        logger.debug(
            "Uploading %d bytes to %s (epochs=%d, deletable=%s)",
            len(data), self.registry_ref, durability.epochs, durability.deletable,
        )

        with tempfile.NamedTemporaryFile(suffix=".frame", delete=False) as tmp:
            tmp.write(data)
            tmp.flush()
            tmp_path = tmp.name

        try:
            resp = self.client.upload_blob(tmp_path, self._container(), layer)
        except requests.exceptions.ConnectionError as e:
            raise NetworkError(f"Cannot connect to registry: {e}") from e
        finally:
            Path(tmp_path).unlink(missing_ok=True)

        self._check_response(resp, digest, "upload")
        return digest

    def read(self, handle: str) -> bytes:
        """Download blob bytes by digest.

        Raises:
            NotFoundError: If the registry does not know the digest
        """
        if not handle.startswith("sha256:"):
            raise NotFoundError(handle)

        try:
            resp = self.client.get_blob(self._container(), handle)
        except requests.exceptions.ConnectionError as e:
            raise NetworkError(f"Cannot connect to registry: {e}") from e
        except requests.exceptions.HTTPError as e:
            if e.response is not None:
                self._check_response(e.response, handle, "download")
            raise NetworkError(f"Registry error during download: {e}") from e

        self._check_response(resp, handle, "download")
        return resp.content or b""
