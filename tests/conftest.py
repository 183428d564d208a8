"""Shared test fixtures and utilities."""

import os
from pathlib import Path
import pytest

from blobframe.auth import Credential
from blobframe.client import BlobStoreClient
from blobframe.errors import NetworkError
from blobframe.ledger import VersionLedger
from blobframe.retry import RetryPolicy
from blobframe.storage import FilesystemBlobStore


class FlakyStore:
    """Store wrapper whose first ``failures`` writes raise ``error``."""

    def __init__(self, inner, failures: int = 0, error: Exception = None):
        self.inner = inner
        self.failures = failures
        self.error = error or NetworkError("simulated network failure")
        self.write_calls = 0
        self.read_calls = 0

    def write(self, data, durability, signer):
        self.write_calls += 1
        if self.write_calls <= self.failures:
            raise self.error
        return self.inner.write(data, durability, signer)

    def read(self, handle):
        self.read_calls += 1
        return self.inner.read(handle)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove BLOBFRAME_* variables so tests never see the caller's settings."""
    for name in list(os.environ):
        if name.startswith("BLOBFRAME_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def signer():
    return Credential(username="tester", secret="s3cret")


@pytest.fixture
def fs_store(tmp_path):
    """Filesystem store rooted in a temporary directory."""
    return FilesystemBlobStore(tmp_path / "blobs")


@pytest.fixture
def sleeps():
    """Records every delay requested by fast_retry."""
    return []


@pytest.fixture
def fast_retry(sleeps):
    """Default retry shape (3 attempts, 3s) without actually sleeping."""
    return RetryPolicy(max_attempts=3, delay=3.0, sleep=sleeps.append)


@pytest.fixture
def make_flaky_store(fs_store):
    """Factory fixture for stores that fail their first N writes."""
    def _make(failures: int = 0, error: Exception = None) -> FlakyStore:
        return FlakyStore(fs_store, failures=failures, error=error)
    return _make


@pytest.fixture
def client(fs_store, signer, fast_retry):
    """Client over a reliable filesystem store."""
    return BlobStoreClient(fs_store, signer, retry_policy=fast_retry)


@pytest.fixture
def ledger(tmp_path):
    return VersionLedger(tmp_path / "state" / "versions.json")


@pytest.fixture
def write_file(tmp_path):
    """Factory fixture to write files relative to tmp_path."""
    def _write(path: str, content=b"test content") -> Path:
        file_path = tmp_path / path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, str):
            file_path.write_text(content)
        else:
            file_path.write_bytes(content)
        return file_path
    return _write
