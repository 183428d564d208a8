"""Custom exceptions for blobframe.

This module defines typed exceptions for better error handling and clearer
error messages throughout the application.
"""


class BlobFrameError(RuntimeError):
    """Base class for all blobframe errors."""
    pass


# Frame Errors
class FrameError(BlobFrameError):
    """Base class for framing (encode/decode) errors."""
    pass


class EncodingError(FrameError):
    """Metadata or record content cannot be serialized to JSON."""
    pass


class FrameFormatError(FrameError):
    """Blob is not a valid frame (separator missing or payload unreadable)."""
    pass


class MetadataParseError(FrameError):
    """Separator found but the metadata before it is not a JSON object."""
    pass


# Retry Errors
class RetryExhaustedError(BlobFrameError):
    """All attempts failed; wraps the last observed failure."""

    def __init__(self, attempts: int, last_error: BaseException, description: str = "operation"):
        self.attempts = attempts
        self.last_error = last_error
        self.description = description
        super().__init__(
            f"{description} failed after {attempts} attempt{'s' if attempts != 1 else ''}: "
            f"{type(last_error).__name__}: {last_error}"
        )


# Store Errors
class StoreError(BlobFrameError):
    """Base class for remote blob store errors."""
    pass


class NetworkError(StoreError):
    """Network connectivity issue with the remote store."""
    pass


class AuthError(StoreError):
    """Authentication or authorization failed (401/403)."""
    pass


class NotFoundError(StoreError):
    """Handle not known to the remote store (404)."""

    def __init__(self, handle: str):
        self.handle = handle
        super().__init__(f"Blob not found: {handle}")


# Ledger Errors
class LedgerError(BlobFrameError):
    """Base class for version ledger errors."""
    pass


class LedgerCorruptionError(LedgerError):
    """Persisted ledger file exists but cannot be parsed."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Version ledger at {path} is corrupt: {reason}")


class InvalidVersionError(LedgerError):
    """Recorded version string cannot be incremented."""

    def __init__(self, version: str):
        self.version = version
        super().__init__(
            f"Cannot increment version '{version}': patch component is not an integer. "
            f"Pass an explicit version to override."
        )


class LedgerLockError(LedgerError):
    """Ledger lock not acquired within the timeout."""

    def __init__(self, lock_path: str, timeout: float):
        self.lock_path = lock_path
        self.timeout = timeout
        super().__init__(
            f"Could not lock version ledger {lock_path} within {timeout}s; "
            f"another upload may be recording. The blob was stored but its version was not recorded."
        )


# Configuration Errors
class ConfigError(BlobFrameError):
    """Invalid or unreadable configuration."""
    pass
