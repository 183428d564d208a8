"""Utility functions for blobframe."""

from datetime import datetime, timezone
from pathlib import Path
import hashlib
import os
import tempfile


def compute_digest(data: bytes) -> str:
    """Compute SHA256 digest of a byte string."""
    return f"sha256:{hashlib.sha256(data).hexdigest()}"


def humanize_size(size: float) -> str:
    """Convert bytes to human-readable format."""
    for unit in ["B", "KB", "MB", "GB"]:
        if size < 1024.:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"


def get_iso_timestamp() -> str:
    """Get current UTC timestamp in ISO 8601 format with millisecond precision.

    Example: "2025-08-26T02:51:17.317Z"
    """
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _fsync_dir(path: Path) -> None:
    """Fsync a directory so a rename inside it is durable (best-effort)."""
    try:
        flags = os.O_RDONLY
        if hasattr(os, "O_DIRECTORY"):
            flags |= os.O_DIRECTORY

        dirfd = os.open(str(path), flags)
        try:
            os.fsync(dirfd)
        finally:
            os.close(dirfd)
    except (OSError, IOError):
        # Expected on Windows or filesystems that don't support directory fsync
        pass


def atomic_write_bytes(path: Path, data: bytes) -> None:
    """Atomically write bytes to file with crash safety.

    1. Writes to temp file in the same directory, fsync'd
    2. Atomic rename to target path (appears all-at-once)
    3. Fsync parent directory to ensure rename is durable

    Args:
        path: Target file path
        data: Content to write
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    tmp_file = tempfile.NamedTemporaryFile(
        mode="wb",
        delete=False,
        dir=path.parent,
        prefix=f".{path.name}.tmp-",
    )
    tmp = Path(tmp_file.name)

    try:
        with tmp_file as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
        _fsync_dir(path.parent)
    except BaseException:
        # Clean up temp file on any error
        tmp.unlink(missing_ok=True)
        raise


def atomic_write_text(path: Path, text: str) -> None:
    """Atomically write UTF-8 text to file (see atomic_write_bytes)."""
    atomic_write_bytes(path, text.encode("utf-8"))
