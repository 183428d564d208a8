"""Local version ledger for repeatedly uploaded files.

The ledger maps a logical file identity (the path string a caller uploads
under) to its version history and persists that map as pretty-printed JSON:

    {
      "dist/app.tar": {
        "lastVersion": "0.1.2",
        "lastUpdated": "2025-08-26T02:51:17.317Z",
        "uploadCount": 3
      }
    }

Versions advance only through ``record``, which callers invoke after the
remote store has confirmed the upload. ``record`` holds an advisory lock
(portalocker) around its read-modify-write so two processes recording at
the same time do not drop each other's entries. A direct ``save`` is still
last-writer-wins.
"""

from pathlib import Path
from typing import Dict, Optional, Union
import json
import logging

import portalocker
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .constants import SEED_VERSION
from .errors import InvalidVersionError, LedgerCorruptionError, LedgerLockError
from .utils import atomic_write_text, get_iso_timestamp

logger = logging.getLogger(__name__)


class VersionEntry(BaseModel):
    """Version history of one logical file."""

    model_config = ConfigDict(populate_by_name=True)

    last_version: str = Field(alias="lastVersion")
    last_updated: str = Field(default_factory=get_iso_timestamp, alias="lastUpdated")
    upload_count: int = Field(default=1, ge=1, alias="uploadCount")


LedgerState = Dict[str, VersionEntry]


def increment_version(current: str) -> str:
    """Bump a dot-separated version string.

    - ``major.minor.patch[...]`` -> patch + 1 (components past the third are dropped)
    - ``major.minor`` -> ``major.minor.1``
    - ``major`` -> ``major.0.1``

    Raises:
        InvalidVersionError: If the patch component is not an integer
    """
    parts = current.split(".")
    if len(parts) >= 3:
        try:
            patch = int(parts[2])
        except ValueError:
            raise InvalidVersionError(current) from None
        return f"{parts[0]}.{parts[1]}.{patch + 1}"
    elif len(parts) == 2:
        return f"{current}.1"
    else:
        return f"{current}.0.1"


class VersionLedger:
    """Persisted mapping from logical file identity to VersionEntry.

    Args:
        path: Ledger file location
        strict: Raise LedgerCorruptionError on an unreadable file instead of
            logging a warning and starting from an empty ledger
        lock_timeout: Seconds to wait for the ledger lock in record()
    """

    def __init__(self, path: Union[str, Path], strict: bool = False, lock_timeout: float = 30):
        self.path = Path(path)
        self.strict = strict
        self.lock_timeout = lock_timeout

    @property
    def lock_path(self) -> Path:
        return self.path.with_name(f"{self.path.name}.lock")

    def load(self) -> LedgerState:
        """Read the persisted ledger.

        Returns:
            Mapping of identity to entry; empty if the file is missing, or if
            it is corrupt and strict is False.

        Raises:
            LedgerCorruptionError: If the file is corrupt and strict is True
        """
        if not self.path.exists():
            return {}

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ValueError(f"expected a JSON object, got {type(data).__name__}")
            return {
                identity: VersionEntry.model_validate(entry)
                for identity, entry in data.items()
            }
        except (OSError, ValueError, ValidationError) as e:
            # json.JSONDecodeError and UnicodeDecodeError are ValueErrors
            if self.strict:
                raise LedgerCorruptionError(str(self.path), str(e)) from e
            logger.warning("Could not load version data from %s: %s", self.path, e)
            return {}

    def save(self, state: LedgerState) -> None:
        """Overwrite the persisted ledger with state."""
        data = {
            identity: entry.model_dump(by_alias=True)
            for identity, entry in state.items()
        }
        atomic_write_text(self.path, json.dumps(data, indent=2))

    def get(self, identity: str) -> Optional[VersionEntry]:
        """Entry for identity, or None if never recorded."""
        return self.load().get(identity)

    def entries(self) -> LedgerState:
        """All entries, sorted by identity."""
        state = self.load()
        return {identity: state[identity] for identity in sorted(state)}

    def next_version(self, identity: str, manual_override: Optional[str] = None) -> str:
        """Version to use for the next upload of identity.

        Args:
            identity: Logical file identity
            manual_override: Returned verbatim when given (empty string counts as absent)

        Raises:
            InvalidVersionError: If the recorded version cannot be incremented
        """
        if manual_override:
            return manual_override

        entry = self.load().get(identity)
        if entry is None:
            return SEED_VERSION
        return increment_version(entry.last_version)

    def record(self, identity: str, version: str) -> VersionEntry:
        """Record a confirmed upload of identity at version.

        Only call this after the store has succeeded.

        Returns:
            The updated entry

        Raises:
            LedgerLockError: If the lock is held elsewhere past lock_timeout
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)

        try:
            with portalocker.Lock(str(self.lock_path), "a", timeout=self.lock_timeout):
                state = self.load()
                entry = state.get(identity)

                if entry is None:
                    entry = VersionEntry(last_version=version)
                else:
                    entry = VersionEntry(
                        last_version=version,
                        last_updated=get_iso_timestamp(),
                        upload_count=entry.upload_count + 1,
                    )
                state[identity] = entry
                self.save(state)
        except portalocker.exceptions.LockException as e:
            raise LedgerLockError(str(self.lock_path), self.lock_timeout) from e

        logger.debug("Recorded %s -> %s (upload #%d)", identity, version, entry.upload_count)
        return entry
