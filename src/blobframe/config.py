"""Store configuration helpers.

Configuration lives in ``.blobframe/config.yaml`` under the project root.
Any field can be overridden by a ``BLOBFRAME_<FIELD>`` environment variable
(e.g. ``BLOBFRAME_PROVIDER=oci``). Relative paths resolve against the
project root.
"""

from pathlib import Path
from typing import Literal, Optional
import os

import yaml
from pydantic import BaseModel, Field, ValidationError

from .constants import BLOBFRAME_DIR, BLOBS_DIR, CONFIG_FILE, ENV_PREFIX, LEDGER_FILE
from .errors import ConfigError
from .utils import atomic_write_text

DEFAULT_FS_LOCATION = f"{BLOBFRAME_DIR}/{BLOBS_DIR}"


class StoreConfig(BaseModel):
    """Blob store configuration (stored in .blobframe/config.yaml)."""

    provider: Literal["fs", "oci"] = "fs"
    # Directory for "fs" (default .blobframe/blobs), repository reference for
    # "oci" (e.g. localhost:5555/frames, required)
    location: Optional[str] = None
    epochs: int = Field(default=3, ge=1)
    deletable: bool = False
    max_attempts: int = Field(default=3, ge=1)
    retry_delay: float = Field(default=3.0, ge=0)
    ledger_path: str = f"{BLOBFRAME_DIR}/{LEDGER_FILE}"
    insecure: Optional[bool] = None

    def ledger_location(self, root: Path) -> Path:
        """Absolute ledger file path."""
        return _resolve(root, self.ledger_path)

    def store_location(self, root: Path) -> Optional[str]:
        """Store location with filesystem paths made absolute.

        None for "oci" without a configured repository reference.
        """
        if self.provider == "fs":
            return str(_resolve(root, self.location or DEFAULT_FS_LOCATION))
        return self.location or None


def _resolve(root: Path, value: str) -> Path:
    p = Path(value).expanduser()
    return p if p.is_absolute() else Path(root) / p


def config_path(root: Optional[Path] = None) -> Path:
    """Path of the config file for a project root (defaults to cwd)."""
    return Path(root or Path.cwd()) / BLOBFRAME_DIR / CONFIG_FILE


def _env_overrides() -> dict:
    overrides = {}
    for name in StoreConfig.model_fields:
        value = os.environ.get(f"{ENV_PREFIX}{name.upper()}")
        if value is not None and value != "":
            overrides[name] = value
    return overrides


def load_config(root: Optional[Path] = None) -> StoreConfig:
    """Load configuration from .blobframe/config.yaml plus environment overrides.

    A missing file yields defaults.

    Raises:
        ConfigError: If the file is not valid YAML or holds invalid values
    """
    path = config_path(root)
    data = {}

    if path.exists():
        try:
            data = yaml.safe_load(path.read_text()) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Expected a mapping in {path}, got {type(data).__name__}")

    data.update(_env_overrides())

    try:
        return StoreConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def save_config(config: StoreConfig, root: Optional[Path] = None) -> Path:
    """Save configuration atomically; returns the file path."""
    path = config_path(root)
    config_text = yaml.safe_dump(
        config.model_dump(exclude_none=True), default_flow_style=False, sort_keys=False
    )
    atomic_write_text(path, config_text)
    return path


def init_project(root: Optional[Path] = None, config: Optional[StoreConfig] = None) -> Path:
    """Create .blobframe/ with a config file unless one exists; returns the config path."""
    path = config_path(root)
    if path.exists():
        return path
    return save_config(config or StoreConfig(), root)


__all__ = ["StoreConfig", "config_path", "init_project", "load_config", "save_config"]
