"""Factory for creating blob store instances."""

from pathlib import Path
from typing import Optional

from ..config import StoreConfig
from ..errors import ConfigError
from .base import BlobStore
from .fs import FilesystemBlobStore


def make_blob_store(config: StoreConfig, root: Optional[Path] = None) -> BlobStore:
    """
    Create blob store instance based on configuration.

    Args:
        config: Store configuration
        root: Project root for resolving relative filesystem locations
            (defaults to the current directory)

    Returns:
        BlobStore instance

    Raises:
        ConfigError: If configuration is invalid
        NotImplementedError: If provider is not supported
    """
    location = config.store_location(Path(root or Path.cwd()))
    if not location:
        raise ConfigError(
            f"location required for provider '{config.provider}' "
            f"(e.g. localhost:5555/frames; set it in config.yaml or BLOBFRAME_LOCATION)"
        )

    if config.provider == "fs":
        return FilesystemBlobStore(Path(location))

    elif config.provider == "oci":
        # Imported lazily so filesystem-only use does not load the registry client
        from .oci import OciBlobStore
        return OciBlobStore(location, insecure=config.insecure)

    else:
        raise NotImplementedError(f"Provider {config.provider} not supported")
