"""CLI for blobframe."""

from pathlib import Path
from typing import List, Optional
import json
import logging

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .auth import load_credential
from .client import BlobStoreClient
from .config import StoreConfig, config_path, init_project, load_config
from .constants import BLOBFRAME_VERSION
from .errors import BlobFrameError, ConfigError, RetryExhaustedError
from .ledger import VersionLedger
from .ops import download_file, upload_file
from .retry import RetryPolicy
from .storage import DurabilityHint, make_blob_store
from .utils import humanize_size


app = typer.Typer(help="""\
Store records and files as self-describing blobs in a remote store,
retrieve them by handle, and keep per-file upload versions locally.""")

console = Console()


@app.callback()
def _configure(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    logger = logging.getLogger("blobframe")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.addHandler(RichHandler(console=Console(stderr=True), show_path=False))
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _fail(error: Exception) -> None:
    """Print an error and exit with status 1."""
    console.print(f"[red]✗[/red] {error}")
    if isinstance(error, RetryExhaustedError):
        console.print("[dim]Check your network connection and store location[/dim]")
    raise typer.Exit(1)


def _load_config() -> StoreConfig:
    try:
        return load_config()
    except BlobFrameError as e:
        _fail(e)


def _get_client(config: StoreConfig) -> BlobStoreClient:
    """Build a client from configuration and environment credentials."""
    store = make_blob_store(config)
    signer = load_credential(require_secret=config.provider == "oci")
    return BlobStoreClient(
        store,
        signer,
        retry_policy=RetryPolicy(max_attempts=config.max_attempts, delay=config.retry_delay),
        durability=DurabilityHint(epochs=config.epochs, deletable=config.deletable),
    )


def _get_ledger(config: StoreConfig) -> VersionLedger:
    return VersionLedger(config.ledger_location(Path.cwd()))


def _parse_data(data: str):
    """Interpret DATA as JSON, falling back to a plain string."""
    try:
        return json.loads(data)
    except json.JSONDecodeError:
        return data


@app.command()
def init(
    provider: str = typer.Option("fs", help="Store provider: fs or oci"),
    location: Optional[str] = typer.Option(None, help="Store directory (fs) or registry reference (oci)"),
):
    """Initialize .blobframe/ with a config file in the current directory."""
    path = config_path()
    if path.exists():
        console.print(f"[yellow]Already initialized:[/yellow] {path}")
        return

    try:
        config = StoreConfig(provider=provider, location=location or None)
    except ValueError as e:
        _fail(e)
    if config.provider == "oci" and not config.location:
        _fail(ConfigError("--location is required for provider 'oci' (e.g. localhost:5555/frames)"))

    init_project(config=config)
    console.print("[green]✓[/green] Initialized blobframe project")
    console.print(f"  Config: {path}")
    console.print(f"  Provider: {config.provider}")
    console.print(f"  Location: {config.store_location(Path.cwd())}")


@app.command()
def store(
    data: str = typer.Argument(..., help="Record content (JSON, or a plain string)"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="Record description"),
    tag: Optional[List[str]] = typer.Option(None, "--tag", "-t", help="Tag (repeatable)"),
):
    """Store a record and print its handle."""
    config = _load_config()
    try:
        handle = _get_client(config).store_record(
            _parse_data(data), description=description, tags=tag or None
        )
    except BlobFrameError as e:
        _fail(e)

    console.print("[green]✓[/green] Stored record")
    console.print(handle)


@app.command()
def retrieve(
    handle: str = typer.Argument(..., help="Handle returned by store"),
):
    """Retrieve a record and print its content as JSON."""
    config = _load_config()
    try:
        content = _get_client(config).retrieve_record(handle)
    except BlobFrameError as e:
        _fail(e)

    console.print_json(json.dumps(content))


@app.command("store-file")
def store_file(
    path: Path = typer.Argument(..., help="File to store"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="File description"),
    tag: Optional[List[str]] = typer.Option(None, "--tag", "-t", help="Tag (repeatable)"),
):
    """Store a file (no versioning) and print its handle."""
    config = _load_config()
    try:
        handle = _get_client(config).store_file(path, description=description, tags=tag or None)
    except (FileNotFoundError, BlobFrameError) as e:
        _fail(e)

    console.print(f"[green]✓[/green] Stored {path.name} ({humanize_size(path.stat().st_size)})")
    console.print(handle)


@app.command("retrieve-file")
def retrieve_file(
    handle: str = typer.Argument(..., help="Handle returned by store-file or upload"),
    output: Path = typer.Argument(..., help="Where to write the file"),
):
    """Retrieve a stored file to OUTPUT."""
    config = _load_config()
    try:
        metadata = download_file(_get_client(config), handle, output)
    except (OSError, BlobFrameError) as e:
        _fail(e)

    name = metadata.file_name or handle
    console.print(f"[green]✓[/green] Retrieved {name} -> {output}")


@app.command()
def info(
    handle: str = typer.Argument(..., help="Handle to inspect"),
):
    """Show metadata and size of a stored blob."""
    config = _load_config()
    try:
        blob_info = _get_client(config).read_metadata(handle)
    except BlobFrameError as e:
        _fail(e)

    table = Table(show_header=True, header_style="bold")
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key, value in blob_info.metadata.items():
        if isinstance(value, list):
            value = ", ".join(str(v) for v in value)
        table.add_row(key, str(value))

    console.print(f"[bold]Handle:[/bold] {blob_info.handle}")
    console.print(f"[bold]Payload:[/bold] {humanize_size(blob_info.payload_size)} ({blob_info.payload_size} bytes)")
    console.print(f"[bold]Blob:[/bold] {humanize_size(blob_info.blob_size)}")
    console.print(table)


@app.command()
def upload(
    path: str = typer.Argument(..., help="File to upload (its path is the version identity)"),
    version: Optional[str] = typer.Option(None, "--version", help="Use this version instead of auto-incrementing"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="File description"),
    tag: Optional[List[str]] = typer.Option(None, "--tag", "-t", help="Tag (repeatable)"),
    no_verify: bool = typer.Option(False, "--no-verify", help="Skip the read-back size check"),
):
    """Upload a file under the next version of its path."""
    config = _load_config()
    try:
        result = upload_file(
            _get_client(config),
            _get_ledger(config),
            path,
            manual_version=version,
            description=description,
            tags=tag or None,
            verify=not no_verify,
        )
    except (FileNotFoundError, BlobFrameError) as e:
        _fail(e)

    console.print(f"[green]✓[/green] Uploaded {result.identity} as version [bold]{result.version}[/bold]")
    console.print(f"  Handle: {result.handle}")
    console.print(f"  Size: {humanize_size(result.original_size)}")
    if result.retrieved_size is None:
        console.print("  [dim]Verification skipped[/dim]")
    elif result.verified:
        console.print("  [green]Verified[/green] (sizes match)")
    else:
        console.print(
            f"  [yellow]⚠ Size mismatch:[/yellow] original {result.original_size} bytes, "
            f"retrieved {result.retrieved_size} bytes"
        )


@app.command()
def versions():
    """Show recorded upload versions."""
    config = _load_config()
    try:
        entries = _get_ledger(config).entries()
    except BlobFrameError as e:
        _fail(e)

    if not entries:
        console.print("[dim]No uploads recorded[/dim]")
        return

    table = Table(title="Upload Versions")
    table.add_column("File", style="cyan")
    table.add_column("Version")
    table.add_column("Uploads", justify="right")
    table.add_column("Last Updated", style="dim")
    for identity, entry in entries.items():
        table.add_row(identity, entry.last_version, str(entry.upload_count), entry.last_updated)
    console.print(table)


@app.command("list")
def list_blobs(
    limit: int = typer.Option(10, "-n", help="Number of blobs to list"),
):
    """List recent blobs (not supported by the remote store)."""
    config = _load_config()
    try:
        handles = _get_client(config).list_recent_blobs(limit)
    except BlobFrameError as e:
        _fail(e)

    if not handles:
        console.print("[yellow]Listing is not supported by the remote store.[/yellow]")
        console.print("[dim]Run 'blobframe versions' to see uploads recorded locally[/dim]")
        return
    for handle in handles:
        console.print(handle)


@app.command()
def address():
    """Show the signer address used for writes."""
    config = _load_config()
    try:
        console.print(_get_client(config).get_address())
    except BlobFrameError as e:
        _fail(e)


@app.command()
def version():
    """Show blobframe version."""
    console.print(f"blobframe {BLOBFRAME_VERSION}")


def main():
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
