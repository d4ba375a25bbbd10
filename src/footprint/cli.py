"""CLI interface for footprint."""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from footprint import __version__
from footprint.cache_store import CacheStore
from footprint.calculator import SizeCalculator
from footprint.display import (
    confirm_action,
    console,
    show_cache_stats,
    show_scanning_progress,
    show_size_results,
    status_label,
)
from footprint.errors import CacheInitError
from footprint.settings import CacheSettings
from footprint.size_cache import SizeCache

app = typer.Typer(
    name="footprint",
    help="Measure code and dependency size of projects",
    add_completion=False,
    no_args_is_help=True,
)
cache_app = typer.Typer(help="Inspect and maintain the size cache", no_args_is_help=True)
app.add_typer(cache_app, name="cache")


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"footprint version {__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Log cache and walk details."),
) -> None:
    """footprint - code and dependency size of your projects."""
    configure_logging(verbose)


def _store(cache_file: Optional[Path]) -> CacheStore:
    return CacheStore(cache_file) if cache_file else CacheStore()


def _open_cache(cache_file: Optional[Path], expiry_hours: float = 24.0) -> SizeCache:
    config = CacheSettings(expiry_hours=expiry_hours).to_cache_config()
    try:
        return SizeCache(config, store=_store(cache_file))
    except CacheInitError as e:
        console.print(f"[red]Cannot open size cache: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def size(
    paths: Optional[list[Path]] = typer.Argument(None, help="Project roots (default: current directory)"),
    no_cache: bool = typer.Option(False, "--no-cache", help="Always walk, never read or write the cache"),
    jobs: int = typer.Option(4, "--jobs", "-j", min=1, help="Projects sized concurrently"),
    expiry_hours: float = typer.Option(24.0, "--expiry-hours", min=0.01, help="Hours before a cached size expires"),
    max_entries: int = typer.Option(1000, "--max-entries", min=1, help="Maximum cached projects"),
    cache_file: Optional[Path] = typer.Option(None, "--cache-file", help="Use this cache file"),
) -> None:
    """Show code and dependency size of one or more projects."""
    paths = paths or [Path(".")]

    if no_cache:
        calculator = SizeCalculator()
    else:
        settings = CacheSettings(expiry_hours=expiry_hours, max_entries=max_entries)
        try:
            calculator = SizeCalculator.with_cache(settings.to_cache_config(), store=_store(cache_file))
        except CacheInitError as e:
            console.print(f"[yellow]Size cache unavailable, continuing without it: {e}[/yellow]")
            calculator = SizeCalculator()

    with show_scanning_progress() as progress:
        progress.add_task(f"Sizing {len(paths)} project(s)...", total=None)
        results = asyncio.run(calculator.calculate_many(paths, max_concurrency=jobs))

    cache = calculator.cache
    if cache is not None and cache.dirty and not cache.flush():
        console.print("[yellow]Sizes were computed but the size cache could not be saved[/yellow]")

    show_size_results(results)

    if any(not r.ok for r in results):
        raise typer.Exit(1)


@cache_app.command()
def stats(
    expiry_hours: float = typer.Option(24.0, "--expiry-hours", min=0.01, help="Hours before a cached size expires"),
    cache_file: Optional[Path] = typer.Option(None, "--cache-file", help="Use this cache file"),
) -> None:
    """Show cache statistics."""
    cache = _open_cache(cache_file, expiry_hours)
    if not cache.store.exists():
        console.print(f"[dim]No cached sizes yet at {cache.store.path}[/dim]")
        return
    show_cache_stats(cache.stats(), cache_file=str(cache.store.path))


@cache_app.command()
def status(
    path: Path = typer.Argument(Path("."), help="Project root"),
    expiry_hours: float = typer.Option(24.0, "--expiry-hours", min=0.01, help="Hours before a cached size expires"),
    cache_file: Optional[Path] = typer.Option(None, "--cache-file", help="Use this cache file"),
) -> None:
    """Show whether a project's cached size is still valid."""
    calculator = SizeCalculator(cache=_open_cache(cache_file, expiry_hours))
    console.print(f"{path}: {status_label(calculator.get_cache_status(path))}")


@cache_app.command()
def cleanup(
    expiry_hours: float = typer.Option(24.0, "--expiry-hours", min=0.01, help="Hours before a cached size expires"),
    cache_file: Optional[Path] = typer.Option(None, "--cache-file", help="Use this cache file"),
) -> None:
    """Remove expired entries."""
    cache = _open_cache(cache_file, expiry_hours)
    removed = cache.cleanup_expired()
    console.print(f"Removed {removed} expired entr{'y' if removed == 1 else 'ies'}")


@cache_app.command()
def clear(
    yes: bool = typer.Option(False, "-y", "--yes", help="Skip confirmation prompt"),
    cache_file: Optional[Path] = typer.Option(None, "--cache-file", help="Use this cache file"),
) -> None:
    """Remove every cached size."""
    cache = _open_cache(cache_file)
    if not yes and not confirm_action(f"Remove all {len(cache)} cached sizes?"):
        console.print("[yellow]Cancelled[/yellow]")
        raise typer.Exit(0)

    removed = cache.clear()
    console.print(f"[green]Cleared {removed} cached sizes[/green]")


if __name__ == "__main__":
    app()
