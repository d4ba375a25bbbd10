"""Rich terminal display for footprint."""

from datetime import datetime

from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from footprint.models import CacheStats, CacheStatus, ProjectSizeResult, format_size

console = Console()


def status_label(status: CacheStatus) -> str:
    """Get styled label for a cache status."""
    labels = {
        CacheStatus.FRESH: "[green]Fresh[/green]",
        CacheStatus.STALE: "[yellow]Stale[/yellow]",
        CacheStatus.MISSING: "[dim]Missing[/dim]",
        CacheStatus.DISABLED: "[dim]Disabled[/dim]",
    }
    return labels.get(status, "Unknown")


def show_size_results(results: list[ProjectSizeResult]) -> None:
    """Display per-project sizes, largest first, failures last."""
    table = Table(title="Project Sizes", show_header=True, header_style="bold")
    table.add_column("Project")
    table.add_column("Code", justify="right", style="green")
    table.add_column("Dependencies", justify="right", style="yellow")
    table.add_column("Total", justify="right", style="bold")
    table.add_column("Files", justify="right")
    table.add_column("", width=6)

    succeeded = [r for r in results if r.ok]
    failed = [r for r in results if not r.ok]

    for result in sorted(succeeded, key=lambda r: r.size_info.total_size, reverse=True):
        info = result.size_info
        table.add_row(
            result.path,
            info.code_human,
            info.dependency_human,
            info.total_human,
            str(info.total_file_count),
            "[dim]cached[/dim]" if result.from_cache else "",
        )

    for result in failed:
        table.add_row(result.path, "", "", "", "", "[red]error[/red]")

    console.print(table)

    if succeeded:
        code = sum(r.size_info.code_size for r in succeeded)
        dependency = sum(r.size_info.dependency_size for r in succeeded)
        console.print(
            Panel(
                f"[bold]Total:[/bold] {format_size(code + dependency)}\n"
                f"  Code: {format_size(code)}\n"
                f"  Dependencies: {format_size(dependency)}",
                title="Summary",
                border_style="blue",
            )
        )

    for result in failed:
        console.print(f"  [red]✗[/red] {result.path}: {result.error}")

    skipped = sum(r.soft_errors for r in succeeded)
    if skipped:
        console.print(f"[dim]{skipped} unreadable entries were skipped[/dim]")


def show_cache_stats(stats: CacheStats, cache_file: str | None = None) -> None:
    """Display cache statistics."""
    table = Table(title="Size Cache", show_header=False)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Entries", str(stats.total_entries))
    if stats.expired_entries:
        table.add_row("[yellow]Expired[/yellow]", str(stats.expired_entries))
    table.add_row("Git repositories", str(stats.git_repositories))
    table.add_row("Cached code size", format_size(stats.total_code_size))
    table.add_row("Cached dependency size", format_size(stats.total_dependency_size))
    table.add_row("Cached total size", format_size(stats.total_cached_size))
    table.add_row("Cache file size", format_size(stats.cache_file_size))
    if stats.last_updated is not None:
        updated = datetime.fromtimestamp(stats.last_updated).strftime("%Y-%m-%d %H:%M:%S")
        table.add_row("Last updated", updated)
    if cache_file:
        table.add_row("Location", cache_file)

    console.print(table)


def show_scanning_progress() -> Progress:
    """Create progress spinner for sizing."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    )


def confirm_action(message: str) -> bool:
    """Ask for confirmation."""
    from rich.prompt import Confirm

    return Confirm.ask(message)
