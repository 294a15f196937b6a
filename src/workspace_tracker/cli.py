"""CLI for workspace-tracker."""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .errors import TrackerError
from .models import ChangeStatus, DiffOptions, StructuredDiff
from .tracker import WorkspaceTracker
from .utils import humanize_date, humanize_size


app = typer.Typer(help="""\
Track a working directory's state across a task: record a baseline,
fingerprint the workspace, and report what changed since.""")

console = Console()

DIR_OPTION_HELP = "Directory to track (default: current directory)"


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Configure logging for all commands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _make_tracker(directory: Optional[Path]) -> WorkspaceTracker:
    target = directory or Path.cwd()
    if not target.is_dir():
        console.print(f"[red]✗[/red] Not a directory: {target}")
        raise typer.Exit(1)
    return WorkspaceTracker(target)


def _fail(e: TrackerError) -> None:
    console.print(f"[red]✗[/red] {e}")
    raise typer.Exit(1)


def _print_diff(diff: StructuredDiff, show_patch: bool) -> None:
    """Render a structured diff as a table plus optional patch."""
    status_map = {
        ChangeStatus.ADDED: "[green]+[/green] added",
        ChangeStatus.MODIFIED: "[yellow]Δ[/yellow] modified",
        ChangeStatus.DELETED: "[red]−[/red] deleted",
        ChangeStatus.RENAMED: "[blue]→[/blue] renamed",
    }

    table = Table(title="Changes")
    table.add_column("File", style="cyan")
    table.add_column("Status")
    table.add_column("+", justify="right", style="green")
    table.add_column("-", justify="right", style="red")

    for change in diff.files:
        path = change.path
        if change.old_path:
            path = f"{change.old_path} → {change.path}"
        if change.binary:
            adds, dels = "bin", "bin"
        else:
            adds, dels = str(change.additions), str(change.deletions)
        table.add_row(path, status_map[change.status], adds, dels)

    console.print(table)
    console.print(f"[bold]{diff.summary}[/bold]")

    if diff.patch_truncated:
        console.print("[dim]Patch omitted: larger than the size limit[/dim]")
    elif show_patch and diff.patch:
        console.print(f"[dim]Patch ({humanize_size(len(diff.patch.encode('utf-8')))}):[/dim]")
        typer.echo(diff.patch)


@app.command()
def status(
    directory: Optional[Path] = typer.Option(None, "--dir", "-C", help=DIR_OPTION_HELP),
    as_json: bool = typer.Option(False, "--json", help="Print machine-readable JSON"),
):
    """Show repository status: head commit, branch, dirty and untracked files."""
    tracker = _make_tracker(directory)
    try:
        result = tracker.get_status()
    except TrackerError as e:
        _fail(e)

    if as_json:
        typer.echo(result.model_dump_json(indent=2))
        return

    if not result.is_repo:
        console.print(f"[dim]{tracker.directory} is not a git repository[/dim]")
        return

    console.print(f"[bold]Repository:[/bold] {tracker.root}")
    console.print(f"[bold]Branch:[/bold] {result.branch or '(detached)'}")
    console.print(f"[bold]Head:[/bold] {result.head_commit[:12] if result.head_commit else '(no commits)'}")

    if result.is_clean:
        console.print("[green]✓ Working tree clean[/green]")
        return

    if result.dirty_files:
        console.print(f"\n[bold]Dirty files ({len(result.dirty_files)}):[/bold]")
        for path in result.dirty_files:
            console.print(f"  [yellow]Δ[/yellow] {path}")
    if result.untracked_files:
        console.print(f"\n[bold]Untracked files ({len(result.untracked_files)}):[/bold]")
        for path in result.untracked_files:
            console.print(f"  [dim]?[/dim] {path}")


@app.command()
def fingerprint(
    directory: Optional[Path] = typer.Option(None, "--dir", "-C", help=DIR_OPTION_HELP),
    content: bool = typer.Option(False, "--content", help="Hash file contents even inside a git repository"),
):
    """Print the workspace fingerprint."""
    tracker = _make_tracker(directory)
    try:
        if content:
            value = tracker.compute_non_git_fingerprint()
        else:
            value = tracker.compute_fingerprint()
    except TrackerError as e:
        _fail(e)
    typer.echo(value)


@app.command()
def diff(
    directory: Optional[Path] = typer.Option(None, "--dir", "-C", help=DIR_OPTION_HELP),
    since: Optional[str] = typer.Option(None, "--since", help="Baseline commit to diff from (default: HEAD)"),
    max_size: Optional[int] = typer.Option(None, "--max-size", min=0, help="Largest patch to include, in bytes"),
    no_patch: bool = typer.Option(False, "--no-patch", help="Only list files and counts"),
    untracked: Optional[bool] = typer.Option(
        None, "--untracked/--no-untracked", help="Include untracked files as additions"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print machine-readable JSON"),
):
    """Show uncommitted changes, or everything since a baseline commit."""
    tracker = _make_tracker(directory)
    options = DiffOptions(
        max_size=max_size,
        include_patch=not no_patch,
        include_untracked=untracked,
    )
    try:
        if since:
            result = tracker.get_diff_since(since, options)
        else:
            result = tracker.get_current_diff(options)
    except TrackerError as e:
        _fail(e)

    if result is None:
        if as_json:
            typer.echo("null")
        elif not tracker.is_repository():
            console.print("[dim]Not a git repository; no diff available[/dim]")
        elif since:
            console.print(f"[yellow]Commit {since} not found; no diff available[/yellow]")
        else:
            console.print("[green]✓ No changes[/green]")
        return

    if as_json:
        typer.echo(result.model_dump_json(indent=2))
        return

    _print_diff(result, show_patch=not no_patch)


@app.command()
def baseline(
    snapshot_dir: Path = typer.Argument(..., help="Directory to write the baseline into"),
    directory: Optional[Path] = typer.Option(None, "--dir", "-C", help=DIR_OPTION_HELP),
    as_json: bool = typer.Option(False, "--json", help="Print machine-readable JSON"),
):
    """Record a baseline of the current workspace state."""
    tracker = _make_tracker(directory)
    try:
        record = asyncio.run(tracker.create_baseline(snapshot_dir))
    except TrackerError as e:
        _fail(e)

    if as_json:
        typer.echo(record.model_dump_json(indent=2))
        return

    console.print(f"[green]✓[/green] Baseline written to {snapshot_dir}")
    console.print(f"  Head: {record.head_commit or '(none)'}")
    console.print(f"  Fingerprint: {record.fingerprint}")
    console.print(f"  Dirty files: {len(record.dirty_files)}, untracked: {len(record.untracked_files)}")


@app.command("show-baseline")
def show_baseline(
    snapshot_dir: Path = typer.Argument(..., help="Directory holding a baseline"),
    directory: Optional[Path] = typer.Option(None, "--dir", "-C", help=DIR_OPTION_HELP),
    as_json: bool = typer.Option(False, "--json", help="Print machine-readable JSON"),
):
    """Show a recorded baseline and whether the workspace changed since."""
    tracker = _make_tracker(directory)
    try:
        record = tracker.load_baseline(snapshot_dir)
        if record is None:
            console.print(f"[yellow]No baseline in {snapshot_dir}[/yellow]")
            raise typer.Exit(1)
        current = tracker.compute_fingerprint()
    except TrackerError as e:
        _fail(e)

    if as_json:
        typer.echo(record.model_dump_json(indent=2))
        return

    console.print(f"[bold]Recorded:[/bold] {record.timestamp} ({humanize_date(record.timestamp)})")
    console.print(f"[bold]Head:[/bold] {record.head_commit or '(none)'}")
    console.print(f"[bold]Branch:[/bold] {record.branch or '(none)'}")
    console.print(f"[bold]Dirty at baseline:[/bold] {len(record.dirty_files)}")
    console.print(f"[bold]Untracked at baseline:[/bold] {len(record.untracked_files)}")
    if record.fingerprint == current:
        console.print("[green]✓ Workspace unchanged since baseline[/green]")
    else:
        console.print("[yellow]Δ Workspace changed since baseline[/yellow]")


def main():
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
