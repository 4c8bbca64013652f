"""Command line for archives stored in a GitHub repository.

Usage:
    repo-archive configure
    repo-archive list
    repo-archive show diaries/2024/01/05-trip.md [--raw]
    repo-archive create photo.jpg clip.mp4 --title "Trip" [--description "..."]
    repo-archive edit diaries/2024/01/05-trip.md --title "Lake trip"
    repo-archive delete diaries/2024/01/05-trip.md [--yes]
"""

import asyncio
from pathlib import Path
from typing import Awaitable, Callable, Optional, TypeVar

import typer
from rich.console import Console
from rich.table import Table

from repo_archive.lib.config_manager import config
from repo_archive.lib.connection import ConnectionMonitor
from repo_archive.lib.errors import ArchiveStoreError, AuthenticationError
from repo_archive.lib.logging_config import setup_logging
from repo_archive.services.archive import ArchiveStore, UploadTask, create_archive_store

app = typer.Typer(help="Archive files and notes in a GitHub repository")
console = Console()

T = TypeVar("T")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs"),
):
    """Set up logging for every command."""
    setup_logging(
        "cli",
        level="DEBUG" if verbose else config.get("LOG_LEVEL"),
        json_output=config.get("LOG_FORMAT") == "json" and not verbose,
    )


def _report_connection(online: bool) -> None:
    console.print("[green]Back online[/]" if online else "[yellow]Connection problem, retrying...[/]")


def _store() -> ArchiveStore:
    monitor = ConnectionMonitor(config.get("GITHUB_API_URL"))
    try:
        return create_archive_store(monitor=monitor)
    except ValueError as e:
        console.print(f"[red]{e}[/]")
        console.print("Run [bold]repo-archive configure[/] to set a token.")
        raise typer.Exit(1)


async def _with_store(operation: Callable[[ArchiveStore], Awaitable[T]]) -> T:
    store = _store()
    if store.monitor is not None:
        if not await store.monitor.init():
            console.print("[yellow]GitHub looks unreachable, trying anyway...[/]")
        store.monitor.add_listener(_report_connection)
    return await operation(store)


def _run(operation: Callable[[ArchiveStore], Awaitable[T]]) -> T:
    """Run an operation against a fresh store, turning archive failures into a clean exit."""
    try:
        return asyncio.run(_with_store(operation))
    except AuthenticationError as e:
        console.print(f"[red]{e}[/]")
        console.print("Run [bold]repo-archive configure[/] to set a valid token.")
        raise typer.Exit(1)
    except (ArchiveStoreError, ValueError) as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)


@app.command()
def configure(
    token: str = typer.Option(..., prompt="GitHub token", hide_input=True, help="Personal access token"),
    owner: Optional[str] = typer.Option(None, help="Repository owner [default: current]"),
    repo: Optional[str] = typer.Option(None, help="Repository name [default: current]"),
    branch: Optional[str] = typer.Option(None, help="Branch to write to [default: current]"),
):
    """Save the token and repository to the .env file."""
    values = {
        "GITHUB_TOKEN": token,
        "ARCHIVE_REPO_OWNER": owner or config.get("ARCHIVE_REPO_OWNER"),
        "ARCHIVE_REPO_NAME": repo or config.get("ARCHIVE_REPO_NAME"),
        "ARCHIVE_BRANCH": branch or config.get("ARCHIVE_BRANCH"),
    }
    env_path = config.write_to_env_file(values)

    table = Table(title=f"Saved to {env_path}")
    table.add_column("Key", style="bold")
    table.add_column("Value")
    for key, value in values.items():
        table.add_row(key, config.mask_value(key, value))
    console.print(table)


@app.command("list")
def list_archives():
    """List archives, newest first."""
    archives = _run(lambda store: store.list_archives())

    if not archives:
        console.print("[yellow]No archives yet[/]")
        return

    table = Table(title=f"{len(archives)} archives")
    table.add_column("Name", style="bold")
    table.add_column("Path")
    for archive in archives:
        table.add_row(archive.name, archive.path)
    console.print(table)


@app.command()
def show(
    path: str = typer.Argument(..., help="Archive path, e.g. diaries/2024/01/05-trip.md"),
    raw: bool = typer.Option(False, "--raw", help="Print the markdown source"),
):
    """Show one archive."""
    if raw:
        console.print(_run(lambda store: store.get_archive_content(path)), markup=False, highlight=False)
        return

    archive = _run(lambda store: store.get_archive(path))
    console.print(f"\n[bold]{archive.title}[/]")
    if archive.created_at:
        console.print(f"[dim]Archived on {archive.created_at:%Y-%m-%d %H:%M} UTC[/]")
    if archive.description:
        console.print(f"\n{archive.description}", markup=False)
    console.print(f"[dim]Revision: {archive.revision_id}[/]")

    if archive.file_links:
        table = Table(title="Files")
        table.add_column("Name", style="bold")
        table.add_column("Kind")
        table.add_column("Stored at")
        for link in archive.file_links:
            table.add_row(link.display_name, link.kind.value, link.stored_path)
        console.print(table)


@app.command()
def create(
    files: list[Path] = typer.Argument(..., exists=True, dir_okay=False, help="Files to upload"),
    title: str = typer.Option(..., "--title", "-t", help="Archive title"),
    description: str = typer.Option("", "--description", "-d", help="Archive description"),
):
    """Upload files and write an archive for them."""
    tasks = [UploadTask(file_name=path.name, data=path.read_bytes()) for path in files]

    with console.status(f"[bold yellow]Uploading {len(tasks)} files..."):
        ref = _run(lambda store: store.create_archive_from_tasks(title, description, tasks))

    for task in tasks:
        if task.uploaded:
            console.print(f"[green]✓[/] {task.file_name} → {task.stored_path}")
        else:
            console.print(f"[red]✗[/] {task.file_name}: {task.error_message}")

    console.print(f"\n[bold green]Created {ref.path}[/]")
    console.print(ref.url)


@app.command()
def edit(
    path: str = typer.Argument(..., help="Archive path"),
    title: Optional[str] = typer.Option(None, "--title", "-t", help="New title"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="New description"),
):
    """Change the title and/or description of an archive."""
    if title is None and description is None:
        console.print("[yellow]Nothing to change (pass --title and/or --description)[/]")
        raise typer.Exit(1)

    async def rewrite(store: ArchiveStore):
        archive = await store.get_archive(path)
        return await store.update_archive(
            path,
            title if title is not None else archive.title,
            description if description is not None else archive.description,
            archive.revision_id,
        )

    ref = _run(rewrite)
    console.print(f"[bold green]Updated {ref.path}[/]")


@app.command()
def delete(
    path: str = typer.Argument(..., help="Archive path"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
):
    """Delete an archive document (uploaded files are kept)."""
    if not yes and not typer.confirm(f"Delete archive '{path}'?"):
        console.print("Deletion cancelled.")
        return

    _run(lambda store: store.delete_archive(path))
    console.print(f"[green]✓[/] Deleted {path}")
    console.print("  Note: uploaded files were NOT deleted")


if __name__ == "__main__":
    app()
