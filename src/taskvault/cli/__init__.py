"""CLI for collection backup and restore.

Usage:
    taskvault backup
    taskvault backup --collections tasks,groups --output nightly.json
    taskvault restore backups/task-manager-backup.json
    taskvault restore backups/task-manager-backup.json --strategy overwrite --yes
    taskvault validate backups/task-manager-backup.json
    taskvault profiles
    taskvault --profile prod serve --port 8000

Commands:
    backup    - Export collections to a JSON backup file
    restore   - Restore a JSON backup file into the active store
    validate  - Check a backup file without touching any store
    profiles  - List configured store profiles
    serve     - Run the HTTP API
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, Progress, TextColumn, TimeElapsedColumn
from rich.table import Table

from taskvault.backup.backup_restore import (
    BackupValidationError,
    backup_data,
    restore_data,
)
from taskvault.backup.files import export_backup_to_file, read_backup_file, validate_backup
from taskvault.backup.models import BACKUP_COLLECTIONS
from taskvault.config.loader import default_config_path, load_config
from taskvault.config.models import StoreConfig
from taskvault.factory import ProfileNotFoundError, get_active_profile_name, get_store

console = Console()


class RichProgressListener:
    """Renders backup/restore progress as a rich progress bar."""

    def __init__(self, progress: Progress, description: str) -> None:
        self._progress = progress
        self._task = progress.add_task(description, total=100)

    def on_progress(self, percent: float, message: str) -> None:
        self._progress.update(self._task, completed=percent, description=message)


def _make_progress() -> Progress:
    return Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.percentage:>3.0f}%"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    )


def _parse_collections(value: str | None) -> list[str]:
    """Comma-separated collection names; all known collections when omitted."""
    if not value:
        return list(BACKUP_COLLECTIONS)
    return [name.strip() for name in value.split(",") if name.strip()]


def _load(args: argparse.Namespace) -> StoreConfig:
    return load_config(args.config)


# ============================================================================
# Async command implementations
# ============================================================================


async def _async_backup(args: argparse.Namespace) -> int:
    """Async implementation for backup command.

    Returns:
        0 on success, 1 on failure.
    """
    config = _load(args)
    page_size = args.page_size or config.backup.page_size
    store = get_store(args.profile, config)

    try:
        with _make_progress() as progress:
            backup = await backup_data(
                store,
                _parse_collections(args.collections),
                progress=RichProgressListener(progress, "Starting backup..."),
                page_size=page_size,
            )
    finally:
        await store.close()

    path = export_backup_to_file(backup, args.output)

    console.print(f"[bold green]v[/bold green] Backup written to [cyan]{path}[/cyan]")
    for name, items in backup.collections.items():
        console.print(f"  {name}: {len(items)} items")
    return 0


async def _async_restore(args: argparse.Namespace) -> int:
    """Async implementation for restore command.

    Returns:
        0 when every document restored, 1 when any failed.
    """
    backup = read_backup_file(args.backup_path)

    if not args.yes:
        console.print(f"Restoring [cyan]{args.backup_path}[/cyan] ({backup.timestamp})")
        console.print(f"  Strategy: [bold]{args.strategy}[/bold]")
        console.print(f"  Items: {backup.total_items}")
        if args.strategy == "overwrite":
            console.print("  [yellow]Existing documents will be overwritten![/yellow]")
        response = console.input("Continue? [y/N] ")
        if response.strip().lower() not in ("y", "yes"):
            console.print("Cancelled.")
            return 0

    config = _load(args)
    store = get_store(args.profile, config)

    try:
        with _make_progress() as progress:
            summary = await restore_data(
                store,
                backup,
                strategy=args.strategy,
                progress=RichProgressListener(progress, "Starting restore..."),
                chunk_size=config.backup.chunk_size,
                progress_interval=config.backup.progress_interval,
                collections=_parse_collections(args.collections) if args.collections else None,
            )
    finally:
        await store.close()

    table = Table(title="Restore summary")
    for column in ("Processed", "Created", "Updated", "Skipped", "Errors"):
        table.add_column(column, justify="right")
    table.add_row(
        str(summary.processed),
        str(summary.created),
        str(summary.updated),
        str(summary.skipped),
        str(summary.errors),
    )
    console.print(table)

    if summary.warnings:
        console.print(f"\n[yellow]Warnings ({len(summary.warnings)}):[/yellow]")
        for warning in summary.warnings:
            console.print(f"  - {warning}")

    if summary.errors > 0:
        console.print(f"\n[bold red]x[/bold red] Restore completed with {summary.errors} errors")
        return 1

    console.print("\n[bold green]v[/bold green] Restore completed")
    return 0


# ============================================================================
# Command handlers (sync wrappers)
# ============================================================================


def cmd_backup(args: argparse.Namespace) -> int:
    """Handle backup command."""
    try:
        return asyncio.run(_async_backup(args))
    except (BackupValidationError, ProfileNotFoundError, FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]x[/bold red] {e}")
        return 1
    except Exception as e:
        console.print(f"[bold red]x[/bold red] Backup failed: {e}")
        return 1


def cmd_restore(args: argparse.Namespace) -> int:
    """Handle restore command."""
    try:
        return asyncio.run(_async_restore(args))
    except (BackupValidationError, ProfileNotFoundError, FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]x[/bold red] {e}")
        return 1
    except Exception as e:
        console.print(f"[bold red]x[/bold red] Restore failed: {e}")
        return 1


def cmd_validate(args: argparse.Namespace) -> int:
    """Handle validate command."""
    result = validate_backup(args.backup_path)

    console.print(f"Validating: [cyan]{args.backup_path}[/cyan]")

    if result["errors"]:
        console.print(f"\n[red]INVALID - Found {len(result['errors'])} errors:[/red]")
        for error in result["errors"]:
            console.print(f"   - {error}")

    if result["warnings"]:
        console.print(f"\n[yellow]Found {len(result['warnings'])} warnings:[/yellow]")
        for warning in result["warnings"]:
            console.print(f"   - {warning}")

    if result["valid"]:
        suffix = " (with warnings)" if result["warnings"] else ""
        console.print(f"\n[bold green]v[/bold green] Backup is valid{suffix}")
        return 0

    console.print("\n[bold red]x[/bold red] Backup is invalid")
    return 1


def cmd_profiles(args: argparse.Namespace) -> int:
    """Handle profiles command."""
    try:
        config = _load(args)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]x[/bold red] {e}")
        return 1

    if not config.profiles:
        console.print("[yellow]No profiles configured.[/yellow]")
        return 0

    try:
        active = get_active_profile_name(config, args.profile)
    except ProfileNotFoundError:
        active = None

    table = Table(title=f"Profiles ({args.config or default_config_path()})")
    table.add_column("Name", style="cyan")
    table.add_column("Provider")
    table.add_column("Description")
    table.add_column("Active", justify="center")

    for name, profile in config.profiles.items():
        table.add_row(name, profile.provider, profile.description, "*" if name == active else "")

    console.print(table)
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Handle serve command."""
    import uvicorn

    from taskvault.api import create_app

    uvicorn.run(create_app(profile_name=args.profile), host=args.host, port=args.port)
    return 0


# ============================================================================
# Argument parsing
# ============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="taskvault",
        description="Backup and restore for task manager collections",
    )
    parser.add_argument("--profile", "-P", help="Store profile (default: TASKVAULT_PROFILE or default_profile)")
    parser.add_argument("--config", "-c", type=Path, help="Path to taskvault.toml")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")
    subparsers.required = True

    collections_help = f"Comma-separated collections (default: {','.join(BACKUP_COLLECTIONS)})"

    backup_parser = subparsers.add_parser("backup", help="Export collections to a JSON file")
    backup_parser.add_argument("--collections", help=collections_help)
    backup_parser.add_argument("--output", "-o", help="Output file (default: backups/task-manager-backup-<ts>.json)")
    backup_parser.add_argument("--page-size", type=int, help="Documents per page (default from config)")
    backup_parser.set_defaults(func=cmd_backup)

    restore_parser = subparsers.add_parser("restore", help="Restore a JSON backup file")
    restore_parser.add_argument("backup_path", help="Path to backup JSON file")
    restore_parser.add_argument(
        "--strategy", "-s",
        choices=["skip", "overwrite"],
        default="skip",
        help="How to handle existing documents (default: skip)",
    )
    restore_parser.add_argument("--collections", help="Only restore these collections")
    restore_parser.add_argument("--yes", "-y", action="store_true", help="Skip confirmation prompt")
    restore_parser.set_defaults(func=cmd_restore)

    validate_parser = subparsers.add_parser("validate", help="Validate a backup file")
    validate_parser.add_argument("backup_path", help="Path to backup JSON file")
    validate_parser.set_defaults(func=cmd_validate)

    profiles_parser = subparsers.add_parser("profiles", help="List store profiles")
    profiles_parser.set_defaults(func=cmd_profiles)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)
    serve_parser.set_defaults(func=cmd_serve)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
