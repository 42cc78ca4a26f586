"""Backup file serialization.

Writes ``BackupData`` as pretty-printed JSON and reads uploaded backup
files back, rejecting malformed content before any restore work begins.

Usage:
    from taskvault.backup.files import export_backup_to_file, read_backup_file

    path = export_backup_to_file(backup)
    backup = read_backup_file(path)
"""

import json
from datetime import datetime
from pathlib import Path

from taskvault.backup.backup_restore import (
    BackupValidationError,
    coerce_backup,
    validate_backup_data,
)
from taskvault.backup.models import BackupData

DEFAULT_FILENAME_PREFIX = "task-manager-backup"


def default_backup_filename(now: datetime | None = None) -> str:
    """``task-manager-backup-<YYYY-MM-DDTHH-MM-SS>.json`` for the given time."""
    now = now or datetime.now()
    return f"{DEFAULT_FILENAME_PREFIX}-{now.strftime('%Y-%m-%dT%H-%M-%S')}.json"


def export_backup_to_file(backup: BackupData, output_path: str | None = None) -> str:
    """Write a backup as indented JSON.

    Args:
        backup: Backup to serialize.
        output_path: Destination file.  When ``None``, a timestamped file
            is created under ``./backups/``.

    Returns:
        Path of the written file.

    Example:
        path = export_backup_to_file(backup, "exports/nightly.json")
    """
    if output_path is None:
        backups_dir = Path.cwd() / "backups"
        backups_dir.mkdir(exist_ok=True)
        output_path = str(backups_dir / default_backup_filename())

    output_path_obj = Path(output_path)
    output_path_obj.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w", encoding="utf-8") as f:
        f.write(backup_to_json(backup))

    return output_path


def backup_to_json(backup: BackupData) -> str:
    """Pretty-printed JSON text of a backup."""
    return json.dumps(backup.model_dump(mode="json"), indent=2, ensure_ascii=False)


def parse_backup_json(text: str) -> BackupData:
    """Parse backup JSON text.

    Raises:
        BackupValidationError: If the text is not JSON or not a valid backup.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise BackupValidationError(f"Invalid backup file format: {e}") from e

    try:
        return coerce_backup(data)
    except BackupValidationError as e:
        raise BackupValidationError(f"Invalid backup file format: {e}") from e


def read_backup_file(backup_path: str | Path) -> BackupData:
    """Read and parse a backup file from disk.

    Raises:
        BackupValidationError: If the file cannot be read or parsed.
    """
    try:
        text = Path(backup_path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise BackupValidationError(f"Failed to read backup file: {e}") from e
    return parse_backup_json(text)


def validate_backup(backup_path: str | Path) -> dict:
    """Validate a backup file on disk without touching any store.

    Returns:
        Dict with ``valid`` (bool), ``errors`` (list[str]),
        and ``warnings`` (list[str]).

    Example:
        report = validate_backup("backups/task-manager-backup.json")
        if report["errors"]:
            raise ValueError("Backup is invalid")
    """
    try:
        with open(backup_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        return {"valid": False, "errors": [f"Backup file not found: {backup_path}"], "warnings": []}
    except json.JSONDecodeError as e:
        return {"valid": False, "errors": [f"Invalid JSON: {e}"], "warnings": []}
    except (OSError, UnicodeDecodeError) as e:
        return {"valid": False, "errors": [f"Failed to read backup file: {e}"], "warnings": []}

    return validate_backup_data(data)
