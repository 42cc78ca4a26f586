"""Collection backup and restore.

Provides paginated export of collections into portable ``BackupData``,
chunked restore with an overwrite/skip strategy, and JSON file helpers.

Usage:
    from taskvault.backup import backup_data, restore_data, RestoreStrategy
    from taskvault.backup import export_backup_to_file, read_backup_file
"""

from taskvault.backup.backup_restore import (
    BackupValidationError,
    OperationCancelledError,
    backup_data,
    restore_data,
    validate_backup_data,
)
from taskvault.backup.files import (
    export_backup_to_file,
    parse_backup_json,
    read_backup_file,
    validate_backup,
)
from taskvault.backup.models import (
    BACKUP_COLLECTIONS,
    BackupData,
    ProgressListener,
    RestoreStrategy,
    RestoreSummary,
)

__all__ = [
    "BACKUP_COLLECTIONS",
    "BackupData",
    "ProgressListener",
    "RestoreStrategy",
    "RestoreSummary",
    "BackupValidationError",
    "OperationCancelledError",
    "backup_data",
    "restore_data",
    "validate_backup_data",
    "export_backup_to_file",
    "parse_backup_json",
    "read_backup_file",
    "validate_backup",
]
