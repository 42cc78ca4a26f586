"""taskvault: backup and restore for task manager collections.

Exports the ``tasks``, ``technicians`` and ``groups`` collections of a
document store into portable JSON, and restores them with an overwrite or
skip strategy.

Usage:
    from taskvault import backup_data, restore_data, get_store
    from taskvault import BackupData, RestoreSummary, RestoreStrategy
    from taskvault import Timestamp, normalize, denormalize
"""

__version__ = "0.1.0"

# Adapters
from taskvault.adapters.base import DocumentStore
from taskvault.adapters.memory import InMemoryDocumentStore
from taskvault.adapters.postgres import AsyncPostgresStore

# Backup
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

# Config
from taskvault.config.loader import load_config
from taskvault.config.models import BackupSettings, StoreConfig, StoreProfile

# Factory
from taskvault.factory import ProfileNotFoundError, create_store, get_store, resolve_url

# Timestamps
from taskvault.timestamps import Timestamp, denormalize, normalize

__all__ = [
    # Adapters
    "DocumentStore",
    "InMemoryDocumentStore",
    "AsyncPostgresStore",
    # Backup
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
    # Config
    "load_config",
    "BackupSettings",
    "StoreConfig",
    "StoreProfile",
    # Factory
    "get_store",
    "create_store",
    "resolve_url",
    "ProfileNotFoundError",
    # Timestamps
    "Timestamp",
    "normalize",
    "denormalize",
]

# Optional adapters (only available with the matching extra)
try:
    from taskvault.adapters.supabase import AsyncSupabaseStore

    __all__.append("AsyncSupabaseStore")
except ImportError:
    # supabase extra not installed -- AsyncSupabaseStore unavailable
    pass

try:
    from taskvault.adapters.firestore import AsyncFirestoreStore

    __all__.append("AsyncFirestoreStore")
except ImportError:
    # firestore extra not installed -- AsyncFirestoreStore unavailable
    pass
