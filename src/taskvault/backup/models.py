"""Backup data models.

A backup is a ``BackupData`` object: a version string, an ISO-8601 creation
time, and the normalized documents of each exported collection.  Restores
report their outcome as a ``RestoreSummary``.

Usage:
    from taskvault.backup.models import BackupData, RestoreStrategy, RestoreSummary

    backup = BackupData(
        version="1.0",
        timestamp="2026-01-15T09:30:00+00:00",
        collections={"groups": [{"id": "g1", "name": "Network"}]},
    )
"""

from enum import Enum
from typing import Any, Literal, Protocol, get_args

from pydantic import BaseModel, Field, NonNegativeInt

BackupCollection = Literal["tasks", "technicians", "groups"]
BACKUP_COLLECTIONS: tuple[str, ...] = get_args(BackupCollection)

BACKUP_VERSION = "1.0"

# JSON-safe field map; always carries the document key under "id"
BackupDocument = dict[str, Any]


class RestoreStrategy(str, Enum):
    """What to do when a backed-up document already exists at the destination."""

    OVERWRITE = "overwrite"     # partial update with the backup's fields
    SKIP = "skip"               # leave the existing document untouched


class BackupData(BaseModel):
    """Portable backup of one or more collections."""

    version: str
    timestamp: str                                              # ISO-8601 creation time
    collections: dict[BackupCollection, list[BackupDocument]]   # name -> ordered documents

    @property
    def total_items(self) -> int:
        """Number of documents across all collections."""
        return sum(len(items) for items in self.collections.values())


class RestoreSummary(BaseModel):
    """Running tally of a restore.

    ``processed`` counts every document handled, including the ones that
    failed, so ``processed == created + updated + skipped + errors``.
    """

    processed: NonNegativeInt = 0
    created: NonNegativeInt = 0
    updated: NonNegativeInt = 0
    skipped: NonNegativeInt = 0
    errors: NonNegativeInt = 0
    warnings: list[str] = Field(default_factory=list)

    def describe(self) -> str:
        """One-line human-readable count summary."""
        return (
            f"{self.created} created, {self.updated} updated, "
            f"{self.skipped} skipped, {self.errors} errors"
        )


class ProgressListener(Protocol):
    """Receives progress notifications from backup and restore loops."""

    def on_progress(self, percent: float, message: str) -> None:
        """Called synchronously with an overall percentage (0-100) and a status line."""
        ...
