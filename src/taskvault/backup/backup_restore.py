"""Collection backup and restore over a ``DocumentStore``.

Backups walk each selected collection in fixed-size pages and normalize
every document into JSON-safe form.  Restores apply a backup document by
document, in fixed-size chunks, and never stop on a single document's
failure -- the outcome is tallied in a ``RestoreSummary`` that callers must
inspect for ``errors > 0``.

Reads and writes are strictly serial: one page gates the next (the cursor
depends on it) and documents within a chunk are written one at a time.
There is no cross-document transaction, so an interrupted restore leaves
the destination partially restored.

Usage:
    from taskvault.adapters.memory import InMemoryDocumentStore
    from taskvault.backup.backup_restore import backup_data, restore_data

    store = InMemoryDocumentStore()

    # Backup
    backup = await backup_data(store, ["tasks", "groups"])

    # Restore
    summary = await restore_data(store, backup, strategy="overwrite")
    if summary.errors:
        for warning in summary.warnings:
            ...
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Iterable

from pydantic import ValidationError

from taskvault.adapters.base import DocumentStore
from taskvault.backup.models import (
    BACKUP_COLLECTIONS,
    BACKUP_VERSION,
    BackupData,
    ProgressListener,
    RestoreStrategy,
    RestoreSummary,
)
from taskvault.timestamps import denormalize, normalize

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100
DEFAULT_CHUNK_SIZE = 100
DEFAULT_PROGRESS_INTERVAL = 10

REQUIRED_KEYS = ("version", "timestamp", "collections")


class BackupValidationError(ValueError):
    """Backup input rejected before any read or write took place."""


class OperationCancelledError(Exception):
    """Backup or restore stopped because its cancel event was set."""


def select_collections(collections: Iterable[str] | None) -> list[str]:
    """Filter a requested collection list down to the known names.

    Unknown names are dropped and duplicates collapsed, keeping the
    caller's order.

    Raises:
        BackupValidationError: If the list is empty or nothing known remains.
    """
    requested = list(collections or [])
    if not requested:
        raise BackupValidationError("Collections array is required and cannot be empty")

    selected: list[str] = []
    for name in requested:
        if name not in BACKUP_COLLECTIONS:
            logger.warning("Ignoring unknown collection %r", name)
            continue
        if name not in selected:
            selected.append(name)

    if not selected:
        raise BackupValidationError("No valid collections specified")
    return selected


async def backup_data(
    store: DocumentStore,
    collections: Iterable[str],
    progress: ProgressListener | None = None,
    page_size: int = DEFAULT_PAGE_SIZE,
    cancel_event: asyncio.Event | None = None,
) -> BackupData:
    """Export the selected collections into a ``BackupData``.

    Each collection is read in pages of ``page_size`` documents ordered by
    ID, resuming after the last ID of the previous page.  Reading stops at
    an empty page or one shorter than ``page_size``.

    Args:
        store: Source document store.
        collections: Collection names to export; unknown names are dropped.
        progress: Optional listener notified after every page.
        page_size: Documents per query.
        cancel_event: When set, the export stops before the next page.

    Returns:
        Backup holding every document of every selected collection.

    Raises:
        BackupValidationError: If no known collection was requested.
        OperationCancelledError: If ``cancel_event`` was set.
        Exception: Any store failure, unchanged -- the export is aborted.

    Example:
        backup = await backup_data(store, ["technicians"], page_size=50)
        assert backup.collections["technicians"][0]["id"]
    """
    if page_size < 1:
        raise BackupValidationError(f"page_size must be at least 1, got {page_size}")

    selected = select_collections(collections)
    total = len(selected)
    logger.info("Starting backup of %s", ", ".join(selected))

    result: dict[str, list[dict[str, Any]]] = {}

    for index, name in enumerate(selected):
        _notify(progress, index / total * 100, f"Backing up {name}...")

        documents = await _export_collection(
            store, name, page_size, index, total, progress, cancel_event
        )
        result[name] = documents

        logger.info("Backed up %d documents from %s", len(documents), name)
        _notify(
            progress,
            (index + 1) / total * 100,
            f"Completed backup of {name} ({len(documents)} items)",
        )

    _notify(progress, 100, "Backup completed successfully!")

    return BackupData(
        version=BACKUP_VERSION,
        timestamp=datetime.now(timezone.utc).isoformat(),
        collections=result,
    )


async def _export_collection(
    store: DocumentStore,
    name: str,
    page_size: int,
    index: int,
    total: int,
    progress: ProgressListener | None,
    cancel_event: asyncio.Event | None,
) -> list[dict[str, Any]]:
    """Read every document of one collection, page by page."""
    documents: list[dict[str, Any]] = []
    cursor: str | None = None
    pages = 0

    while True:
        _check_cancelled(cancel_event, f"Backup cancelled while reading {name}")

        page = await store.list_page(name, page_size, start_after=cursor)
        if not page:
            break

        for doc_id, fields in page:
            documents.append(_to_backup_document(doc_id, fields))

        cursor = page[-1][0]
        pages += 1

        # Blend this collection's estimated share into the overall figure
        collection_share = pages * page_size / (len(documents) + page_size)
        _notify(
            progress,
            index / total * 100 + (1 / total) * collection_share * 100,
            f"Backing up {name}... ({len(documents)} items)",
        )

        if len(page) < page_size:
            break

    return documents


def _to_backup_document(doc_id: str, fields: dict[str, Any]) -> dict[str, Any]:
    """Normalized copy of ``fields`` keyed by the document ID."""
    document: dict[str, Any] = {"id": doc_id}
    for key, value in normalize(fields).items():
        # The store key is authoritative over a stored "id" field
        if key != "id":
            document[key] = value
    return document


async def restore_data(
    store: DocumentStore,
    backup: BackupData | dict[str, Any],
    strategy: RestoreStrategy | str = RestoreStrategy.SKIP,
    progress: ProgressListener | None = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    progress_interval: int = DEFAULT_PROGRESS_INTERVAL,
    collections: Iterable[str] | None = None,
    cancel_event: asyncio.Event | None = None,
) -> RestoreSummary:
    """Apply a backup to the destination store.

    For each document: look it up by ``id``; if it exists, ``overwrite``
    merges the backup's fields into it and ``skip`` leaves it alone; if it
    does not exist it is created under its original ID.  A failure on one
    document is counted in ``errors``, described in ``warnings``, and the
    restore moves on.

    Args:
        store: Destination document store.
        backup: ``BackupData`` or its raw dict form (validated first).
        strategy: ``"overwrite"`` or ``"skip"`` for existing documents.
        progress: Optional listener notified every ``progress_interval``
            documents and at the end of each chunk.
        chunk_size: Documents per chunk.
        progress_interval: Documents between progress notifications.
        collections: Restrict the restore to these collections.  A
            requested collection missing from the backup only adds a
            warning.
        cancel_event: When set, the restore stops before the next document.

    Returns:
        Summary with ``processed``, ``created``, ``updated``, ``skipped``,
        ``errors`` and ``warnings``.  ``processed`` includes errored
        documents.

    Raises:
        BackupValidationError: If the backup or arguments are invalid.
            Nothing has been written in that case.
        OperationCancelledError: If ``cancel_event`` was set.
        Exception: Failures outside per-document handling propagate after
            a 0% "Restore failed" progress notification.

    Example:
        summary = await restore_data(store, backup, strategy="skip")
        logger.info(summary.describe())
    """
    backup = coerce_backup(backup)
    strategy = _coerce_strategy(strategy)
    if chunk_size < 1:
        raise BackupValidationError(f"chunk_size must be at least 1, got {chunk_size}")
    if progress_interval < 1:
        raise BackupValidationError(
            f"progress_interval must be at least 1, got {progress_interval}"
        )

    summary = RestoreSummary()
    plan = _plan_restore(backup, collections, summary)
    total_items = sum(len(items) for _, items in plan)

    logger.info(
        "Starting restore of %d documents (strategy=%s)", total_items, strategy.value
    )

    try:
        for name, items in plan:
            _notify(progress, _percent(summary.processed, total_items), f"Restoring {name}...")

            for start in range(0, len(items), chunk_size):
                chunk = items[start:start + chunk_size]
                _notify(
                    progress,
                    _percent(summary.processed, total_items),
                    f"Restoring {name}... ({summary.processed + 1} to "
                    f"{summary.processed + len(chunk)} of {total_items})",
                )

                for position, item in enumerate(chunk, 1):
                    _check_cancelled(cancel_event, f"Restore cancelled while writing {name}")

                    await _restore_document(store, name, item, strategy, summary)

                    if position % progress_interval == 0 or position == len(chunk):
                        _notify(
                            progress,
                            _percent(summary.processed, total_items),
                            f"Restoring {name}... ({summary.processed} of "
                            f"{total_items}) {summary.describe()}",
                        )
    except Exception as e:
        logger.error("Restore aborted after %d documents: %s", summary.processed, e)
        _notify(progress, 0, f"Restore failed: {e}")
        raise

    logger.info("Restore finished: %s", summary.describe())
    _notify(progress, 100, f"Restore completed: {summary.describe()}")

    return summary


def _plan_restore(
    backup: BackupData,
    collections: Iterable[str] | None,
    summary: RestoreSummary,
) -> list[tuple[str, list[dict[str, Any]]]]:
    """Pick the (collection, items) pairs to restore, warning about gaps."""
    if collections is None:
        return list(backup.collections.items())

    plan: list[tuple[str, list[dict[str, Any]]]] = []
    for name in collections:
        if name not in backup.collections:
            message = f"Collection '{name}' not found in backup"
            logger.warning(message)
            summary.warnings.append(message)
            continue
        if name not in [planned for planned, _ in plan]:
            plan.append((name, backup.collections[name]))
    return plan


async def _restore_document(
    store: DocumentStore,
    collection: str,
    item: dict[str, Any],
    strategy: RestoreStrategy,
    summary: RestoreSummary,
) -> None:
    """Restore one document, recording the outcome in ``summary``."""
    doc_id = item.get("id")
    try:
        if not isinstance(doc_id, str) or not doc_id:
            raise ValueError(f"document has no usable 'id' (got {doc_id!r})")

        fields = denormalize({k: v for k, v in item.items() if k != "id"})
        existing = await store.get(collection, doc_id)

        if existing is not None:
            if strategy is RestoreStrategy.OVERWRITE:
                await store.update(collection, doc_id, fields)
                summary.updated += 1
            else:
                summary.skipped += 1
        else:
            await store.set(collection, doc_id, fields)
            summary.created += 1
    except Exception as e:
        summary.errors += 1
        message = f"Error restoring {collection}/{doc_id}: {e}"
        summary.warnings.append(message)
        logger.warning(message)

    summary.processed += 1


def coerce_backup(data: BackupData | Any) -> BackupData:
    """Validate raw backup input into a ``BackupData``.

    Raises:
        BackupValidationError: If required keys are missing or malformed.
    """
    if isinstance(data, BackupData):
        return data

    report = validate_backup_data(data)
    if report["errors"]:
        raise BackupValidationError(f"Invalid backup data: {'; '.join(report['errors'])}")

    try:
        return BackupData.model_validate(data)
    except ValidationError as e:
        raise BackupValidationError(f"Invalid backup data: {e}") from e


def validate_backup_data(data: Any) -> dict:
    """Check a raw backup object's structure.

    Errors are structural problems that make the backup unusable: missing
    top-level keys, unknown collections, items that are not objects.
    Per-document problems (missing or duplicate IDs) are warnings because
    the restore reports them per document without stopping.

    Returns:
        Dict with ``valid`` (bool), ``errors`` (list[str]),
        and ``warnings`` (list[str]).

    Example:
        report = validate_backup_data(json.loads(text))
        if not report["valid"]:
            raise ValueError("; ".join(report["errors"]))
    """
    errors: list[str] = []
    warnings: list[str] = []

    if not isinstance(data, dict):
        errors.append(f"Backup must be a JSON object, got {type(data).__name__}")
        return {"valid": False, "errors": errors, "warnings": warnings}

    for key in REQUIRED_KEYS:
        if data.get(key) is None:
            errors.append(f"Missing required key: {key}")

    if errors:
        return {"valid": False, "errors": errors, "warnings": warnings}

    if not isinstance(data["version"], str) or not data["version"]:
        errors.append("'version' must be a non-empty string")
    elif data["version"] != BACKUP_VERSION:
        warnings.append(
            f"Backup version '{data['version']}' differs from '{BACKUP_VERSION}'"
        )

    if not isinstance(data["timestamp"], str):
        errors.append("'timestamp' must be a string")
    else:
        try:
            datetime.fromisoformat(data["timestamp"].replace("Z", "+00:00"))
        except ValueError:
            warnings.append(f"Backup timestamp is not ISO-8601: {data['timestamp']!r}")

    collections = data["collections"]
    if not isinstance(collections, dict):
        errors.append("'collections' must be an object")
        return {"valid": False, "errors": errors, "warnings": warnings}

    for name, items in collections.items():
        if name not in BACKUP_COLLECTIONS:
            errors.append(f"Unknown collection: {name}")
            continue
        if not isinstance(items, list):
            errors.append(f"Collection '{name}' must be a list")
            continue

        seen: set[str] = set()
        for position, item in enumerate(items):
            if not isinstance(item, dict):
                errors.append(f"{name} item {position} is not an object")
                continue
            doc_id = item.get("id")
            if not isinstance(doc_id, str) or not doc_id:
                warnings.append(f"{name} item {position} has no usable 'id'")
            elif doc_id in seen:
                warnings.append(f"{name} has duplicate id '{doc_id}'")
            else:
                seen.add(doc_id)

    valid = len(errors) == 0
    return {"valid": valid, "errors": errors, "warnings": warnings}


def _coerce_strategy(strategy: RestoreStrategy | str) -> RestoreStrategy:
    try:
        return RestoreStrategy(strategy)
    except ValueError as e:
        raise BackupValidationError(
            f"Unknown restore strategy {strategy!r} (expected 'overwrite' or 'skip')"
        ) from e


def _check_cancelled(cancel_event: asyncio.Event | None, message: str) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise OperationCancelledError(message)


def _percent(done: int, total: int) -> float:
    if total == 0:
        return 0.0
    return done / total * 100


def _notify(progress: ProgressListener | None, percent: float, message: str) -> None:
    if progress is not None:
        progress.on_progress(min(max(percent, 0.0), 100.0), message)
