"""Backup and restore API endpoints."""

import logging

from fastapi import APIRouter, Depends

from taskvault.adapters.base import DocumentStore
from taskvault.backup.backup_restore import (
    BackupValidationError,
    backup_data,
    coerce_backup,
    restore_data,
)
from taskvault.backup.models import RestoreStrategy
from taskvault.config.models import BackupSettings

from ..dependencies import get_backup_settings, get_store
from ..exceptions import InvalidRequestError, OperationFailedError
from ..models import BackupRequest, BackupResponse, RestoreRequest, RestoreResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["backup"])


@router.post("/backup", response_model=BackupResponse)
async def create_backup(
    request: BackupRequest,
    store: DocumentStore = Depends(get_store),
    settings: BackupSettings = Depends(get_backup_settings),
) -> BackupResponse:
    """Export the requested collections and return the backup JSON."""
    collections = request.collections
    if not isinstance(collections, list) or not collections:
        raise InvalidRequestError("Collections array is required and cannot be empty")

    try:
        backup = await backup_data(store, collections, page_size=settings.page_size)
    except BackupValidationError as e:
        logger.warning("Backup request rejected: %s", e)
        raise InvalidRequestError(str(e))
    except Exception as e:
        logger.error("Backup API error: %s", e)
        raise OperationFailedError("create backup", e)

    return BackupResponse(data=backup)


@router.post("/restore", response_model=RestoreResponse)
async def restore_backup(
    request: RestoreRequest,
    store: DocumentStore = Depends(get_store),
    settings: BackupSettings = Depends(get_backup_settings),
) -> RestoreResponse:
    """Restore a posted backup.

    Any strategy other than ``"overwrite"`` restores with ``"skip"``.
    A backup whose ``collections`` object is empty is accepted and answered
    with an all-zero summary, not rejected with a 400.
    The response is 200 even when some documents failed; callers check
    ``summary.errors``.
    """
    if not isinstance(request.backup_data, dict):
        raise InvalidRequestError("Valid backup data is required")

    try:
        backup = coerce_backup(request.backup_data)
    except BackupValidationError as e:
        logger.warning("Restore request rejected: %s", e)
        raise InvalidRequestError(f"Invalid backup data format: {e}")

    strategy = (
        RestoreStrategy.OVERWRITE if request.strategy == "overwrite" else RestoreStrategy.SKIP
    )

    try:
        summary = await restore_data(
            store,
            backup,
            strategy=strategy,
            chunk_size=settings.chunk_size,
            progress_interval=settings.progress_interval,
        )
    except Exception as e:
        logger.error("Restore API error: %s", e)
        raise OperationFailedError("restore backup", e)

    return RestoreResponse(summary=summary)
