"""Dependency injection for FastAPI."""

from typing import TYPE_CHECKING

from fastapi import Request

if TYPE_CHECKING:
    from taskvault.adapters.base import DocumentStore
    from taskvault.config.models import BackupSettings


async def get_store(request: Request) -> "DocumentStore":
    """Get the document store from app state."""
    return request.app.state.store


async def get_backup_settings(request: Request) -> "BackupSettings":
    """Get page/chunk sizes from app state."""
    return request.app.state.backup_settings
