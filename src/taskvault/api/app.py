"""FastAPI application exposing backup and restore."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from taskvault.adapters.base import DocumentStore
from taskvault.config.loader import load_config
from taskvault.config.models import BackupSettings
from taskvault.factory import get_store

from .routers import backup, health

logger = logging.getLogger(__name__)

API_PREFIX = "/api"


def create_app(
    store: DocumentStore | None = None,
    backup_settings: BackupSettings | None = None,
    profile_name: str | None = None,
) -> FastAPI:
    """Build the API app.

    With an explicit ``store`` the caller owns its lifecycle.  Without one,
    the store for the active profile is created at startup and closed at
    shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned: DocumentStore | None = None
        if app.state.store is None:
            config = load_config()
            logger.info("Initializing document store...")
            owned = get_store(profile_name, config)
            app.state.store = owned
            if backup_settings is None:
                app.state.backup_settings = config.backup
        try:
            yield
        finally:
            if owned is not None:
                logger.info("Closing document store...")
                await owned.close()
                app.state.store = None

    app = FastAPI(title="taskvault API", lifespan=lifespan)
    app.state.store = store
    app.state.backup_settings = backup_settings or BackupSettings()

    app.include_router(backup.router, prefix=API_PREFIX)
    app.include_router(health.router, prefix=API_PREFIX)

    return app
