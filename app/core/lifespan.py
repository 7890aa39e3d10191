"""Application lifespan: startup and shutdown.

Single place for all startup/shutdown logic (SRP). Used by main.py;
no business logic here, only wiring of infrastructure (Firebase clients,
migration guard) and the opportunistic role permission migration.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.application.services.permission_migration_service import (
    MigrationState,
    PermissionMigrationService,
)
from app.core.config import get_settings
from app.infrastructure.firebase.client import (
    close_firebase,
    get_firestore_client,
    init_firebase,
)
from app.infrastructure.firebase.repositories import (
    FirestoreRoleRepository,
    FirestoreTenantRepository,
)
from app.infrastructure.firebase.tenant_store import TenantScopedStore
from app.shared.telemetry.logging import setup_logging

logger = logging.getLogger(__name__)


async def run_startup_migration(app: FastAPI) -> None:
    """Run the role permission migration once per process; never fatal."""
    client = get_firestore_client()
    if client is None:
        return
    store = TenantScopedStore(client, batch_limit=get_settings().batch_write_limit)
    engine = PermissionMigrationService(
        FirestoreTenantRepository(store),
        FirestoreRoleRepository(store),
        app.state.migration_state,
    )
    try:
        result = await engine.run_on_startup()
    except Exception:
        logger.exception("Startup role permission migration failed")
        return
    if result is not None:
        logger.info("Startup role permission migration: %s", result.message)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup order: logging, Firebase clients, migration guard, startup
    migration (if enabled). Shutdown: close Firebase HTTP clients.
    """
    settings = get_settings()
    setup_logging()

    # ---- Startup ----
    if not init_firebase():
        logger.warning("Firebase not configured; backed routes will answer 503")
    app.state.migration_state = MigrationState()
    if settings.auto_migrate_roles_on_startup:
        await run_startup_migration(app)

    yield

    # ---- Shutdown ----
    await close_firebase()
