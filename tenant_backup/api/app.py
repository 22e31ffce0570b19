"""FastAPI application for tenant-backup."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import dataclasses
import logging

from tenant_backup import BackupManager
from tenant_backup.config import BackupConfig
from tenant_backup.backup.usage import InMemoryUsageLedger
from .config import settings
from .routers import backup, health

# Configure tenant-backup logger with app-managed pattern
# This ensures INFO logs are visible regardless of uvicorn's logging config
import sys
import os

package_logger = logging.getLogger("tenant-backup")
package_logger.setLevel(logging.INFO)

# App-managed pattern: attach our own handler and don't propagate
package_logger.propagate = False
package_logger.handlers.clear()

console_handler = logging.StreamHandler(sys.stdout)
console_handler.setLevel(logging.INFO)
formatter = logging.Formatter(
    '%(asctime)s - [%(name)s] - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
console_handler.setFormatter(formatter)
package_logger.addHandler(console_handler)

# Allow disabling app-managed logging via env var for production
if os.getenv("DISABLE_APP_LOGGING", "false").lower() == "true":
    package_logger.handlers.clear()
    package_logger.propagate = True  # Fall back to server-managed pattern

logger = logging.getLogger(__name__)


def build_config() -> BackupConfig:
    """Environment configuration with the API settings overrides applied."""
    config = BackupConfig.from_env()

    overrides = {
        key: value
        for key, value in (
            ("database_path", settings.database_path),
            ("backup_root", settings.backup_root),
            ("staging_dir", settings.staging_dir),
        )
        if value
    }

    storage_overrides = {
        key: value
        for key, value in (
            ("endpoint_url", settings.storage_url),
            ("access_key", settings.storage_key),
            ("secret_key", settings.storage_secret),
            ("container", settings.storage_container),
        )
        if value
    }
    if storage_overrides:
        overrides["object_storage"] = dataclasses.replace(config.object_storage, **storage_overrides)

    return dataclasses.replace(config, **overrides)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Resolve the deployment mode once for the process lifetime."""
    logger.info("Initializing backup manager...")

    config = build_config()
    app.state.usage_recorder = InMemoryUsageLedger()
    try:
        app.state.backup_manager = BackupManager.from_config(config, app.state.usage_recorder)
    except Exception as e:
        logger.error(f"Failed to initialize backup manager: {e}")
        raise

    manager = app.state.backup_manager
    if manager.config_error:
        logger.warning(f"Running in {manager.mode.value} mode: {manager.config_error}")
    else:
        logger.info(f"Backup manager initialized in {manager.mode.value} mode")

    yield

    logger.info("Shutting down backup manager...")


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
        docs_url=f"{settings.api_prefix}/docs",
        openapi_url=f"{settings.api_prefix}/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(backup.router, prefix=settings.api_prefix)
    app.include_router(health.router, prefix=settings.api_prefix)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": settings.api_title,
            "version": settings.api_version,
            "docs": f"{settings.api_prefix}/docs"
        }

    return app


# Create default app instance
app = create_app()
