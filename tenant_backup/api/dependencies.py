"""Dependency injection for FastAPI."""

from fastapi import Header, Request
from typing import TYPE_CHECKING, Optional

from .exceptions import OwnerRequiredError

if TYPE_CHECKING:
    from tenant_backup import BackupManager
    from tenant_backup.backup.usage import StorageUsageRecorder


async def get_backup_manager(request: Request) -> "BackupManager":
    """Get BackupManager instance from app state."""
    return request.app.state.backup_manager


async def get_usage_recorder(request: Request) -> "StorageUsageRecorder":
    """Get the usage accounting collaborator from app state."""
    return request.app.state.usage_recorder


async def get_owner_id(x_owner_id: Optional[str] = Header(default=None)) -> str:
    """Owner identity of the calling tenant, taken from the X-Owner-Id header."""
    if not x_owner_id or not x_owner_id.strip():
        raise OwnerRequiredError()
    return x_owner_id.strip()
