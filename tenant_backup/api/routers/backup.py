"""Backup and restore API endpoints."""

from fastapi import APIRouter, Depends
from typing import List

from ..config import settings
from ..dependencies import get_backup_manager, get_owner_id, get_usage_recorder
from ..exceptions import BackupFailedError, RestoreFailedError
from ..models import RestoreRequest, RestoreResponse, StorageUsage
from tenant_backup import BackupManager
from tenant_backup.backup.models import BackupOutcome, BackupRecord
from tenant_backup.backup.usage import StorageUsageRecorder
from tenant_backup._utils import logger

router = APIRouter(prefix="/backup", tags=["backup"])


@router.post("", response_model=BackupOutcome)
async def create_backup(
    owner_id: str = Depends(get_owner_id),
    backup_manager: BackupManager = Depends(get_backup_manager),
) -> BackupOutcome:
    """Snapshot the database into the caller's backup namespace."""
    outcome = await backup_manager.create_backup(owner_id)
    if not outcome.success:
        raise BackupFailedError(outcome.message)
    return outcome


@router.get("", response_model=List[BackupRecord])
async def list_backups(
    owner_id: str = Depends(get_owner_id),
    backup_manager: BackupManager = Depends(get_backup_manager),
) -> List[BackupRecord]:
    """List the caller's backups, newest first."""
    return await backup_manager.list_backups(owner_id)


@router.post("/restore", response_model=RestoreResponse)
async def restore_backup(
    request: RestoreRequest,
    owner_id: str = Depends(get_owner_id),
    backup_manager: BackupManager = Depends(get_backup_manager),
) -> RestoreResponse:
    """Restore one of the caller's backups."""
    restored = await backup_manager.restore_backup(owner_id, request.backup_id)
    if not restored:
        raise RestoreFailedError(request.backup_id)

    logger.info(f"Restore requested by owner {owner_id}: {request.backup_id}")
    return RestoreResponse(backup_id=request.backup_id)


@router.get("/usage", response_model=StorageUsage)
async def storage_usage(
    owner_id: str = Depends(get_owner_id),
    usage: StorageUsageRecorder = Depends(get_usage_recorder),
) -> StorageUsage:
    """Recorded backup storage against the per-owner limit."""
    used = await usage.get_storage_usage(owner_id)
    limit = settings.storage_limit_bytes
    return StorageUsage(used=used, limit=limit, percentage=round(used / limit * 100, 2))
