"""Health check endpoints."""

from fastapi import APIRouter, Depends
from typing import Dict

from ..models import HealthStatus
from ..dependencies import get_backup_manager
from tenant_backup import BackupManager

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthStatus)
async def health_check(backup_manager: BackupManager = Depends(get_backup_manager)) -> HealthStatus:
    """Report the deployment mode chosen at startup.

    A cloud configuration that could not be used leaves the service running
    on local storage, reported as degraded together with the reason.
    """
    status = "degraded" if backup_manager.config_error else "healthy"
    return HealthStatus(
        status=status,
        mode=backup_manager.mode.value,
        config_error=backup_manager.config_error,
    )


@router.get("/live")
async def liveness_probe() -> Dict[str, str]:
    """Kubernetes liveness probe."""
    return {"status": "alive"}
