"""Pydantic models for API requests and responses."""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime, timezone


class RestoreRequest(BaseModel):
    backup_id: str = Field(..., min_length=1)


class RestoreResponse(BaseModel):
    backup_id: str
    message: str = "Restore initiated"


class StorageUsage(BaseModel):
    used: int = Field(..., ge=0)
    limit: int = Field(..., gt=0)
    percentage: float


class HealthStatus(BaseModel):
    status: str  # "healthy", "degraded"
    mode: str
    config_error: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
