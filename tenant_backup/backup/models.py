"""Data models for backup/restore operations."""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class DeploymentMode(str, Enum):
    """Process-wide storage mode, fixed at startup."""
    CLOUD = "cloud"
    LOCAL = "local"


class StoredArchive(BaseModel):
    """Result of persisting an archive into a backend."""

    stored_id: str = Field(..., description="Backend-specific archive name")
    size_bytes: int = Field(..., ge=0)


class BackupRecord(BaseModel):
    """Backup listing entry derived from backend metadata."""

    id: str = Field(..., description="Opaque backend-specific name")
    name: str
    size_bytes: int = Field(0, ge=0)
    created_at: datetime


class BackupOutcome(BaseModel):
    """Uniform result of a backup request."""

    success: bool
    size_bytes: int = 0
    message: str
    backup_id: Optional[str] = None
    error: Optional[str] = Field(None, description="Error kind when success is false")
