"""Per-owner database backup and restore."""

from .backends import LocalFilesystemBackend, ObjectStorageBackend, StorageBackend
from .exceptions import (
    ArchiveIOError,
    BackendProvisioningError,
    BackendTransferError,
    BackupError,
    BackupNotFoundError,
    InvalidIdentifierError,
    SourceMissingError,
)
from .manager import BackupManager
from .models import BackupOutcome, BackupRecord, DeploymentMode, StoredArchive
from .resolver import BackendResolution, resolve_backend, resolve_mode
from .usage import InMemoryUsageLedger, StorageUsageRecorder

__all__ = [
    "BackupManager",
    "BackupOutcome",
    "BackupRecord",
    "DeploymentMode",
    "StoredArchive",
    "StorageBackend",
    "LocalFilesystemBackend",
    "ObjectStorageBackend",
    "BackendResolution",
    "resolve_backend",
    "resolve_mode",
    "StorageUsageRecorder",
    "InMemoryUsageLedger",
    "BackupError",
    "SourceMissingError",
    "ArchiveIOError",
    "BackendProvisioningError",
    "BackendTransferError",
    "BackupNotFoundError",
    "InvalidIdentifierError",
]
