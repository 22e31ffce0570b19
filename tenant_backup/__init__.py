from .backup.manager import BackupManager
from .backup.models import BackupOutcome, BackupRecord, DeploymentMode
from .config import BackupConfig, ObjectStorageConfig

__version__ = "0.1.0"
__author__ = "Tenant Backup Contributors"
__url__ = "https://github.com/tenant-backup/tenant-backup"

__all__ = [
    "BackupManager",
    "BackupOutcome",
    "BackupRecord",
    "DeploymentMode",
    "BackupConfig",
    "ObjectStorageConfig",
]
