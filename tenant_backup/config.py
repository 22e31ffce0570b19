"""Configuration management for tenant-backup."""

import os
from dataclasses import dataclass, field
from typing import Optional

REMOTE_URL_SCHEMES = ("http://", "https://")
USAGE_POLICIES = ("latest", "cumulative")


@dataclass(frozen=True)
class ObjectStorageConfig:
    """Remote object storage configuration."""
    endpoint_url: Optional[str] = None
    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    region: str = "us-east-1"
    container: str = "backups"
    max_object_size: int = 50 * 1024 * 1024  # 50 MiB
    content_type: str = "application/zip"
    list_page_size: int = 100
    request_timeout: float = 30.0
    max_attempts: int = 3

    @classmethod
    def from_env(cls) -> 'ObjectStorageConfig':
        """Create config from environment variables."""
        return cls(
            endpoint_url=os.getenv("BACKUP_STORAGE_URL") or None,
            access_key=os.getenv("BACKUP_STORAGE_KEY") or None,
            secret_key=os.getenv("BACKUP_STORAGE_SECRET") or None,
            region=os.getenv("BACKUP_STORAGE_REGION", "us-east-1"),
            container=os.getenv("BACKUP_CONTAINER", "backups"),
            max_object_size=int(os.getenv("BACKUP_MAX_OBJECT_SIZE", str(50 * 1024 * 1024))),
            list_page_size=int(os.getenv("BACKUP_LIST_PAGE_SIZE", "100")),
            request_timeout=float(os.getenv("BACKUP_REQUEST_TIMEOUT", "30.0")),
            max_attempts=int(os.getenv("BACKUP_MAX_ATTEMPTS", "3")),
        )

    def __post_init__(self):
        """Validate configuration."""
        if not self.container:
            raise ValueError("container must not be empty")
        if self.max_object_size <= 0:
            raise ValueError(f"max_object_size must be positive, got {self.max_object_size}")
        if self.list_page_size <= 0:
            raise ValueError(f"list_page_size must be positive, got {self.list_page_size}")
        if self.request_timeout <= 0:
            raise ValueError(f"request_timeout must be positive, got {self.request_timeout}")
        if self.max_attempts <= 0:
            raise ValueError(f"max_attempts must be positive, got {self.max_attempts}")

    @property
    def is_configured(self) -> bool:
        """Endpoint and key are present and the endpoint looks like a URL."""
        if not self.endpoint_url or not self.access_key:
            return False
        return self.endpoint_url.lower().startswith(REMOTE_URL_SCHEMES)


@dataclass(frozen=True)
class BackupConfig:
    """Main backup configuration."""
    database_path: str = "./database.db"
    backup_root: str = "./backups"
    staging_dir: str = "./.backup_staging"
    usage_policy: str = "latest"  # latest, cumulative
    object_storage: ObjectStorageConfig = field(default_factory=ObjectStorageConfig)

    @classmethod
    def from_env(cls) -> 'BackupConfig':
        """Create complete config from environment variables."""
        return cls(
            database_path=os.getenv("BACKUP_DATABASE_PATH", "./database.db"),
            backup_root=os.getenv("BACKUP_ROOT", "./backups"),
            staging_dir=os.getenv("BACKUP_STAGING_DIR", "./.backup_staging"),
            usage_policy=os.getenv("BACKUP_USAGE_POLICY", "latest").lower(),
            object_storage=ObjectStorageConfig.from_env(),
        )

    def __post_init__(self):
        """Validate configuration."""
        if not self.database_path:
            raise ValueError("database_path must not be empty")
        if not self.backup_root:
            raise ValueError("backup_root must not be empty")
        if self.usage_policy not in USAGE_POLICIES:
            raise ValueError(f"Unknown usage policy: {self.usage_policy}. Valid: {', '.join(USAGE_POLICIES)}")
