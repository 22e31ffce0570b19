"""Deployment mode resolution.

Decides once, at startup, whether archives go to remote object storage or to
the local filesystem. The decision is returned together with any configuration
problem so operators can see why a cloud deployment runs in local mode.
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional

import aioboto3

from .._utils import logger
from ..config import BackupConfig, ObjectStorageConfig
from .backends import LocalFilesystemBackend, ObjectStorageBackend, StorageBackend
from .models import DeploymentMode


@dataclass(frozen=True)
class BackendResolution:
    """Outcome of mode resolution: the active backend plus any config error."""
    mode: DeploymentMode
    backend: StorageBackend
    config_error: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.config_error is not None


def resolve_mode(config: ObjectStorageConfig) -> DeploymentMode:
    """Cloud iff endpoint and key are present and the endpoint is an http(s) URL."""
    return DeploymentMode.CLOUD if config.is_configured else DeploymentMode.LOCAL


def resolve_backend(
    config: BackupConfig,
    session_factory: Callable[..., Any] = aioboto3.Session,
) -> BackendResolution:
    """Construct the backend for this process.

    Args:
        config: Backup configuration
        session_factory: Callable returning an aioboto3-compatible session

    Returns:
        BackendResolution. Falls back to local storage when the remote
        configuration is malformed or the client cannot be constructed, and
        records the reason in ``config_error``.
    """
    storage = config.object_storage

    if resolve_mode(storage) is DeploymentMode.CLOUD:
        try:
            session = session_factory(
                aws_access_key_id=storage.access_key,
                aws_secret_access_key=storage.secret_key,
                region_name=storage.region,
            )
            backend = ObjectStorageBackend(session, storage, staging_dir=config.staging_dir)
        except Exception as e:
            error = f"Remote storage client could not be created: {e}"
            logger.warning(f"{error}. Falling back to local storage at {config.backup_root}")
            return BackendResolution(
                mode=DeploymentMode.LOCAL,
                backend=LocalFilesystemBackend(config.backup_root),
                config_error=error,
            )

        logger.info(f"Using remote storage {storage.endpoint_url} (container '{storage.container}')")
        return BackendResolution(mode=DeploymentMode.CLOUD, backend=backend)

    config_error = None
    if storage.endpoint_url or storage.access_key:
        config_error = "Remote storage configuration is incomplete or the endpoint is not an http(s) URL"
        logger.warning(f"{config_error}. Falling back to local storage at {config.backup_root}")
    else:
        logger.info(f"No remote storage configured. Using local storage at {config.backup_root}")

    return BackendResolution(
        mode=DeploymentMode.LOCAL,
        backend=LocalFilesystemBackend(config.backup_root),
        config_error=config_error,
    )
