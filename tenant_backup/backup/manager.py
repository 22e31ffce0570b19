"""Backup and restore orchestration for tenant database snapshots."""

import asyncio
import shutil
import tempfile
import weakref
from datetime import datetime
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Optional, Union

from .._utils import logger, utc_now, format_size
from ..config import BackupConfig, USAGE_POLICIES
from .backends import StorageBackend
from .exceptions import BackupError, SourceMissingError
from .models import BackupOutcome, BackupRecord, DeploymentMode
from .resolver import resolve_backend
from .usage import StorageUsageRecorder
from .utils import (
    create_archive,
    generate_archive_name,
    verify_archive,
    validate_path_component,
)

RestoreHook = Callable[[str, Path], Awaitable[None]]


class BackupManager:
    """Coordinate archive creation, the active storage backend and usage accounting.

    Public operations never raise: ``create_backup`` returns a BackupOutcome,
    ``list_backups`` degrades to an empty list and ``restore_backup`` returns
    a boolean.
    """

    def __init__(
        self,
        backend: StorageBackend,
        usage: StorageUsageRecorder,
        database_path: Union[str, Path],
        staging_dir: Union[str, Path],
        usage_policy: str = "latest",
        restore_hook: Optional[RestoreHook] = None,
        clock: Callable[[], datetime] = utc_now,
        config_error: Optional[str] = None,
    ):
        """Initialize backup manager.

        Args:
            backend: Storage backend selected at startup
            usage: Collaborator receiving per-owner storage usage
            database_path: Database file to snapshot
            staging_dir: Directory for temporary archives
            usage_policy: "latest" records the newest backup size,
                "cumulative" adds it to the previous usage
            restore_hook: Async callable receiving (owner_id, archive_path) that
                swaps the live database. Without it restore only resolves and
                verifies the archive.
            clock: Source of the timestamp used for archive names
            config_error: Reason the remote backend was not used, if any
        """
        if usage_policy not in USAGE_POLICIES:
            raise ValueError(f"Unknown usage policy: {usage_policy}")

        self.backend = backend
        self.usage = usage
        self.database_path = Path(database_path)
        self.staging_dir = Path(staging_dir)
        self.usage_policy = usage_policy
        self.restore_hook = restore_hook
        self.clock = clock
        self.config_error = config_error
        # Entries vanish once no call holds or waits on the lock
        self._owner_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    @classmethod
    def from_config(
        cls,
        config: BackupConfig,
        usage: StorageUsageRecorder,
        restore_hook: Optional[RestoreHook] = None,
        **resolver_kwargs: Any,
    ) -> "BackupManager":
        """Resolve the deployment mode once and build a manager around it."""
        resolution = resolve_backend(config, **resolver_kwargs)
        return cls(
            backend=resolution.backend,
            usage=usage,
            database_path=config.database_path,
            staging_dir=config.staging_dir,
            usage_policy=config.usage_policy,
            restore_hook=restore_hook,
            config_error=resolution.config_error,
        )

    @property
    def mode(self) -> DeploymentMode:
        return self.backend.mode

    def _owner_lock(self, owner_id: str) -> asyncio.Lock:
        lock = self._owner_locks.get(owner_id)
        if lock is None:
            lock = asyncio.Lock()
            self._owner_locks[owner_id] = lock
        return lock

    async def create_backup(self, owner_id: str) -> BackupOutcome:
        """Snapshot the database into the owner's namespace.

        Args:
            owner_id: Tenant identifier

        Returns:
            BackupOutcome with the archive size on success
        """
        try:
            validate_path_component(owner_id, "owner id")
            async with self._owner_lock(owner_id):
                return await self._create_backup(owner_id)
        except Exception as e:
            logger.error(f"Backup failed for owner {owner_id}: {e}")
            return BackupOutcome(
                success=False,
                size_bytes=0,
                message=str(e),
                error=e.kind if isinstance(e, BackupError) else "internal",
            )

    async def _create_backup(self, owner_id: str) -> BackupOutcome:
        logger.info(f"Starting backup for owner: {owner_id}")

        if not self.database_path.is_file():
            raise SourceMissingError(str(self.database_path))

        archive_name = generate_archive_name(self.clock())
        self.staging_dir.mkdir(parents=True, exist_ok=True)
        # One directory per call so same-second backups never share a staging file
        staging = Path(tempfile.mkdtemp(prefix="stage_", dir=self.staging_dir))

        try:
            archive_path = staging / archive_name
            size = await create_archive(self.database_path, archive_path)

            await self.backend.prepare()
            stored = await self.backend.put(owner_id, archive_path)
            await self._record_usage(owner_id, size)
        finally:
            shutil.rmtree(staging, ignore_errors=True)

        logger.info(f"Backup complete for owner {owner_id}: {stored.stored_id} ({format_size(size)})")
        return BackupOutcome(
            success=True,
            size_bytes=size,
            message=f"Backup successful ({self.mode.value})",
            backup_id=stored.stored_id,
        )

    async def _record_usage(self, owner_id: str, size: int) -> None:
        if self.usage_policy == "cumulative":
            size += await self.usage.get_storage_usage(owner_id)
        await self.usage.set_storage_usage(owner_id, size)
        logger.info(f"Storage usage for owner {owner_id} set to {format_size(size)}")

    async def list_backups(self, owner_id: str) -> List[BackupRecord]:
        """List the owner's backups, newest first. Backend failures yield an empty list."""
        try:
            return await self.backend.list(owner_id)
        except Exception as e:
            logger.warning(f"Error listing backups for owner {owner_id}: {e}")
            return []

    async def restore_backup(self, owner_id: str, backup_id: str) -> bool:
        """Resolve and verify a backup archive, then hand it to the restore hook.

        Args:
            owner_id: Tenant identifier
            backup_id: Stored archive name as returned by list_backups

        Returns:
            True if the archive was resolved (and the hook, if any, succeeded)
        """
        try:
            async with self.backend.restore_source(owner_id, backup_id) as archive_path:
                entry = await verify_archive(archive_path)
                logger.info(
                    f"Resolved restore source {backup_id} for owner {owner_id} "
                    f"({format_size(entry.file_size)} database snapshot)"
                )

                if self.restore_hook is None:
                    # Swapping the live database needs connection draining first
                    logger.info(f"No restore hook configured; would restore {archive_path} to {self.database_path}")
                else:
                    await self.restore_hook(owner_id, archive_path)
            return True
        except Exception as e:
            logger.error(f"Restore of {backup_id} failed for owner {owner_id}: {e}")
            return False
