"""Local filesystem storage backend.

Archives live at ``<root>/<owner_id>/<filename>``. Used when no remote object
storage is configured.
"""

import asyncio
import shutil
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncIterator, List, Union

from ..._utils import logger
from ..exceptions import ArchiveIOError, BackupNotFoundError
from ..models import BackupRecord, DeploymentMode, StoredArchive
from ..utils import validate_path_component


class LocalFilesystemBackend:
    """Per-owner directories on local disk."""

    mode = DeploymentMode.LOCAL

    def __init__(self, root: Union[str, Path]):
        """Initialize local backend.

        Args:
            root: Base directory holding one subdirectory per owner
        """
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        logger.info(f"LocalFilesystemBackend initialized with root: {self.root}")

    def _owner_dir(self, owner_id: str) -> Path:
        return self.root / validate_path_component(owner_id, "owner id")

    def resolve(self, owner_id: str, stored_id: str) -> Path:
        """Full path of a stored archive.

        Raises:
            BackupNotFoundError: If the owner directory or the archive is absent
        """
        owner_dir = self._owner_dir(owner_id)
        archive_path = owner_dir / validate_path_component(stored_id, "backup id")
        if not owner_dir.is_dir() or not archive_path.is_file():
            raise BackupNotFoundError(owner_id, stored_id)
        return archive_path

    async def prepare(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    async def put(self, owner_id: str, archive_path: Path) -> StoredArchive:
        """Move a staged archive into the owner's directory, keeping its filename."""
        archive_path = Path(archive_path)
        owner_dir = self._owner_dir(owner_id)
        target = owner_dir / validate_path_component(archive_path.name, "archive name")

        try:
            size = archive_path.stat().st_size
            await asyncio.to_thread(self._move, archive_path, owner_dir, target)
        except OSError as e:
            raise ArchiveIOError(f"Failed to save backup {archive_path.name}: {e}") from e

        logger.info(f"Local backup saved: {target}")
        return StoredArchive(stored_id=target.name, size_bytes=size)

    async def list(self, owner_id: str) -> List[BackupRecord]:
        """List the owner's archives, newest first. Missing directory means no backups."""
        owner_dir = self._owner_dir(owner_id)
        return await asyncio.to_thread(self._scan, owner_dir)

    async def get(self, owner_id: str, stored_id: str) -> bytes:
        archive_path = self.resolve(owner_id, stored_id)
        try:
            return await asyncio.to_thread(archive_path.read_bytes)
        except OSError as e:
            raise ArchiveIOError(f"Failed to read backup {stored_id}: {e}") from e

    @asynccontextmanager
    async def restore_source(self, owner_id: str, stored_id: str) -> AsyncIterator[Path]:
        # The stored archive is already local; nothing to clean up.
        yield self.resolve(owner_id, stored_id)

    @staticmethod
    def _move(source: Path, owner_dir: Path, target: Path) -> None:
        owner_dir.mkdir(parents=True, exist_ok=True)
        shutil.move(str(source), str(target))

    @staticmethod
    def _scan(owner_dir: Path) -> List[BackupRecord]:
        if not owner_dir.is_dir():
            return []

        records = []
        for entry in owner_dir.iterdir():
            try:
                if not entry.is_file():
                    continue
                stats = entry.stat()
            except FileNotFoundError:
                continue

            # st_birthtime only exists on some platforms; archives are never rewritten
            created = getattr(stats, "st_birthtime", None) or stats.st_mtime
            records.append(BackupRecord(
                id=entry.name,
                name=entry.name,
                size_bytes=stats.st_size,
                created_at=datetime.fromtimestamp(created, tz=timezone.utc),
            ))

        records.sort(key=lambda r: (r.created_at, r.name), reverse=True)
        return records
