"""Storage backend capability shared by the local and object storage variants."""

from pathlib import Path
from typing import AsyncContextManager, List, Protocol, runtime_checkable

from ..models import BackupRecord, DeploymentMode, StoredArchive


@runtime_checkable
class StorageBackend(Protocol):
    """Protocol for backup storage backends.

    Every operation is scoped to an owner namespace. Implementations own their
    storage medium; the orchestrator only mediates.
    """

    mode: DeploymentMode

    async def prepare(self) -> None:
        """Make the storage medium ready before an archive is stored."""
        ...

    async def put(self, owner_id: str, archive_path: Path) -> StoredArchive:
        """Persist a staged archive under the owner's namespace."""
        ...

    async def list(self, owner_id: str) -> List[BackupRecord]:
        """List the owner's archives, newest first."""
        ...

    async def get(self, owner_id: str, stored_id: str) -> bytes:
        """Return the raw bytes of a stored archive."""
        ...

    def restore_source(self, owner_id: str, stored_id: str) -> AsyncContextManager[Path]:
        """Yield a local path holding the stored archive for the duration of the block."""
        ...
