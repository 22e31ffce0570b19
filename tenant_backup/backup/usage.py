"""Owner storage-usage accounting."""

from typing import Dict, Protocol


class StorageUsageRecorder(Protocol):
    """Collaborator that persists per-owner storage usage."""

    async def get_storage_usage(self, owner_id: str) -> int:
        ...

    async def set_storage_usage(self, owner_id: str, size_bytes: int) -> None:
        ...


class InMemoryUsageLedger:
    """Process-local usage store for development and tests."""

    def __init__(self):
        self._usage: Dict[str, int] = {}

    async def get_storage_usage(self, owner_id: str) -> int:
        return self._usage.get(owner_id, 0)

    async def set_storage_usage(self, owner_id: str, size_bytes: int) -> None:
        self._usage[owner_id] = size_bytes
