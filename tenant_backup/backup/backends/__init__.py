"""Storage backends for backup archives."""

from .base import StorageBackend
from .local import LocalFilesystemBackend
from .object_store import ObjectStorageBackend

__all__ = ["StorageBackend", "LocalFilesystemBackend", "ObjectStorageBackend"]
