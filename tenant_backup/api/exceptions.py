"""Custom exceptions for FastAPI application."""

from fastapi import HTTPException
from starlette.status import HTTP_400_BAD_REQUEST, HTTP_401_UNAUTHORIZED


class BackupAPIError(HTTPException):
    """Base exception for backup API errors."""
    pass


class OwnerRequiredError(BackupAPIError):
    def __init__(self):
        super().__init__(HTTP_401_UNAUTHORIZED, "Owner identity required (X-Owner-Id header)")


class BackupFailedError(BackupAPIError):
    def __init__(self, message: str):
        super().__init__(HTTP_400_BAD_REQUEST, message)


class RestoreFailedError(BackupAPIError):
    def __init__(self, backup_id: str):
        super().__init__(HTTP_400_BAD_REQUEST, f"Restore of {backup_id} failed")
