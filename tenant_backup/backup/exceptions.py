"""Error taxonomy for backup and restore operations."""


class BackupError(Exception):
    """Base exception for backup subsystem errors."""

    kind = "backup"


class SourceMissingError(BackupError):
    """The database file to snapshot does not exist."""

    kind = "source_missing"

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Database file ({path}) not found")


class ArchiveIOError(BackupError):
    """Disk or stream failure while building or moving an archive."""

    kind = "io"


class BackendProvisioningError(BackupError):
    """The remote container could not be checked or created."""

    kind = "provisioning"

    def __init__(self, container: str, reason: str):
        self.container = container
        super().__init__(
            f"Remote storage container '{container}' is unavailable: {reason}. "
            "Check the storage configuration or create it manually."
        )


class BackendTransferError(BackupError):
    """Upload or download to the storage backend failed."""

    kind = "transfer"


class BackupNotFoundError(BackupError):
    """The requested backup or owner namespace does not exist."""

    kind = "not_found"

    def __init__(self, owner_id: str, backup_id: str):
        self.owner_id = owner_id
        self.backup_id = backup_id
        super().__init__(f"Backup not found: {backup_id}")


class InvalidIdentifierError(BackupError, ValueError):
    """Owner or backup identifier would escape its namespace."""

    kind = "invalid_identifier"
