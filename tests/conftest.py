"""Global pytest configuration and fixtures."""

import pytest
import sys
import tempfile
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from tenant_backup.config import BackupConfig, ObjectStorageConfig
from tests.backup.fake_s3 import FakeS3Store, FakeSession


@pytest.fixture
def temp_dir():
    """Temporary working directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def database_file(temp_dir):
    """Small database file to snapshot."""
    path = temp_dir / "database.db"
    path.write_bytes(b"SQLite format 3\x00" + b"tenant-data" * 64)
    return path


@pytest.fixture
def s3_store():
    return FakeS3Store()


@pytest.fixture
def fake_session(s3_store):
    return FakeSession(s3_store)


@pytest.fixture
def storage_config():
    """Remote storage config pointing at a fake endpoint."""
    return ObjectStorageConfig(
        endpoint_url="https://storage.example.test",
        access_key="test-key",
        secret_key="test-secret",
        container="tenant-backups",
        request_timeout=5.0,
        max_attempts=3,
    )


@pytest.fixture
def backup_config(temp_dir, database_file):
    """Local-mode configuration rooted in the temp directory."""
    return BackupConfig(
        database_path=str(database_file),
        backup_root=str(temp_dir / "backups"),
        staging_dir=str(temp_dir / "staging"),
    )
