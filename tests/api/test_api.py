"""Tests for backup API endpoints."""

import asyncio
import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from fastapi.testclient import TestClient

from tenant_backup.api.app import create_app
from tenant_backup.backup.manager import BackupManager
from tenant_backup.backup.models import BackupOutcome, BackupRecord, DeploymentMode
from tenant_backup.backup.usage import InMemoryUsageLedger

OWNER = {"X-Owner-Id": "owner1"}


@pytest.fixture
def mock_manager():
    manager = MagicMock(spec=BackupManager)
    manager.mode = DeploymentMode.LOCAL
    manager.config_error = None
    return manager


@pytest.fixture
def usage():
    return InMemoryUsageLedger()


@pytest.fixture
def client(mock_manager, usage):
    """Test client with app state populated directly (lifespan not run)."""
    app = create_app()
    app.state.backup_manager = mock_manager
    app.state.usage_recorder = usage
    return TestClient(app)


def test_create_backup_endpoint(client, mock_manager):
    mock_manager.create_backup = AsyncMock(return_value=BackupOutcome(
        success=True,
        size_bytes=1024,
        message="Backup successful (local)",
        backup_id="backup_2024-01-01T00-00-00_GMT.zip",
    ))

    response = client.post("/api/v1/backup", headers=OWNER)

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["size_bytes"] == 1024
    mock_manager.create_backup.assert_awaited_once_with("owner1")


def test_create_backup_failure_is_400(client, mock_manager):
    mock_manager.create_backup = AsyncMock(return_value=BackupOutcome(
        success=False,
        message="Database file (./database.db) not found",
        error="source_missing",
    ))

    response = client.post("/api/v1/backup", headers=OWNER)

    assert response.status_code == 400
    assert response.json()["detail"] == "Database file (./database.db) not found"


def test_owner_header_required(client, mock_manager):
    mock_manager.create_backup = AsyncMock()

    response = client.post("/api/v1/backup")

    assert response.status_code == 401
    mock_manager.create_backup.assert_not_called()


def test_list_backups_endpoint(client, mock_manager):
    mock_manager.list_backups = AsyncMock(return_value=[
        BackupRecord(id="backup_b.zip", name="backup_b.zip", size_bytes=2048,
                     created_at=datetime(2024, 1, 2, tzinfo=timezone.utc)),
        BackupRecord(id="backup_a.zip", name="backup_a.zip", size_bytes=1024,
                     created_at=datetime(2024, 1, 1, tzinfo=timezone.utc)),
    ])

    response = client.get("/api/v1/backup", headers=OWNER)

    assert response.status_code == 200
    data = response.json()
    assert [b["id"] for b in data] == ["backup_b.zip", "backup_a.zip"]
    mock_manager.list_backups.assert_awaited_once_with("owner1")


def test_restore_endpoint(client, mock_manager):
    mock_manager.restore_backup = AsyncMock(return_value=True)

    response = client.post("/api/v1/backup/restore", json={"backup_id": "backup_a.zip"}, headers=OWNER)

    assert response.status_code == 200
    assert response.json()["backup_id"] == "backup_a.zip"
    mock_manager.restore_backup.assert_awaited_once_with("owner1", "backup_a.zip")


def test_restore_failure_is_400(client, mock_manager):
    mock_manager.restore_backup = AsyncMock(return_value=False)

    response = client.post("/api/v1/backup/restore", json={"backup_id": "missing.zip"}, headers=OWNER)

    assert response.status_code == 400
    assert "missing.zip" in response.json()["detail"]


def test_restore_requires_backup_id(client):
    response = client.post("/api/v1/backup/restore", json={}, headers=OWNER)
    assert response.status_code == 422


def test_usage_endpoint(client, usage):
    asyncio.run(usage.set_storage_usage("owner1", 15 * 1024 * 1024 * 1024 // 4))

    response = client.get("/api/v1/backup/usage", headers=OWNER)

    assert response.status_code == 200
    data = response.json()
    assert data["limit"] == 15 * 1024 * 1024 * 1024
    assert data["percentage"] == 25.0


def test_health_reports_mode(client, mock_manager):
    response = client.get("/api/v1/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["mode"] == "local"
    assert data["config_error"] is None


def test_health_reports_degraded_configuration(client, mock_manager):
    mock_manager.config_error = "Remote storage configuration is incomplete"

    data = client.get("/api/v1/health").json()

    assert data["status"] == "degraded"
    assert data["config_error"] == "Remote storage configuration is incomplete"


def test_end_to_end_local(tmp_path, monkeypatch):
    """Lifespan builds a local-mode manager from the environment."""
    database = tmp_path / "database.db"
    database.write_bytes(b"data" * 100)
    monkeypatch.setenv("BACKUP_DATABASE_PATH", str(database))
    monkeypatch.setenv("BACKUP_ROOT", str(tmp_path / "backups"))
    monkeypatch.setenv("BACKUP_STAGING_DIR", str(tmp_path / "staging"))
    monkeypatch.delenv("BACKUP_STORAGE_URL", raising=False)
    monkeypatch.delenv("BACKUP_STORAGE_KEY", raising=False)

    with TestClient(create_app()) as client:
        created = client.post("/api/v1/backup", headers=OWNER)
        assert created.status_code == 200
        backup_id = created.json()["backup_id"]

        listed = client.get("/api/v1/backup", headers=OWNER).json()
        assert [b["id"] for b in listed] == [backup_id]

        usage = client.get("/api/v1/backup/usage", headers=OWNER).json()
        assert usage["used"] == created.json()["size_bytes"]

        restored = client.post("/api/v1/backup/restore", json={"backup_id": backup_id}, headers=OWNER)
        assert restored.status_code == 200

        assert client.get("/api/v1/backup", headers={"X-Owner-Id": "owner2"}).json() == []
