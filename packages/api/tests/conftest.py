# This project was developed with assistance from AI tools.
"""Fixtures shared by unit and functional tests."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from botocore.exceptions import EndpointConnectionError

from app_tracker.services import realtime
from app_tracker.services.storage import StorageService

# Modules that resolve the storage singleton by name at call time
_STORAGE_USERS = (
    "app_tracker.services.application",
    "app_tracker.services.document",
    "app_tracker.services.profile",
    "app_tracker.services.admin",
)


@pytest.fixture(autouse=True)
def hub(monkeypatch):
    """Fresh in-process notification hub per test."""
    fresh = realtime.NotificationHub(queue_size=10)
    monkeypatch.setattr(realtime, "_hub", fresh)
    return fresh


@pytest.fixture
def mock_storage():
    """Patch the storage singleton everywhere services look it up.

    Object keys are deterministic: ``{user_id}/key-{n}-{filename}``.
    """
    storage = MagicMock()
    counter = iter(range(1, 1000))
    storage.build_object_key.side_effect = lambda user_id, filename: (
        f"{user_id}/key-{next(counter)}-{filename}"
    )
    storage.upload_file = AsyncMock(side_effect=lambda data, key, content_type, **kw: key)
    storage.download_file = AsyncMock(return_value=b"%PDF-1.4 test")
    storage.delete_file = AsyncMock()
    storage.delete_files = AsyncMock(return_value=[])
    storage.get_public_url.side_effect = lambda key, bucket=None: (
        f"http://minio.test/{bucket}/{key}"
    )

    patchers = [patch(f"{mod}.get_storage_service", return_value=storage) for mod in _STORAGE_USERS]
    for p in patchers:
        p.start()
    yield storage
    for p in patchers:
        p.stop()


@pytest.fixture
def unreachable_storage():
    """A real StorageService whose S3 endpoint refuses every object call."""
    client = MagicMock()
    down = EndpointConnectionError(endpoint_url="http://minio.test:9000")
    client.put_object.side_effect = down
    client.get_object.side_effect = down
    client.delete_object.side_effect = down
    with patch("app_tracker.services.storage.boto3.client", return_value=client):
        storage = StorageService(
            endpoint="http://minio.test:9000",
            access_key="minio",
            secret_key="minio123",
            default_bucket="documents",
        )

    patchers = [patch(f"{mod}.get_storage_service", return_value=storage) for mod in _STORAGE_USERS]
    for p in patchers:
        p.start()
    yield storage
    for p in patchers:
        p.stop()
