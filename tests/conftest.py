"""Pytest configuration and fixtures for tests."""

import io
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


@pytest.fixture
def tenant_id():
    """Test tenant ID."""
    return "tenantA"


@pytest.fixture
def other_tenant_id():
    """Second tenant for isolation tests."""
    return "tenantB"


@pytest.fixture
def payload():
    """Sample artifact content."""
    return b"firmware image v1.0\x00\x01\x02"


@pytest.fixture
def memory_backend():
    """Empty in-memory blob backend."""
    from artifact_repository.storage.memory_backend import InMemoryBlobBackend

    return InMemoryBlobBackend()


@pytest.fixture
def repository(memory_backend):
    """ArtifactRepository over the in-memory backend."""
    from artifact_repository.storage.repository import ArtifactRepository

    return ArtifactRepository(memory_backend)


@pytest.fixture
def stage_bytes(repository):
    """Stage raw bytes and return the temp key."""

    def _stage(data: bytes) -> str:
        return repository.stage(io.BytesIO(data))

    return _stage


@pytest.fixture
def legacy_entry(memory_backend):
    """Write a pre-tenancy entry (no tenant metadata) straight to the backend."""

    def _write(content_hash: str, data: bytes = b"legacy content"):
        return memory_backend.put(
            content_hash,
            io.BytesIO(data),
            metadata={"sha1": content_hash},
            content_type="application/octet-stream",
        )

    return _write


@pytest.fixture
def mock_minio_client():
    """MagicMock standing in for minio.Minio."""
    from unittest.mock import MagicMock

    client = MagicMock()
    client.bucket_exists.return_value = True
    client.list_objects.return_value = []
    return client
