"""Tests for InMemoryBlobBackend."""

import io

import pytest

from artifact_repository.core.errors import ArtifactNotFoundError, DuplicateEntryError
from artifact_repository.storage.memory_backend import InMemoryBlobBackend
from artifact_repository.storage.schemas import ABSENT


class TestInMemoryBlobBackend:
    """Tests for the dict-backed backend."""

    def test_put_and_open(self, memory_backend: InMemoryBlobBackend) -> None:
        """Test stored bytes read back unchanged."""
        entry = memory_backend.put("k", io.BytesIO(b"bytes"), {"a": "1"}, "text/plain")
        assert entry.size_bytes == 5
        assert entry.content_type == "text/plain"
        assert memory_backend.open(entry.object_id).read() == b"bytes"

    def test_find_filters_and_limits(self, memory_backend: InMemoryBlobBackend) -> None:
        """Test key + metadata filtering in insertion order."""
        first = memory_backend.put("k", io.BytesIO(b"1"), {"tenant": "A"})
        memory_backend.put("k", io.BytesIO(b"2"), {"tenant": "B"})
        third = memory_backend.put("k", io.BytesIO(b"3"))
        memory_backend.put("other", io.BytesIO(b"4"), {"tenant": "A"})

        assert [e.object_id for e in memory_backend.find("k", {"tenant": "A"})] == [first.object_id]
        assert [e.object_id for e in memory_backend.find("k", {"tenant": ABSENT})] == [third.object_id]
        assert len(memory_backend.find("k")) == 3
        assert len(memory_backend.find("k", limit=2)) == 2
        assert memory_backend.find_one("k").object_id == first.object_id
        assert memory_backend.find_one("missing") is None

    def test_open_missing(self, memory_backend: InMemoryBlobBackend) -> None:
        """Test opening an unknown object raises."""
        with pytest.raises(ArtifactNotFoundError):
            memory_backend.open("nope")

    def test_delete_missing_is_noop(self, memory_backend: InMemoryBlobBackend) -> None:
        """Test deleting an unknown object does nothing."""
        memory_backend.delete("nope")
        assert len(memory_backend) == 0

    def test_delete_many(self, memory_backend: InMemoryBlobBackend) -> None:
        """Test bulk delete by metadata."""
        memory_backend.put("k1", io.BytesIO(b"1"), {"tenant": "A"})
        memory_backend.put("k2", io.BytesIO(b"2"), {"tenant": "A"})
        memory_backend.put("k3", io.BytesIO(b"3"), {"tenant": "B"})

        assert memory_backend.delete_many({"tenant": "A"}) == 2
        assert [e.key for e in memory_backend.entries()] == ["k3"]

    def test_rename_keeps_object_id(self, memory_backend: InMemoryBlobBackend) -> None:
        """Test rename replaces key, metadata and content type in place."""
        entry = memory_backend.put("TMP_x", io.BytesIO(b"1"), content_type="a/b")
        renamed = memory_backend.rename(entry.object_id, "aaaa", {"tenant": "A"})

        assert renamed.object_id == entry.object_id
        assert renamed.key == "aaaa"
        assert renamed.metadata == {"tenant": "A"}
        assert renamed.content_type == "a/b"
        assert memory_backend.find_one("TMP_x") is None

    def test_rename_unique_on(self, memory_backend: InMemoryBlobBackend) -> None:
        """Test unique_on rejects a second entry for the same address."""
        memory_backend.put("aaaa", io.BytesIO(b"1"), {"tenant": "A"})
        staged_a = memory_backend.put("TMP_a", io.BytesIO(b"1"))
        staged_b = memory_backend.put("TMP_b", io.BytesIO(b"1"))

        with pytest.raises(DuplicateEntryError):
            memory_backend.rename(staged_a.object_id, "aaaa", {"tenant": "A"}, unique_on=("tenant",))

        # a different tenant under the same key is fine
        memory_backend.rename(staged_b.object_id, "aaaa", {"tenant": "B"}, unique_on=("tenant",))
        assert len(memory_backend.find("aaaa")) == 2

    def test_rename_missing(self, memory_backend: InMemoryBlobBackend) -> None:
        """Test renaming an unknown object raises."""
        with pytest.raises(ArtifactNotFoundError):
            memory_backend.rename("nope", "aaaa")
