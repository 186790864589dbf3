"""In-process blob backend.

Keeps content in a dict guarded by a single lock. Used by the test suite and
for local runs without MinIO. Entries keep their object_id across renames.
"""

import io
import threading
import uuid
from collections.abc import Iterable
from dataclasses import replace
from datetime import datetime
from typing import BinaryIO

from ..core.errors import ArtifactNotFoundError, DuplicateEntryError
from .backend import BlobBackend
from .schemas import BlobEntry, MetadataFilter


class InMemoryBlobBackend(BlobBackend):
    """Thread-safe dict-backed BlobBackend."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, BlobEntry] = {}
        self._content: dict[str, bytes] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def entries(self) -> list[BlobEntry]:
        """Snapshot of every stored entry in insertion order."""
        with self._lock:
            return list(self._entries.values())

    def put(
        self,
        key: str,
        stream: BinaryIO,
        metadata: dict[str, str] | None = None,
        content_type: str | None = None,
    ) -> BlobEntry:
        data = stream.read()
        entry = BlobEntry(
            object_id=uuid.uuid4().hex,
            key=key,
            size_bytes=len(data),
            content_type=content_type,
            metadata=dict(metadata or {}),
            created_at=datetime.now(),
        )
        with self._lock:
            self._entries[entry.object_id] = entry
            self._content[entry.object_id] = data
        return entry

    def find(
        self,
        key: str,
        where: MetadataFilter | None = None,
        limit: int | None = None,
    ) -> list[BlobEntry]:
        with self._lock:
            found = [
                entry
                for entry in self._entries.values()
                if entry.key == key and entry.matches(where)
            ]
        return found if limit is None else found[:limit]

    def open(self, object_id: str) -> BinaryIO:
        with self._lock:
            data = self._content.get(object_id)
        if data is None:
            raise ArtifactNotFoundError(f"Object not found: {object_id}")
        return io.BytesIO(data)

    def delete(self, object_id: str) -> None:
        with self._lock:
            self._entries.pop(object_id, None)
            self._content.pop(object_id, None)

    def delete_many(self, where: MetadataFilter) -> int:
        with self._lock:
            doomed = [oid for oid, entry in self._entries.items() if entry.matches(where)]
            for object_id in doomed:
                del self._entries[object_id]
                del self._content[object_id]
        return len(doomed)

    def rename(
        self,
        object_id: str,
        new_key: str,
        metadata: dict[str, str] | None = None,
        content_type: str | None = None,
        unique_on: Iterable[str] = (),
    ) -> BlobEntry:
        new_metadata = dict(metadata or {})
        unique_fields = list(unique_on)

        # Check and rename under one lock so concurrent renames can't both pass
        with self._lock:
            current = self._entries.get(object_id)
            if current is None:
                raise ArtifactNotFoundError(f"Object not found: {object_id}")

            if unique_fields:
                wanted = [new_metadata.get(name) for name in unique_fields]
                for other in self._entries.values():
                    if other.object_id == object_id or other.key != new_key:
                        continue
                    if [other.metadata.get(name) for name in unique_fields] == wanted:
                        raise DuplicateEntryError(
                            f"Entry {new_key} already exists for "
                            f"{dict(zip(unique_fields, wanted))}"
                        )

            renamed = replace(
                current,
                key=new_key,
                metadata=new_metadata,
                content_type=content_type if content_type is not None else current.content_type,
            )
            self._entries[object_id] = renamed
        return renamed
