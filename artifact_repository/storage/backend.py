"""Abstract blob backend contract.

A backend stores opaque byte streams under a (non-unique) key with a flat
string metadata map. It has no knowledge of tenants or deduplication; the
repository layers both on top through metadata filters.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import BinaryIO

from .schemas import BlobEntry, MetadataFilter


class BlobBackend(ABC):
    """Backend-agnostic interface for blob storage operations.

    Implementations translate their transport failures into
    StoreUnavailableError and never retry internally.
    """

    @abstractmethod
    def put(
        self,
        key: str,
        stream: BinaryIO,
        metadata: dict[str, str] | None = None,
        content_type: str | None = None,
    ) -> BlobEntry:
        """Store a byte stream under a key and return its handle."""

    @abstractmethod
    def find(
        self,
        key: str,
        where: MetadataFilter | None = None,
        limit: int | None = None,
    ) -> list[BlobEntry]:
        """Return entries stored under key whose metadata matches where.

        Results follow the backend's native ordering.
        """

    def find_one(
        self,
        key: str,
        where: MetadataFilter | None = None,
    ) -> BlobEntry | None:
        """Return the first matching entry, or None."""
        found = self.find(key, where, limit=1)
        return found[0] if found else None

    @abstractmethod
    def open(self, object_id: str) -> BinaryIO:
        """Open an entry's content for reading.

        Raises:
            ArtifactNotFoundError: If the entry does not exist
        """

    @abstractmethod
    def delete(self, object_id: str) -> None:
        """Delete one entry by internal identifier. No-op if it doesn't exist."""

    @abstractmethod
    def delete_many(self, where: MetadataFilter) -> int:
        """Delete every entry whose metadata matches where. Returns the count."""

    @abstractmethod
    def rename(
        self,
        object_id: str,
        new_key: str,
        metadata: dict[str, str] | None = None,
        content_type: str | None = None,
        unique_on: Iterable[str] = (),
    ) -> BlobEntry:
        """Move an entry to a new key, replacing its metadata and content type.

        Args:
            object_id: Entry to rename
            new_key: Target key
            metadata: Metadata replacing the entry's current metadata
            content_type: Content type replacing the current one (None keeps it)
            unique_on: Metadata fields that, together with new_key, must not
                already be taken by another entry

        Raises:
            DuplicateEntryError: If unique_on is violated
            ArtifactNotFoundError: If the source entry does not exist
        """
