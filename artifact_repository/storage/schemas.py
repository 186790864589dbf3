"""Storage schemas for committed artifacts and backend entries.

BlobEntry is what a backend hands back for a stored object. Artifact is the
repository's view of a committed entry: a content hash owned by a tenant.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

# Metadata field names attached to committed backend entries
SHA1_FIELD = "sha1"
TENANT_FIELD = "tenant"
MD5_FIELD = "md5"


class _Absent:
    """Marker for "metadata field must not exist" in backend queries."""

    _instance: "_Absent | None" = None

    def __new__(cls) -> "_Absent":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"


ABSENT = _Absent()

MetadataFilter = dict[str, str | _Absent]


@dataclass(frozen=True)
class BlobEntry:
    """Handle to one object held by a blob backend."""

    object_id: str
    key: str
    size_bytes: int
    content_type: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)
    created_at: datetime | None = None

    def matches(self, where: MetadataFilter | None) -> bool:
        """Check the entry's metadata against a field -> value/ABSENT filter."""
        if not where:
            return True
        for name, expected in where.items():
            if expected is ABSENT:
                if name in self.metadata:
                    return False
            elif self.metadata.get(name) != expected:
                return False
        return True


class CommitOutcome(str, Enum):
    """Terminal state of a commit."""

    PROMOTED = "promoted"
    DEDUPLICATED = "deduplicated"


class ArtifactHashes(BaseModel):
    """Content digests of an upload, computed or expected."""

    sha1: str | None = Field(default=None, description="SHA-1 hex digest")
    md5: str | None = Field(default=None, description="MD5 hex digest")
    sha256: str | None = Field(default=None, description="SHA-256 hex digest")


class Artifact(BaseModel):
    """A committed, content-addressed artifact.

    The storage key is the content hash alone; two tenants uploading the same
    bytes share a key but each reaches its own entry through the tenant
    metadata. Entries without tenant metadata predate tenant partitioning.
    """

    object_id: str = Field(..., description="Backend internal identifier")
    storage_key: str = Field(..., description="Backend lookup key (the content hash)")
    content_hash: str = Field(..., description="Content address (hex digest)")
    tenant: str | None = Field(
        default=None,
        description="Sanitized owning tenant; None for pre-tenancy entries",
    )
    md5_hash: str | None = Field(default=None, description="Auxiliary MD5 digest")
    content_type: str | None = Field(default=None, description="MIME type")
    size_bytes: int = Field(..., ge=0, description="Size of the content in bytes")
    created_at: datetime | None = Field(default=None)

    @property
    def is_legacy(self) -> bool:
        """True for entries written before tenant partitioning."""
        return self.tenant is None

    @classmethod
    def from_entry(cls, entry: BlobEntry) -> "Artifact":
        """Map a committed backend entry to an Artifact."""
        return cls(
            object_id=entry.object_id,
            storage_key=entry.key,
            content_hash=entry.metadata.get(SHA1_FIELD, entry.key),
            tenant=entry.metadata.get(TENANT_FIELD),
            md5_hash=entry.metadata.get(MD5_FIELD),
            content_type=entry.content_type,
            size_bytes=entry.size_bytes,
            created_at=entry.created_at,
        )
