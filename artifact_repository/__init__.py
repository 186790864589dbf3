"""Tenant-scoped, content-addressed artifact repository."""

from .config import RepositorySettings, TenantCase
from .core.errors import (
    ArtifactNotFoundError,
    ArtifactStoreError,
    DuplicateEntryError,
    HashMismatchError,
    InvalidContentHashError,
    InvalidTenantError,
    InvariantViolationError,
    StagedUploadNotFoundError,
    StoreUnavailableError,
)
from .storage import (
    Artifact,
    ArtifactHashes,
    ArtifactRepository,
    BlobBackend,
    InMemoryBlobBackend,
    MinioBlobBackend,
)

__version__ = "0.1.0"

__all__ = [
    "ArtifactRepository",
    "Artifact",
    "ArtifactHashes",
    "BlobBackend",
    "InMemoryBlobBackend",
    "MinioBlobBackend",
    "RepositorySettings",
    "TenantCase",
    "ArtifactStoreError",
    "StoreUnavailableError",
    "InvariantViolationError",
    "DuplicateEntryError",
    "ArtifactNotFoundError",
    "StagedUploadNotFoundError",
    "HashMismatchError",
    "InvalidTenantError",
    "InvalidContentHashError",
]
