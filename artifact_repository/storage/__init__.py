"""Storage module for content-addressed artifacts.

This module provides:
- BlobBackend: backend contract (MinIO and in-memory implementations)
- TempStaging: collision-checked staging of uploads
- ArtifactAddressing: tenant-exact lookup with legacy fallback
- ArtifactRepository: dedup-on-store orchestration
"""

from .addressing import ArtifactAddressing
from .backend import BlobBackend
from .hashing import DigestingReader, compute_hashes, verify_hashes
from .memory_backend import InMemoryBlobBackend
from .minio_backend import MinioBlobBackend
from .repository import ArtifactRepository
from .schemas import ABSENT, Artifact, ArtifactHashes, BlobEntry, CommitOutcome
from .staging import TEMP_PREFIX, TempStaging

__all__ = [
    "ABSENT",
    "Artifact",
    "ArtifactHashes",
    "BlobEntry",
    "CommitOutcome",
    "BlobBackend",
    "InMemoryBlobBackend",
    "MinioBlobBackend",
    "TempStaging",
    "TEMP_PREFIX",
    "ArtifactAddressing",
    "ArtifactRepository",
    "DigestingReader",
    "compute_hashes",
    "verify_hashes",
]
