"""Core contract module for the artifact repository.

This module provides the error taxonomy shared by storage backends and the
repository orchestrator.
"""

from .errors import (
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

__all__ = [
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
