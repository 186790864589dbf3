"""Error taxonomy for the artifact repository.

Every failure raised by the repository derives from ArtifactStoreError:
- StoreUnavailableError: backend connection / transport / timeout failure
- InvariantViolationError: more than one entry answers a single address
- DuplicateEntryError: backend refused a second entry for a unique address
- HashMismatchError: uploaded content does not match the expected digest

"Not found" on lookups is never an error; lookups return None.
"""


class ArtifactStoreError(Exception):
    """Base exception for artifact repository operations."""

    pass


class StoreUnavailableError(ArtifactStoreError):
    """Blob backend could not be reached or failed mid-operation."""

    pass


class InvariantViolationError(ArtifactStoreError):
    """More than one committed entry matches a single tenant + hash address."""

    def __init__(self, message: str, object_ids: list[str] | None = None):
        super().__init__(message)
        self.object_ids = object_ids or []


class DuplicateEntryError(ArtifactStoreError):
    """Backend rejected an entry whose unique address is already taken."""

    pass


class ArtifactNotFoundError(ArtifactStoreError):
    """Artifact content does not exist in the backend."""

    pass


class StagedUploadNotFoundError(ArtifactStoreError):
    """Commit referenced a temp key that has no staged entry."""

    pass


class HashMismatchError(ArtifactStoreError):
    """Computed content digest differs from the digest the caller expected."""

    def __init__(self, algorithm: str, expected: str, actual: str):
        super().__init__(
            f"{algorithm} mismatch: expected {expected}, got {actual}"
        )
        self.algorithm = algorithm
        self.expected = expected
        self.actual = actual


class InvalidTenantError(ArtifactStoreError):
    """Tenant identifier is empty or contains illegal characters."""

    pass


class InvalidContentHashError(ArtifactStoreError):
    """Content hash cannot be used as a storage key."""

    pass
