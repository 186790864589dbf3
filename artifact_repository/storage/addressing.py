"""Tenant-scoped addressing of committed artifacts.

The storage key of an artifact is its content hash. Tenant ownership lives in
the entry's ``tenant`` metadata, so lookups combine key and metadata:

1. tenant-exact: key == hash AND tenant == sanitize(tenant)
2. legacy fallback (read paths only): key == hash AND no tenant field at all

Delete paths use the tenant-exact lookup alone so one tenant can never remove
another tenant's (or the shared legacy) content.
"""

import re

from ..config import TenantCase
from ..core.errors import (
    InvalidContentHashError,
    InvalidTenantError,
    InvariantViolationError,
)
from ..observability.logger import get_logger
from .backend import BlobBackend
from .schemas import ABSENT, TENANT_FIELD, Artifact, BlobEntry, MetadataFilter
from .staging import TEMP_PREFIX

logger = get_logger(__name__)

# tenant values travel as S3 user metadata: printable ASCII only
SAFE_TENANT_ID_PATTERN = re.compile(r"^[\x20-\x7e]+$")

# Path traversal detection
PATH_TRAVERSAL_PATTERN = re.compile(r"\.\./|\.\.\\|%2e%2e|%252e", re.IGNORECASE)

_FORBIDDEN_KEY_CHARS = ("/", "\\", "\0", "\n", "\r")


class ArtifactAddressing:
    """Computes storage keys and resolves (tenant, hash) addresses."""

    def __init__(self, backend: BlobBackend, tenant_case: TenantCase = TenantCase.UPPER):
        self.backend = backend
        self.tenant_case = TenantCase(tenant_case)

    def sanitize(self, tenant: str) -> str:
        """Normalize a tenant identifier for storage and comparison.

        Raises:
            InvalidTenantError: If the tenant is empty or malformed
        """
        if tenant is None:
            raise InvalidTenantError("tenant is required")

        cleaned = tenant.strip()
        if not SAFE_TENANT_ID_PATTERN.fullmatch(cleaned):
            logger.warning(f"Invalid tenant format: {cleaned[:20]!r}")
            raise InvalidTenantError("Invalid tenant format")

        if self.tenant_case is TenantCase.UPPER:
            return cleaned.upper()
        if self.tenant_case is TenantCase.LOWER:
            return cleaned.lower()
        return cleaned

    @staticmethod
    def storage_key(content_hash: str) -> str:
        """Canonical backend key for a content hash.

        The tenant is deliberately not part of the key.

        Raises:
            InvalidContentHashError: If the hash can't be used as a key
        """
        if not content_hash:
            raise InvalidContentHashError("Empty content hash is not allowed")

        if PATH_TRAVERSAL_PATTERN.search(content_hash):
            logger.warning(f"Path traversal attempt in content hash: {content_hash[:50]}")
            raise InvalidContentHashError("Invalid content hash: path traversal detected")

        for char in _FORBIDDEN_KEY_CHARS:
            if char in content_hash:
                raise InvalidContentHashError("Invalid content hash: contains forbidden character")

        if content_hash.startswith(TEMP_PREFIX):
            raise InvalidContentHashError("Invalid content hash: reserved temp prefix")

        return content_hash

    def tenant_filter(self, tenant: str) -> MetadataFilter:
        """Metadata filter selecting one tenant's entries."""
        return {TENANT_FIELD: self.sanitize(tenant)}

    def _single(self, key: str, where: MetadataFilter) -> BlobEntry | None:
        # limit=2: at most one entry may answer an address
        matches = self.backend.find(key, where, limit=2)
        if len(matches) > 1:
            object_ids = [entry.object_id for entry in matches]
            logger.error(
                f"Multiple entries answer address {key}",
                extra_data={"key": key, "where": repr(where), "object_ids": object_ids},
            )
            raise InvariantViolationError(
                f"More than one entry matches {key} for {where!r}",
                object_ids=object_ids,
            )
        return matches[0] if matches else None

    def find_exact(self, tenant: str, content_hash: str) -> Artifact | None:
        """Tenant-exact lookup, no legacy fallback."""
        entry = self._single(self.storage_key(content_hash), self.tenant_filter(tenant))
        return Artifact.from_entry(entry) if entry is not None else None

    def find_legacy(self, content_hash: str) -> Artifact | None:
        """Lookup among entries written before tenant partitioning."""
        entry = self._single(self.storage_key(content_hash), {TENANT_FIELD: ABSENT})
        return Artifact.from_entry(entry) if entry is not None else None

    def find_committed(self, tenant: str, content_hash: str) -> Artifact | None:
        """Tenant-exact lookup falling back to the legacy pool."""
        found = self.find_exact(tenant, content_hash)
        if found is None:
            found = self.find_legacy(content_hash)
        return found
