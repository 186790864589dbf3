"""Artifact repository: dedup-on-store over a tenant-partitioned namespace.

Commit state machine::

    Staged -> Checked -> Promoted       (temp entry renamed to the hash)
                      -> Deduplicated   (existing artifact returned)

The dedup check and the promotion are two backend calls, so two concurrent
commits for one address can both pass the check. The backend's
``rename(..., unique_on=("tenant",))`` is the tie-breaker: the loser gets
DuplicateEntryError and answers with the winner's artifact instead.

On the Deduplicated path the temp entry is left in place; the caller owns it
and frees it with abandon_staging(). store() does this on the caller's behalf.
"""

from typing import BinaryIO

from ..config import RepositorySettings, TenantCase
from ..core.errors import (
    ArtifactStoreError,
    DuplicateEntryError,
    HashMismatchError,
    StagedUploadNotFoundError,
)
from ..observability.logger import get_logger, log_context, set_level
from .addressing import ArtifactAddressing
from .backend import BlobBackend
from .hashing import DigestingReader, verify_hashes
from .minio_backend import MinioBlobBackend
from .schemas import (
    MD5_FIELD,
    SHA1_FIELD,
    TENANT_FIELD,
    Artifact,
    ArtifactHashes,
    CommitOutcome,
)
from .staging import TempStaging

logger = get_logger(__name__)


class ArtifactRepository:
    """Stores, retrieves and deletes tenant-scoped content-addressed artifacts.

    Holds no artifact content; every read is a passthrough to the backend.
    """

    def __init__(
        self,
        backend: BlobBackend,
        tenant_case: TenantCase = TenantCase.UPPER,
        staging_max_attempts: int = 8,
        dedup_against_legacy: bool = True,
    ):
        """
        Args:
            backend: Blob backend holding all entries
            tenant_case: Case folding applied to tenant identifiers
            staging_max_attempts: Temp key candidates tried per stage()
            dedup_against_legacy: Let pre-tenancy entries satisfy the commit
                dedup check (reads always fall back to them)
        """
        self.backend = backend
        self.staging = TempStaging(backend, max_attempts=staging_max_attempts)
        self.addressing = ArtifactAddressing(backend, tenant_case=tenant_case)
        self.dedup_against_legacy = dedup_against_legacy

    @classmethod
    def from_settings(cls, settings: RepositorySettings | None = None) -> "ArtifactRepository":
        """Build a MinIO-backed repository from settings (default: environment)."""
        settings = settings or RepositorySettings.from_env()
        set_level(settings.log_level)
        backend = MinioBlobBackend(
            endpoint=settings.endpoint,
            access_key=settings.access_key,
            secret_key=settings.secret_key,
            secure=settings.secure,
            bucket=settings.bucket,
            prefix=settings.key_prefix,
            timeout_seconds=settings.timeout_seconds,
        )
        return cls(
            backend,
            tenant_case=settings.tenant_case,
            staging_max_attempts=settings.staging_max_attempts,
            dedup_against_legacy=settings.dedup_against_legacy,
        )

    # ------------------------------------------------------------------
    # Staging
    # ------------------------------------------------------------------

    def stage(self, stream: BinaryIO) -> str:
        """Write raw bytes to the temp namespace and return the temp key."""
        with log_context(operation="stage"):
            return self.staging.store(stream)

    def abandon_staging(self, temp_key: str) -> bool:
        """Discard a staged upload; absent or already committed keys are a no-op."""
        with log_context(operation="abandon_staging"):
            return self.staging.discard(temp_key)

    # ------------------------------------------------------------------
    # Commit
    # ------------------------------------------------------------------

    def commit(
        self,
        tenant: str,
        content_hash: str,
        aux_hash: str | None,
        content_type: str | None,
        temp_key: str,
    ) -> Artifact:
        """Promote a staged upload to the (tenant, content_hash) address.

        Args:
            tenant: Owning tenant (sanitized before use)
            content_hash: Content address, becomes the storage key
            aux_hash: Secondary digest (MD5), stored as metadata when non-empty
            content_type: MIME type attached to the committed entry
            temp_key: Key returned by stage()

        Returns:
            The promoted artifact, or the already committed one

        Raises:
            StagedUploadNotFoundError: If temp_key has no staged entry
            StoreUnavailableError: If the backend fails
        """
        artifact, _ = self._commit(tenant, content_hash, aux_hash, content_type, temp_key)
        return artifact

    def _commit(
        self,
        tenant: str,
        content_hash: str,
        aux_hash: str | None,
        content_type: str | None,
        temp_key: str,
    ) -> tuple[Artifact, CommitOutcome]:
        tenant_key = self.addressing.sanitize(tenant)
        storage_key = self.addressing.storage_key(content_hash)

        with log_context(tenant_id=tenant_key, operation="commit"):
            # Checked
            if self.dedup_against_legacy:
                existing = self.addressing.find_committed(tenant_key, content_hash)
            else:
                existing = self.addressing.find_exact(tenant_key, content_hash)
            if existing is not None:
                logger.artifact_deduplicated(
                    content_hash, existing.object_id, legacy=existing.is_legacy
                )
                return existing, CommitOutcome.DEDUPLICATED

            staged = self.staging.resolve(temp_key)
            if staged is None:
                raise StagedUploadNotFoundError(f"No staged upload for temp key {temp_key}")

            metadata = {SHA1_FIELD: content_hash, TENANT_FIELD: tenant_key}
            if aux_hash:
                metadata[MD5_FIELD] = aux_hash

            try:
                promoted = self.backend.rename(
                    staged.object_id,
                    storage_key,
                    metadata=metadata,
                    content_type=content_type,
                    unique_on=(TENANT_FIELD,),
                )
            except DuplicateEntryError:
                winner = self.addressing.find_exact(tenant_key, content_hash)
                if winner is None:
                    raise
                logger.warning(
                    f"Concurrent commit of {content_hash} won by {winner.object_id}",
                    extra_data={"content_hash": content_hash, "temp_key": temp_key},
                )
                return winner, CommitOutcome.DEDUPLICATED

            artifact = Artifact.from_entry(promoted)
            logger.artifact_committed(
                content_hash, artifact.object_id, artifact.size_bytes, temp_key=temp_key
            )
            return artifact, CommitOutcome.PROMOTED

    def store(
        self,
        tenant: str,
        stream: BinaryIO,
        content_type: str | None = None,
        expected: ArtifactHashes | None = None,
    ) -> Artifact:
        """Stage, hash, verify and commit an upload in one call.

        The SHA-1 of the content becomes the address and its MD5 the aux hash.
        No temp entry survives the call, whether it succeeds or fails.

        Raises:
            InvalidTenantError: If the tenant is rejected (nothing is staged)
            HashMismatchError: If a computed digest differs from expected
                (the staged upload is discarded first)
        """
        self.addressing.sanitize(tenant)

        reader = DigestingReader(stream)
        temp_key = self.stage(reader)
        hashes = reader.hashes()

        try:
            verify_hashes(expected, hashes)
        except HashMismatchError as e:
            logger.warning(
                f"Discarding upload {temp_key}: {e}",
                extra_data={
                    "temp_key": temp_key,
                    "algorithm": e.algorithm,
                    "size_bytes": reader.bytes_read,
                },
            )
            self.abandon_staging(temp_key)
            raise

        try:
            artifact, outcome = self._commit(
                tenant, hashes.sha1, hashes.md5, content_type, temp_key
            )
        except ArtifactStoreError:
            # temp_key is never returned to the caller
            self.abandon_staging(temp_key)
            raise

        if outcome is CommitOutcome.DEDUPLICATED:
            self.abandon_staging(temp_key)
        return artifact

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def retrieve(self, tenant: str, content_hash: str) -> Artifact | None:
        """Find a committed artifact, falling back to pre-tenancy entries."""
        with log_context(operation="retrieve"):
            return self.addressing.find_committed(tenant, content_hash)

    def exists(self, tenant: str, content_hash: str) -> bool:
        """Check whether retrieve() would find an artifact."""
        return self.retrieve(tenant, content_hash) is not None

    def open(self, artifact: Artifact) -> BinaryIO:
        """Open an artifact's content. The caller closes the stream."""
        return self.backend.open(artifact.object_id)

    def read(self, artifact: Artifact) -> bytes:
        """Read an artifact's full content."""
        stream = self.open(artifact)
        try:
            return stream.read()
        finally:
            stream.close()
            # MinIO responses hand their connection back to the pool
            if hasattr(stream, "release_conn"):
                stream.release_conn()

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def delete_by_hash(self, tenant: str, content_hash: str) -> bool:
        """Delete the tenant's own artifact for a hash; legacy entries are kept.

        Returns:
            False when the tenant had no such artifact
        """
        tenant_key = self.addressing.sanitize(tenant)
        with log_context(tenant_id=tenant_key, operation="delete_by_hash"):
            found = self.addressing.find_exact(tenant_key, content_hash)
            if found is None:
                return False
            # by object id: the key alone may match other tenants' entries
            self.backend.delete(found.object_id)
            logger.info(
                f"Artifact {content_hash} deleted",
                extra_data={"content_hash": content_hash, "object_id": found.object_id},
            )
            return True

    def delete_by_tenant(self, tenant: str) -> int:
        """Delete every artifact owned by a tenant in one bulk call.

        Returns:
            Number of entries removed
        """
        tenant_key = self.addressing.sanitize(tenant)
        with log_context(tenant_id=tenant_key, operation="delete_by_tenant"):
            count = self.backend.delete_many({TENANT_FIELD: tenant_key})
            logger.artifacts_purged(tenant_key, count)
            return count
