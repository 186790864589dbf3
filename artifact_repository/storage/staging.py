"""Temporary staging of uploads whose content hash is not known yet.

Staged bytes live in the backend under ``TMP_<token>``. The prefix keeps the
temp namespace disjoint from content hashes, which addressing refuses to
accept when they start with it.
"""

import uuid
from collections.abc import Callable
from typing import BinaryIO

from ..core.errors import ArtifactStoreError
from ..observability.logger import get_logger
from .backend import BlobBackend
from .schemas import BlobEntry

logger = get_logger(__name__)

TEMP_PREFIX = "TMP_"


def temp_filename(temp_key: str) -> str:
    """Backend key for a temp token."""
    return f"{TEMP_PREFIX}{temp_key}"


class TempStaging:
    """Stages upload streams under collision-checked temp keys."""

    def __init__(
        self,
        backend: BlobBackend,
        max_attempts: int = 8,
        token_factory: Callable[[], str] | None = None,
    ):
        """
        Args:
            backend: Blob backend holding staged bytes
            max_attempts: Candidate tokens tried before giving up
            token_factory: Token generator (default: random UUID4)
        """
        self.backend = backend
        self.max_attempts = max_attempts
        self._token_factory = token_factory or (lambda: str(uuid.uuid4()))

    def _unused_token(self) -> str:
        for _ in range(self.max_attempts):
            token = self._token_factory()
            if self.resolve(token) is None:
                return token
            logger.warning(
                "Temp key collision, regenerating",
                extra_data={"temp_key": token},
            )
        raise ArtifactStoreError(
            f"No unused temp key found after {self.max_attempts} attempts"
        )

    def store(self, stream: BinaryIO) -> str:
        """Write a stream to the temp namespace.

        Returns:
            The temp key to hand to commit/discard

        Raises:
            StoreUnavailableError: If the backend fails
        """
        token = self._unused_token()
        entry = self.backend.put(temp_filename(token), stream)
        logger.debug(
            f"Staged upload {token}",
            extra_data={"temp_key": token, "size_bytes": entry.size_bytes},
        )
        return token

    def resolve(self, temp_key: str) -> BlobEntry | None:
        """Look up the staged entry for a temp key."""
        return self.backend.find_one(temp_filename(temp_key))

    def discard(self, temp_key: str) -> bool:
        """Delete a staged entry. Returns False when nothing was staged."""
        entry = self.resolve(temp_key)
        if entry is None:
            return False
        self.backend.delete(entry.object_id)
        logger.staging_discarded(temp_key)
        return True
