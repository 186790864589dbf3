"""Digest helpers for uploads.

DigestingReader wraps an upload stream and feeds every chunk the backend
reads through SHA-1, MD5 and SHA-256, so the content address is known as soon
as staging finishes without reading the payload twice.
"""

import hashlib
import io
from typing import BinaryIO

from ..core.errors import HashMismatchError
from .schemas import ArtifactHashes


def compute_hashes(data: bytes) -> ArtifactHashes:
    """Compute SHA-1, MD5 and SHA-256 of raw bytes."""
    return ArtifactHashes(
        sha1=hashlib.sha1(data).hexdigest(),
        md5=hashlib.md5(data).hexdigest(),
        sha256=hashlib.sha256(data).hexdigest(),
    )


class DigestingReader(io.RawIOBase):
    """Read-through stream that digests everything read from it."""

    def __init__(self, stream: BinaryIO):
        self._stream = stream
        self._sha1 = hashlib.sha1()
        self._md5 = hashlib.md5()
        self._sha256 = hashlib.sha256()
        self.bytes_read = 0

    def readable(self) -> bool:
        return True

    def read(self, size: int = -1) -> bytes:
        chunk = self._stream.read(size)
        if chunk:
            self._sha1.update(chunk)
            self._md5.update(chunk)
            self._sha256.update(chunk)
            self.bytes_read += len(chunk)
        return chunk

    def readinto(self, buffer) -> int:
        chunk = self.read(len(buffer))
        buffer[: len(chunk)] = chunk
        return len(chunk)

    def hashes(self) -> ArtifactHashes:
        """Digests of everything read so far."""
        return ArtifactHashes(
            sha1=self._sha1.hexdigest(),
            md5=self._md5.hexdigest(),
            sha256=self._sha256.hexdigest(),
        )


def verify_hashes(expected: ArtifactHashes | None, actual: ArtifactHashes) -> None:
    """Compare every expected digest against the computed one.

    Digests are compared case-insensitively; unset expectations are skipped.

    Raises:
        HashMismatchError: On the first digest that differs
    """
    if expected is None:
        return
    for algorithm in ("sha1", "md5", "sha256"):
        wanted = getattr(expected, algorithm)
        if wanted is None:
            continue
        computed = getattr(actual, algorithm)
        if wanted.lower() != (computed or "").lower():
            raise HashMismatchError(algorithm, wanted, computed or "")
