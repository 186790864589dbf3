"""Blob backend implementation using MinIO.

Object layout: {prefix}/{key}/{suffix}

- Staged and legacy entries use a random suffix, so one key may hold several
  objects told apart by their user metadata.
- Entries renamed with ``unique_on`` get a suffix derived from the unique
  metadata values. Concurrent renames to the same address therefore converge
  on one object name instead of producing two entries.

All transport failures surface as StoreUnavailableError. The HTTP client is
built without retries so failures reach the caller on the first attempt.
"""

import hashlib
import json
import logging
import os
import uuid
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import Any, BinaryIO

import urllib3
from minio import Minio
from minio.commonconfig import REPLACE, ComposeSource, CopySource
from minio.deleteobjects import DeleteObject
from minio.error import MinioException, S3Error

from ..core.errors import (
    ArtifactNotFoundError,
    ArtifactStoreError,
    DuplicateEntryError,
    StoreUnavailableError,
)
from .backend import BlobBackend
from .schemas import BlobEntry, MetadataFilter

logger = logging.getLogger(__name__)

_MISSING_CODES = frozenset({"NoSuchKey", "NoSuchObject"})
_USER_META_PREFIX = "x-amz-meta-"
_PART_SIZE = 10 * 1024 * 1024
# Largest object a single server-side copy accepts
_MAX_COPY_SIZE = 5 * 1024 * 1024 * 1024


def _user_metadata(headers: Any) -> dict[str, str]:
    """Extract x-amz-meta-* headers as a plain field -> value dict."""
    metadata: dict[str, str] = {}
    for name, value in (headers or {}).items():
        lowered = name.lower()
        if lowered.startswith(_USER_META_PREFIX):
            metadata[lowered[len(_USER_META_PREFIX):]] = value
    return metadata


def _is_missing(error: S3Error) -> bool:
    return error.code in _MISSING_CODES


@contextmanager
def _guarded(action: str) -> Iterator[None]:
    """Translate MinIO / transport failures into StoreUnavailableError.

    S3 "not found" errors pass through untouched for the caller to handle.
    Requests the client refuses to build become ArtifactStoreError.
    """
    try:
        yield
    except S3Error as e:
        if _is_missing(e):
            raise
        logger.warning(f"MinIO {action} failed: {e.code}")
        raise StoreUnavailableError(f"Failed to {action}: {e}") from e
    except (MinioException, urllib3.exceptions.HTTPError, OSError) as e:
        logger.warning(f"MinIO {action} failed: {type(e).__name__}")
        raise StoreUnavailableError(f"Failed to {action}: {e}") from e
    except ValueError as e:
        # minio rejects requests it can't send (sizes, names) with ValueError
        raise ArtifactStoreError(f"Failed to {action}: {e}") from e


class MinioBlobBackend(BlobBackend):
    """MinIO-based BlobBackend with metadata-filtered lookups."""

    def __init__(
        self,
        endpoint: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        secure: bool | None = None,
        bucket: str | None = None,
        prefix: str = "artifacts",
        timeout_seconds: float = 30.0,
        client: Minio | None = None,
    ):
        """Initialize MinIO backend.

        Args:
            endpoint: MinIO endpoint (default: MINIO_ENDPOINT env or localhost:9000)
            access_key: Access key (default: MINIO_ACCESS_KEY env or minioadmin)
            secret_key: Secret key (default: MINIO_SECRET_KEY env or minioadmin)
            secure: Use HTTPS (default: MINIO_USE_SSL env or false)
            bucket: Bucket name (default: MINIO_BUCKET env or artifact-repository)
            prefix: Object name prefix for every entry
            timeout_seconds: Connect/read timeout per request
            client: Pre-built client (skips lazy construction)
        """
        self.endpoint: str = endpoint or os.getenv("MINIO_ENDPOINT") or "localhost:9000"
        self.access_key: str = access_key or os.getenv("MINIO_ACCESS_KEY") or "minioadmin"
        self.secret_key: str = secret_key or os.getenv("MINIO_SECRET_KEY") or "minioadmin"
        self.secure: bool = secure if secure is not None else (
            os.getenv("MINIO_USE_SSL", "false").lower() == "true"
        )
        self.bucket: str = bucket or os.getenv("MINIO_BUCKET") or "artifact-repository"
        self.prefix: str = prefix.strip("/")
        self.timeout_seconds = timeout_seconds

        self._client: Minio | None = client
        self._bucket_ready = False

    @property
    def client(self) -> Minio:
        """Lazy initialization of MinIO client."""
        if self._client is None:
            http_client = urllib3.PoolManager(
                timeout=urllib3.Timeout(
                    connect=self.timeout_seconds,
                    read=self.timeout_seconds,
                ),
                retries=urllib3.Retry(total=0),
            )
            self._client = Minio(
                endpoint=self.endpoint,
                access_key=self.access_key,
                secret_key=self.secret_key,
                secure=self.secure,
                http_client=http_client,
            )
        return self._client

    def _ensure_bucket(self) -> None:
        """Ensure the bucket exists, create if not."""
        if self._bucket_ready:
            return
        with _guarded("ensure bucket"):
            if not self.client.bucket_exists(bucket_name=self.bucket):
                self.client.make_bucket(bucket_name=self.bucket)
        self._bucket_ready = True

    def _key_prefix(self, key: str) -> str:
        return f"{self.prefix}/{key}/"

    def _unique_suffix(self, metadata: dict[str, str], unique_on: list[str]) -> str:
        values = [[name, metadata.get(name)] for name in unique_on]
        digest = hashlib.sha256(json.dumps(values).encode("utf-8")).hexdigest()
        return f"u-{digest[:32]}"

    def _stat(self, object_name: str) -> BlobEntry | None:
        """Stat one object and map it to a BlobEntry, None if it vanished."""
        try:
            with _guarded("stat object"):
                stat = self.client.stat_object(
                    bucket_name=self.bucket,
                    object_name=object_name,
                )
        except S3Error as e:
            if _is_missing(e):
                return None
            raise

        key = object_name[len(self.prefix) + 1:].rsplit("/", 1)[0]
        return BlobEntry(
            object_id=object_name,
            key=key,
            size_bytes=stat.size or 0,
            content_type=stat.content_type,
            metadata=_user_metadata(stat.metadata),
            created_at=stat.last_modified,
        )

    def _list(self, prefix: str) -> list[str]:
        with _guarded("list objects"):
            objects = self.client.list_objects(
                bucket_name=self.bucket,
                prefix=prefix,
                recursive=True,
            )
            return [obj.object_name for obj in objects]

    def put(
        self,
        key: str,
        stream: BinaryIO,
        metadata: dict[str, str] | None = None,
        content_type: str | None = None,
    ) -> BlobEntry:
        self._ensure_bucket()

        object_name = f"{self._key_prefix(key)}{uuid.uuid4().hex}"
        with _guarded("put object"):
            self.client.put_object(
                bucket_name=self.bucket,
                object_name=object_name,
                data=stream,
                length=-1,
                part_size=_PART_SIZE,
                content_type=content_type or "application/octet-stream",
                metadata=dict(metadata or {}),
            )

        entry = self._stat(object_name)
        if entry is None:
            raise StoreUnavailableError(f"Object {object_name} vanished after upload")
        return entry

    def find(
        self,
        key: str,
        where: MetadataFilter | None = None,
        limit: int | None = None,
    ) -> list[BlobEntry]:
        found: list[BlobEntry] = []
        for object_name in self._list(self._key_prefix(key)):
            entry = self._stat(object_name)
            if entry is None or not entry.matches(where):
                continue
            found.append(entry)
            if limit is not None and len(found) >= limit:
                break
        return found

    def open(self, object_id: str) -> BinaryIO:
        try:
            with _guarded("get object"):
                return self.client.get_object(
                    bucket_name=self.bucket,
                    object_name=object_id,
                )
        except S3Error as e:
            raise ArtifactNotFoundError(f"Object not found: {object_id}") from e

    def delete(self, object_id: str) -> None:
        try:
            with _guarded("remove object"):
                self.client.remove_object(
                    bucket_name=self.bucket,
                    object_name=object_id,
                )
        except S3Error:
            return  # Already deleted

    def delete_many(self, where: MetadataFilter) -> int:
        doomed = []
        for object_name in self._list(f"{self.prefix}/"):
            entry = self._stat(object_name)
            if entry is not None and entry.matches(where):
                doomed.append(object_name)

        if not doomed:
            return 0

        with _guarded("remove objects"):
            # remove_objects is lazy; iterating the errors performs the delete
            errors = list(
                self.client.remove_objects(
                    bucket_name=self.bucket,
                    delete_object_list=[DeleteObject(name) for name in doomed],
                )
            )
        if errors:
            raise StoreUnavailableError(
                f"Failed to delete {len(errors)} of {len(doomed)} objects: {errors[0]}"
            )
        return len(doomed)

    def rename(
        self,
        object_id: str,
        new_key: str,
        metadata: dict[str, str] | None = None,
        content_type: str | None = None,
        unique_on: Iterable[str] = (),
    ) -> BlobEntry:
        source = self._stat(object_id)
        if source is None:
            raise ArtifactNotFoundError(f"Object not found: {object_id}")

        new_metadata = dict(metadata or {})
        unique_fields = list(unique_on)
        if unique_fields:
            suffix = self._unique_suffix(new_metadata, unique_fields)
        else:
            suffix = uuid.uuid4().hex
        target = f"{self._key_prefix(new_key)}{suffix}"

        if unique_fields and self._stat(target) is not None:
            taken = {name: new_metadata.get(name) for name in unique_fields}
            raise DuplicateEntryError(f"Entry {new_key} already exists for {taken}")

        headers = dict(new_metadata)
        headers["Content-Type"] = content_type or source.content_type or "application/octet-stream"
        if source.size_bytes > _MAX_COPY_SIZE:
            # multipart server-side copy
            with _guarded("compose object"):
                self.client.compose_object(
                    bucket_name=self.bucket,
                    object_name=target,
                    sources=[ComposeSource(bucket_name=self.bucket, object_name=object_id)],
                    metadata=headers,
                )
        else:
            with _guarded("copy object"):
                self.client.copy_object(
                    bucket_name=self.bucket,
                    object_name=target,
                    source=CopySource(bucket_name=self.bucket, object_name=object_id),
                    metadata=headers,
                    metadata_directive=REPLACE,
                )
        self.delete(object_id)

        renamed = self._stat(target)
        if renamed is None:
            raise ArtifactStoreError(f"Object {target} vanished after rename")
        return renamed
