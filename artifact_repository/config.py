"""Repository configuration.

Settings are read from environment variables (optionally seeded from a
``.env`` file). Constructor arguments always win over the environment.
"""

import os
from enum import Enum
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field


class TenantCase(str, Enum):
    """Case folding applied to tenant identifiers before addressing."""

    UPPER = "upper"
    LOWER = "lower"
    PRESERVE = "preserve"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class RepositorySettings(BaseModel):
    """Connection and addressing settings for the artifact repository."""

    endpoint: str = Field(default="localhost:9000", description="MinIO endpoint host:port")
    access_key: str = Field(default="minioadmin")
    secret_key: str = Field(default="minioadmin")
    secure: bool = Field(default=False, description="Use HTTPS")
    bucket: str = Field(default="artifact-repository")
    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Connect/read timeout for every backend call",
    )
    key_prefix: str = Field(
        default="artifacts",
        description="Object name prefix under which all entries live",
    )
    tenant_case: TenantCase = Field(default=TenantCase.UPPER)
    staging_max_attempts: int = Field(
        default=8,
        ge=1,
        description="Temp key candidates tried before staging gives up",
    )
    dedup_against_legacy: bool = Field(
        default=True,
        description="Let pre-tenancy entries satisfy the commit dedup check",
    )
    log_level: str = Field(default="INFO")

    @classmethod
    def from_env(cls, env_file: str | Path | None = None) -> "RepositorySettings":
        """Build settings from the process environment.

        Args:
            env_file: Optional ``.env`` file loaded first (existing variables win)

        Returns:
            RepositorySettings populated from the environment
        """
        if env_file is not None:
            load_dotenv(env_file)

        return cls(
            endpoint=os.getenv("MINIO_ENDPOINT") or "localhost:9000",
            access_key=os.getenv("MINIO_ACCESS_KEY") or "minioadmin",
            secret_key=os.getenv("MINIO_SECRET_KEY") or "minioadmin",
            secure=_env_bool("MINIO_USE_SSL", False),
            bucket=os.getenv("MINIO_BUCKET") or "artifact-repository",
            timeout_seconds=float(os.getenv("MINIO_TIMEOUT_SECONDS", "30")),
            key_prefix=os.getenv("ARTIFACT_KEY_PREFIX") or "artifacts",
            tenant_case=TenantCase(os.getenv("ARTIFACT_TENANT_CASE", "upper").lower()),
            staging_max_attempts=int(os.getenv("ARTIFACT_STAGING_MAX_ATTEMPTS", "8")),
            dedup_against_legacy=_env_bool("ARTIFACT_DEDUP_AGAINST_LEGACY", True),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
