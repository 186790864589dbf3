"""Structured logging for artifact repository observability.

Provides context-aware logging with automatic tenant/operation tagging.
"""

import json
import logging
import os
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime
from typing import Any, Iterator

# Context variables for automatic tagging
_tenant_id: ContextVar[str | None] = ContextVar("tenant_id", default=None)
_operation: ContextVar[str | None] = ContextVar("operation", default=None)


def set_context(
    tenant_id: str | None = None,
    operation: str | None = None,
) -> None:
    """Set logging context variables."""
    if tenant_id is not None:
        _tenant_id.set(tenant_id)
    if operation is not None:
        _operation.set(operation)


def clear_context() -> None:
    """Clear all logging context variables."""
    _tenant_id.set(None)
    _operation.set(None)


@contextmanager
def log_context(
    tenant_id: str | None = None,
    operation: str | None = None,
) -> Iterator[None]:
    """Tag log records emitted inside the block, restoring previous tags after."""
    tenant_token = _tenant_id.set(tenant_id) if tenant_id is not None else None
    operation_token = _operation.set(operation) if operation is not None else None
    try:
        yield
    finally:
        if operation_token is not None:
            _operation.reset(operation_token)
        if tenant_token is not None:
            _tenant_id.reset(tenant_token)


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": datetime.now().isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Add context from contextvars
        if tenant_id := _tenant_id.get():
            log_data["tenant_id"] = tenant_id
        if operation := _operation.get():
            log_data["operation"] = operation

        # Add extra fields
        if hasattr(record, "extra_data"):
            log_data["data"] = record.extra_data

        # Add exception info
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class StructuredLogger:
    """Logger with structured output and context awareness."""

    def __init__(self, name: str, level: int | None = None):
        """Initialize structured logger.

        Args:
            name: Logger name
            level: Logging level (default: LOG_LEVEL env or INFO)
        """
        if level is None:
            level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)

        self._logger = logging.getLogger(name)
        self._logger.setLevel(level)

        # Add handler if not already configured
        if not self._logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(StructuredFormatter())
            self._logger.addHandler(handler)

    @property
    def name(self) -> str:
        return self._logger.name

    def _log(
        self,
        level: int,
        msg: str,
        *args: Any,
        extra_data: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> None:
        """Log with optional extra data."""
        extra = kwargs.pop("extra", {})
        if extra_data:
            extra["extra_data"] = extra_data
        self._logger.log(level, msg, *args, extra=extra, **kwargs)

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log debug message."""
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log info message."""
        self._log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log warning message."""
        self._log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log error message."""
        self._log(logging.ERROR, msg, *args, **kwargs)

    def exception(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log exception with traceback."""
        self._log(logging.ERROR, msg, *args, exc_info=True, **kwargs)

    def artifact_committed(
        self,
        content_hash: str,
        object_id: str,
        size_bytes: int,
        **extra: Any,
    ) -> None:
        """Log a staged upload promoted to a committed artifact."""
        self.info(
            f"Artifact {content_hash} committed",
            extra_data={
                "content_hash": content_hash,
                "object_id": object_id,
                "size_bytes": size_bytes,
                "outcome": "promoted",
                **extra,
            },
        )

    def artifact_deduplicated(
        self,
        content_hash: str,
        object_id: str,
        legacy: bool = False,
        **extra: Any,
    ) -> None:
        """Log a commit answered by an already committed artifact."""
        self.info(
            f"Artifact {content_hash} already committed",
            extra_data={
                "content_hash": content_hash,
                "object_id": object_id,
                "legacy": legacy,
                "outcome": "deduplicated",
                **extra,
            },
        )

    def staging_discarded(self, temp_key: str, **extra: Any) -> None:
        """Log removal of a staged upload."""
        self.debug(
            f"Staged upload {temp_key} discarded",
            extra_data={"temp_key": temp_key, **extra},
        )

    def artifacts_purged(self, tenant: str, count: int, **extra: Any) -> None:
        """Log bulk removal of a tenant's artifacts."""
        self.info(
            f"Purged {count} artifacts for tenant {tenant}",
            extra_data={"tenant": tenant, "count": count, **extra},
        )


# Global logger cache
_loggers: dict[str, StructuredLogger] = {}


_default_level: int | None = None


def get_logger(name: str) -> StructuredLogger:
    """Get or create a structured logger.

    Args:
        name: Logger name

    Returns:
        StructuredLogger instance
    """
    if name not in _loggers:
        _loggers[name] = StructuredLogger(name, level=_default_level)
    return _loggers[name]


def set_level(level: str | int) -> None:
    """Set the level of every cached structured logger and of future ones."""
    global _default_level
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    _default_level = level
    for structured in _loggers.values():
        structured._logger.setLevel(level)
