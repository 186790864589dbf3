"""Tests for structured logging."""

import json
import logging

from artifact_repository.observability.logger import (
    StructuredFormatter,
    clear_context,
    get_logger,
    log_context,
    set_context,
    set_level,
)


def _record(message: str, **extra) -> logging.LogRecord:
    record = logging.LogRecord("artifact_repository.test", logging.INFO, __file__, 1, message, (), None)
    for name, value in extra.items():
        setattr(record, name, value)
    return record


class TestStructuredLogger:
    """Tests for StructuredLogger."""

    def test_get_logger_caches(self) -> None:
        """Test that get_logger returns same instance."""
        logger1 = get_logger("test")
        logger2 = get_logger("test")
        assert logger1 is logger2

    def test_get_logger_different_names(self) -> None:
        """Test that different names get different loggers."""
        logger1 = get_logger("test1")
        logger2 = get_logger("test2")
        assert logger1 is not logger2

    def test_set_level_applies_to_cached_loggers(self) -> None:
        """Test set_level updates existing and future loggers."""
        existing = get_logger("test-level-existing")
        set_level("WARNING")
        try:
            assert existing._logger.level == logging.WARNING
            assert get_logger("test-level-new")._logger.level == logging.WARNING
        finally:
            set_level("INFO")

    def test_domain_helpers_attach_extra_data(self, caplog) -> None:
        """Test the artifact helpers log their payload as extra_data."""
        logger = get_logger("test-helpers")
        logger._logger.propagate = True
        with caplog.at_level(logging.INFO, logger="test-helpers"):
            logger.artifact_deduplicated("aaaa", "obj-1", legacy=True)

        record = caplog.records[-1]
        assert record.extra_data["outcome"] == "deduplicated"
        assert record.extra_data["legacy"] is True


class TestStructuredFormatter:
    """Tests for JSON formatting."""

    def test_includes_context_and_data(self) -> None:
        """Test tenant/operation tags and extra data are serialized."""
        clear_context()
        set_context(tenant_id="TENANTA", operation="commit")
        try:
            output = json.loads(
                StructuredFormatter().format(_record("hello", extra_data={"content_hash": "aaaa"}))
            )
        finally:
            clear_context()

        assert output["message"] == "hello"
        assert output["tenant_id"] == "TENANTA"
        assert output["operation"] == "commit"
        assert output["data"] == {"content_hash": "aaaa"}

    def test_omits_empty_context(self) -> None:
        """Test untagged records carry no context keys."""
        clear_context()
        output = json.loads(StructuredFormatter().format(_record("plain")))
        assert "tenant_id" not in output
        assert "operation" not in output


class TestLoggingContext:
    """Tests for logging context management."""

    def test_set_and_clear_context(self) -> None:
        """Test setting and clearing context."""
        set_context(tenant_id="TENANTA", operation="retrieve")

        # Clear should reset all
        clear_context()

        from artifact_repository.observability.logger import _operation, _tenant_id

        assert _tenant_id.get() is None
        assert _operation.get() is None

    def test_partial_context_update(self) -> None:
        """Test that partial updates preserve other values."""
        clear_context()
        set_context(tenant_id="TENANTA")

        from artifact_repository.observability.logger import _operation, _tenant_id

        assert _tenant_id.get() == "TENANTA"
        assert _operation.get() is None

        set_context(operation="commit")
        assert _tenant_id.get() == "TENANTA"
        assert _operation.get() == "commit"
        clear_context()

    def test_log_context_restores_previous(self) -> None:
        """Test the context manager restores outer tags on exit."""
        clear_context()
        set_context(tenant_id="OUTER")

        from artifact_repository.observability.logger import _operation, _tenant_id

        with log_context(tenant_id="INNER", operation="delete_by_tenant"):
            assert _tenant_id.get() == "INNER"
            assert _operation.get() == "delete_by_tenant"

        assert _tenant_id.get() == "OUTER"
        assert _operation.get() is None
        clear_context()
