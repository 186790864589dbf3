"""Observability module for the artifact repository.

This module provides:
- Structured JSON logging with tenant/operation context
"""

from .logger import (
    StructuredFormatter,
    StructuredLogger,
    clear_context,
    get_logger,
    log_context,
    set_context,
    set_level,
)

__all__ = [
    "StructuredFormatter",
    "StructuredLogger",
    "get_logger",
    "set_context",
    "clear_context",
    "log_context",
    "set_level",
]
