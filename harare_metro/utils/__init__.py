"""
Shared utility functions.

This package contains logging helpers used across the fetch, store
and scheduling stages.
"""

from .logging import (
    JsonlFormatter,
    get_logger,
    log_event,
    setup_logging,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "log_event",
    "JsonlFormatter",
]
