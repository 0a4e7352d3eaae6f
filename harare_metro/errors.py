"""Exception types shared across the aggregation backend."""

from __future__ import annotations


class HarareMetroError(Exception):
    """Base class for all errors raised by this package."""


class FeedParseError(HarareMetroError):
    """Raised when a feed document is too short or cannot be parsed."""


class StoreError(HarareMetroError):
    """Raised when a key-value backend fails to read or write."""


class ServiceUnavailableError(HarareMetroError):
    """Raised when the backend services cannot be initialised."""


class RefreshError(HarareMetroError):
    """Raised when an admin-forced refresh does not produce a snapshot."""
