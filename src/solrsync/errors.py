"""Exception hierarchy shared across solrsync packages."""

from __future__ import annotations

from typing import Any, Mapping


class SolrSyncError(Exception):
    """Base exception for all solrsync errors."""


class ConfigConflict(SolrSyncError):
    """Raised when a field is re-registered with options that differ from the first.

    Attributes:
        name: Field name that was registered twice.
        existing: Options recorded by the first registration.
        requested: Options supplied by the conflicting registration.
    """

    def __init__(
        self,
        name: str,
        existing: Mapping[str, Any],
        requested: Mapping[str, Any],
    ) -> None:
        self.name = name
        self.existing = dict(existing)
        self.requested = dict(requested)
        super().__init__(
            f"Solr field '{name}' has already been configured with different options: "
            f"existing={self.existing!r} requested={self.requested!r}"
        )


class ConfigError(SolrSyncError):
    """Raised when configuration cannot be read or fails validation."""


class ArgumentError(SolrSyncError, ValueError):
    """Raised for malformed query input or invalid options, before any network call."""


class ObserverConfigError(SolrSyncError):
    """Raised when an association cannot be observed for change propagation."""


class NestedBatchError(SolrSyncError):
    """Raised when a batch scope is entered while another one is active."""


class RehydrationError(SolrSyncError):
    """Raised when search results cannot be mapped back onto entities."""


class SolrConnectionError(SolrSyncError, ConnectionError):
    """Raised when the Solr server cannot be reached.

    Attributes:
        url: The URL that was being requested.
    """

    def __init__(self, url: str, message: str | None = None) -> None:
        self.url = url
        super().__init__(message or f"Unable to reach Solr at {url}")


class SolrResponseError(SolrSyncError):
    """Raised when Solr answers with a non-2xx status.

    Attributes:
        status_code: HTTP status returned by Solr.
        body_excerpt: Short excerpt of the response body for diagnosis.
    """

    def __init__(self, status_code: int, body_excerpt: str) -> None:
        self.status_code = status_code
        self.body_excerpt = body_excerpt
        super().__init__(f"{status_code}: {body_excerpt}")


__all__ = [
    "SolrSyncError",
    "ConfigConflict",
    "ConfigError",
    "ArgumentError",
    "ObserverConfigError",
    "NestedBatchError",
    "RehydrationError",
    "SolrConnectionError",
    "SolrResponseError",
]
