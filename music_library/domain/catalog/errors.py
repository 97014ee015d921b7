"""Error taxonomy for catalog operations.

Every failure a caller can observe is a ``CatalogError`` carrying the HTTP
status it maps to and a stable ``error_code``. Components raise these and let
them propagate; only the HTTP boundary turns them into responses.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class CatalogError(Exception):
    status_code = 500
    error_code = "catalog_error"

    def __init__(self, message: str, *, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.error_code, "message": self.message}


class MissingIdentity(CatalogError):
    """Author and/or title were not provided for an identity-requiring call."""

    status_code = 400
    error_code = "missing_identity"

    def __init__(self, message: str = "author and song must both be provided"):
        super().__init__(message)


class MalformedPagination(CatalogError):
    status_code = 400
    error_code = "malformed_pagination"


class InvalidVerseIndex(CatalogError):
    status_code = 400
    error_code = "invalid_verse_index"


class InvalidPayload(CatalogError):
    status_code = 400
    error_code = "invalid_payload"


class NotFound(CatalogError):
    status_code = 404
    error_code = "not_found"


class Conflict(CatalogError):
    status_code = 409
    error_code = "conflict"


class UpstreamBadRequest(CatalogError):
    """The enrichment service rejected the identifying fields."""

    status_code = 400
    error_code = "upstream_bad_request"


class UpstreamUnavailable(CatalogError):
    """The enrichment service kept answering with server errors."""

    status_code = 500
    error_code = "upstream_unavailable"


class UpstreamUnexpected(CatalogError):
    """Transport failure, or a status the enrichment contract does not define.

    For unexpected statuses the raw upstream code is forwarded to the caller.
    """

    status_code = 500
    error_code = "upstream_unexpected"

    def __init__(self, message: str, *, upstream_status: Optional[int] = None):
        super().__init__(message, status_code=upstream_status)
        self.upstream_status = upstream_status


class EnrichmentCancelled(CatalogError):
    status_code = 503
    error_code = "enrichment_cancelled"


class StoreFailure(CatalogError):
    status_code = 500
    error_code = "store_failure"


__all__ = [
    "CatalogError",
    "MissingIdentity",
    "MalformedPagination",
    "InvalidVerseIndex",
    "InvalidPayload",
    "NotFound",
    "Conflict",
    "UpstreamBadRequest",
    "UpstreamUnavailable",
    "UpstreamUnexpected",
    "EnrichmentCancelled",
    "StoreFailure",
]
