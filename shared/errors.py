"""
Shared error handling for the EliteScholar Access Layer.

Error taxonomy:

- CatalogIntegrityError: broken catalog data (duplicate slugs, duplicate
  hrefs, malformed links). Fatal at load time, never repaired.
- StoreUnavailableError: a backing store could not be read. Retryable; the
  caller owns retry and backoff.
- ResolutionTimeoutError: resolution exceeded its deadline. Retryable.
- AuthenticationError: the bearer credential could not be turned into a
  session.

Gated access and unmapped pages are results, not errors, and have no
exception type here.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel, Field

from opentelemetry import trace


class ErrorResponse(BaseModel):
    """Standard error response format."""

    trace_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)
    retryable: bool = False


class AccessLayerException(Exception):
    """Base exception for Access Layer services."""

    status_code: int = 400
    retryable: bool = False

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        trace_id = None
        current_span = trace.get_current_span()
        if current_span and current_span.is_recording():
            span_context = current_span.get_span_context()
            if span_context.trace_id != 0:
                trace_id = f"{span_context.trace_id:032x}"

        return ErrorResponse(
            trace_id=trace_id,
            code=self.code,
            message=self.message,
            details=self.details,
            retryable=self.retryable
        )


class AuthenticationError(AccessLayerException):
    """Authentication-related errors."""

    status_code = 401

    def __init__(self, message: str = "Authentication failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("AUTHENTICATION_ERROR", message, details)


class CatalogIntegrityError(AccessLayerException):
    """The feature catalog or a menu-link list violates an integrity rule."""

    status_code = 500

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(code, message, details)


class DuplicateSlugError(CatalogIntegrityError):
    """Two active features produce the same slug."""

    def __init__(self, slug: str, feature_keys: list):
        super().__init__(
            "DUPLICATE_SLUG",
            f"Slug '{slug}' is shared by features {', '.join(sorted(feature_keys))}",
            details={"slug": slug, "feature_keys": sorted(feature_keys)}
        )


class DuplicateHrefError(CatalogIntegrityError):
    """A menu-link list contains the same href twice."""

    def __init__(self, href: str, owner: str):
        super().__init__(
            "DUPLICATE_HREF",
            f"Menu links for {owner} contain '{href}' more than once",
            details={"href": href, "owner": owner}
        )


class InvalidMenuLinkError(CatalogIntegrityError):
    """A menu link is missing its name or has a non-absolute href."""

    def __init__(self, reason: str, owner: str, index: int):
        super().__init__(
            "INVALID_MENU_LINK",
            f"Menu link #{index} for {owner}: {reason}",
            details={"owner": owner, "index": index, "reason": reason}
        )


class StoreUnavailableError(AccessLayerException):
    """A catalog or entitlement store read failed."""

    status_code = 503
    retryable = True

    def __init__(self, store: str, message: str = "Store unavailable", details: Optional[Dict[str, Any]] = None):
        super().__init__("STORE_UNAVAILABLE", f"{store}: {message}", details)
        self.store = store


class ResolutionTimeoutError(StoreUnavailableError):
    """Menu resolution did not finish before its deadline."""

    def __init__(self, tenant_id: str, timeout_seconds: float):
        super().__init__(
            "resolver",
            f"Resolution exceeded {timeout_seconds}s",
            details={"tenant_id": tenant_id, "timeout_seconds": timeout_seconds}
        )
        self.code = "RESOLUTION_TIMEOUT"
