"""Domain-specific exceptions for restaurant-hub.

Every error carries the HTTP status and the generic message that is safe
to show an anonymous client. Detail for operators goes to the log, never
into ``public_message``.
"""

from __future__ import annotations


class RestaurantHubError(Exception):
    """Base class for errors mapped to HTTP responses at the API boundary."""

    status_code: int = 500
    public_message: str = "Internal server error"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.public_message)


class ResolutionFailure(RestaurantHubError):
    """No tenant slug could be determined from the request."""

    status_code = 400
    public_message = "Tenant could not be resolved from request"


class TenantNotFound(RestaurantHubError):
    """A slug was resolved but no active tenant has it."""

    status_code = 404
    public_message = "Restaurant not found"

    def __init__(self, slug: str) -> None:
        self.slug = slug
        super().__init__(f"No active tenant with slug '{slug}'")


class TokenRejected(RestaurantHubError):
    """Scan token missing, unknown, expired, consumed or for another tenant.

    The reasons are deliberately not distinguished for the client.
    """

    status_code = 401
    public_message = "Invalid or expired scan token. Please scan QR code again."


class ValidationFailure(RestaurantHubError):
    """Malformed caller input unrelated to tenancy or tokens."""

    status_code = 400

    def __init__(self, message: str) -> None:
        self.public_message = message
        super().__init__(message)


class RateLimited(RestaurantHubError):
    """Too many public requests for one tenant within the window."""

    status_code = 429
    public_message = "Too many requests"

    def __init__(self, retry_after: int) -> None:
        self.retry_after = retry_after
        super().__init__(f"Rate limit exceeded, retry after {retry_after}s")


class BackingStoreFailure(RestaurantHubError):
    """Transient I/O error from the tenant, token or comment store."""
