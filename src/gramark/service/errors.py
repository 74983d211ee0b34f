"""Exception hierarchy for the correction service client."""

from __future__ import annotations


class CorrectionServiceError(Exception):
    """Base exception for correction service failures."""


class ServiceConnectionError(CorrectionServiceError):
    """Correction service is unreachable."""


class ServiceTimeoutError(CorrectionServiceError):
    """Request exceeded the configured timeout."""


class ServiceHTTPError(CorrectionServiceError):
    """Service answered with a non-2xx status.

    Attributes:
        status_code: HTTP status returned by the service.
        body: Response body text, possibly empty.
    """

    def __init__(self, status_code: int, body: str = "", message: str | None = None) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(message or f"HTTP {status_code}: {body}")


class ServiceAuthenticationError(ServiceHTTPError):
    """Token was rejected (401)."""

    def __init__(self, body: str = "") -> None:
        super().__init__(401, body, "Authentication failed. Please check your token.")


class ServiceForbiddenError(ServiceHTTPError):
    """Token lacks permission for the endpoint (403)."""

    def __init__(self, body: str = "") -> None:
        super().__init__(403, body, "Access forbidden. Please check your permissions.")


class ServiceRateLimitError(ServiceHTTPError):
    """Too many requests (429)."""

    def __init__(self, body: str = "") -> None:
        super().__init__(429, body, "Rate limit exceeded. Please try again later.")


class MalformedResponseError(CorrectionServiceError):
    """Response had invalid JSON, an unexpected shape or missing fields."""
