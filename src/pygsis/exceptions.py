"""Custom exception hierarchy for pygsis."""

from __future__ import annotations

from typing import Any


class GsisError(Exception):
    """Base exception for all pygsis errors."""


class GsisConfigError(GsisError):
    """Invalid or missing configuration."""


class GsisValidationError(GsisError, ValueError):
    """Malformed lookup input (non-finite coordinates, bad postal code).

    Raised before any network call is attempted.
    """


class GsisTransportError(GsisError):
    """HTTP-level failure (network error, timeout, non-2xx status)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        target: str = "",
        detail: Any = None,
    ) -> None:
        self.status_code = status_code
        self.target = target
        self.detail = detail
        super().__init__(message)


class GsisAuthorizationError(GsisTransportError):
    """Gateway rejected the call because credentials are missing or expired.

    The relay catches this internally to trigger one re-authorization.
    """


class GsisDataError(GsisError):
    """Response body is not usable data.

    Covers non-JSON bodies, ArcGIS ``{"error": {...}}`` envelopes returned
    with HTTP 200, and payloads of an unexpected shape.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        target: str = "",
        detail: Any = None,
    ) -> None:
        self.status_code = status_code
        self.target = target
        self.detail = detail
        super().__init__(message)


class GsisGeocodeError(GsisError):
    """Postal code could not be resolved to a sufficiently confident point."""

    def __init__(self, message: str, *, postal_code: str = "", score: float | None = None) -> None:
        self.postal_code = postal_code
        self.score = score
        super().__init__(message)
