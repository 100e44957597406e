"""Result models produced by the relay and the lookup client."""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ErrorKind(StrEnum):
    """Where a failed lookup broke down."""

    VALIDATION = "validation"
    AUTHORIZATION = "authorization"
    TRANSPORT = "transport"
    DATA = "data"
    GEOCODE = "geocode"
    INTERNAL = "internal"


class UpstreamSuccess(BaseModel):
    """Parsed JSON returned by the gateway."""

    model_config = ConfigDict(frozen=True)

    ok: Literal[True] = True
    payload: dict[str, Any]


class UpstreamFailure(BaseModel):
    """Any failed relay round-trip, transport or data level."""

    model_config = ConfigDict(frozen=True)

    ok: Literal[False] = False
    kind: ErrorKind
    error: str
    http_status: int | None = None
    detail: Any = None


RawUpstreamResult = UpstreamSuccess | UpstreamFailure


class GeocodeCandidate(BaseModel):
    """Best geocoder match for a postal code.

    Parameters
    ----------
    lat, lng : float
        WGS84 coordinates of the candidate.
    address : str or None
        Label the geocoder attached to the match.
    score : float
        Geocoder confidence, 0-100.
    """

    model_config = ConfigDict(frozen=True)

    lat: float
    lng: float
    address: str | None = None
    score: float = 0.0


class NormalizedZoneResult(BaseModel):
    """Stable output schema for one zone lookup.

    ``error`` holds a short label (``"no attributes returned"``,
    ``"geocode failed"``, ``"GSIS HTTP 502"``) and ``detail`` whatever the
    upstream gave back that explains it. ``cached`` is set on the copy
    handed to callers, never on the stored entry.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    success: bool
    assessed_value_per_area: float | None = None
    zone_id: str | None = None
    zone_name: str | None = None
    error: str | None = None
    detail: Any = None
    http_status: int | None = None
    error_kind: ErrorKind | None = Field(default=None, exclude=True)
    postal_code: str | None = None
    geocode: GeocodeCandidate | None = None
    cached: bool = False

    @classmethod
    def failure(
        cls,
        error: str,
        *,
        kind: ErrorKind,
        detail: Any = None,
        http_status: int | None = None,
        postal_code: str | None = None,
    ) -> NormalizedZoneResult:
        return cls(
            success=False,
            error=error,
            detail=detail,
            http_status=http_status,
            error_kind=kind,
            postal_code=postal_code,
        )

    @classmethod
    def from_upstream_failure(cls, failure: UpstreamFailure) -> NormalizedZoneResult:
        return cls.failure(
            failure.error,
            kind=failure.kind,
            detail=failure.detail,
            http_status=failure.http_status,
        )

    def tagged(self, *, cached: bool) -> NormalizedZoneResult:
        """Return a copy carrying the ``cached`` flag."""
        return self.model_copy(update={"cached": cached})

    def to_response(self) -> dict[str, Any]:
        """Client-facing JSON body (camelCase keys)."""
        body: dict[str, Any] = {"success": self.success}
        if self.success:
            body["assessedValuePerArea"] = self.assessed_value_per_area
            body["zoneId"] = self.zone_id
            body["zoneName"] = self.zone_name
        else:
            body["error"] = self.error
            if self.detail is not None:
                body["detail"] = self.detail
        if self.postal_code is not None:
            body["zip"] = self.postal_code
        if self.geocode is not None:
            body["geocode"] = self.geocode.model_dump()
        body["cached"] = self.cached
        return body
