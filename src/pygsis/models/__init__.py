"""Data models for lookup queries and results."""

from pygsis.models.query import CoordinateQuery, PostalCodeQuery, QueryKind, normalize_postal_code
from pygsis.models.result import (
    ErrorKind,
    GeocodeCandidate,
    NormalizedZoneResult,
    RawUpstreamResult,
    UpstreamFailure,
    UpstreamSuccess,
)

__all__ = [
    "CoordinateQuery",
    "ErrorKind",
    "GeocodeCandidate",
    "NormalizedZoneResult",
    "PostalCodeQuery",
    "QueryKind",
    "RawUpstreamResult",
    "UpstreamFailure",
    "UpstreamSuccess",
    "normalize_postal_code",
]
