"""pygsis - Async relay for GSIS assessed land values (Greece)."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pygsis")
except PackageNotFoundError:
    __version__ = "0+local"
from pygsis._cache import CacheEntry, OutcomeCache
from pygsis.client import GsisLookupClient
from pygsis.config import GsisConfig, ZoneLayer
from pygsis.exceptions import (
    GsisAuthorizationError,
    GsisConfigError,
    GsisDataError,
    GsisError,
    GsisGeocodeError,
    GsisTransportError,
    GsisValidationError,
)
from pygsis.models import (
    CoordinateQuery,
    ErrorKind,
    GeocodeCandidate,
    NormalizedZoneResult,
    PostalCodeQuery,
    QueryKind,
    UpstreamFailure,
    UpstreamSuccess,
)
from pygsis.normalize import normalize
from pygsis.relay import UpstreamRelay
from pygsis.session import AuthorizationState, SessionManager

__all__ = [
    "__version__",
    "AuthorizationState",
    "CacheEntry",
    "CoordinateQuery",
    "ErrorKind",
    "GeocodeCandidate",
    "GsisAuthorizationError",
    "GsisConfig",
    "GsisConfigError",
    "GsisDataError",
    "GsisError",
    "GsisGeocodeError",
    "GsisLookupClient",
    "GsisTransportError",
    "GsisValidationError",
    "NormalizedZoneResult",
    "OutcomeCache",
    "PostalCodeQuery",
    "QueryKind",
    "SessionManager",
    "UpstreamFailure",
    "UpstreamRelay",
    "UpstreamSuccess",
    "ZoneLayer",
    "normalize",
]
