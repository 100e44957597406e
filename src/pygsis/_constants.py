"""Internal constants shared across the library."""

# The gateway does a literal prefix match on whatever follows the "?", so
# target URLs are appended raw, never escaped as a query parameter value.
GATEWAY_URL = "https://maps.gsis.gr/valuemaps2/PHP/proxy.php?"
ZONE_LAYER_URL = (
    "https://maps.gsis.gr/arcgis/rest/services/APAA_PUBLIC/PUBLIC_ZONES_APAA_2021_INFO/MapServer/1/query"
)
PRIMING_TARGETS: tuple[str, ...] = ("https://maps.gsis.gr/arcgis/rest/info?f=json",)
GEOCODER_URL = "https://geocode.arcgis.com/arcgis/rest/services/World/GeocodeServer/findAddressCandidates"

ACCEPT = "application/json"
USER_AGENT = "Mozilla/5.0 (GHF-GSIS-Lookup)"
REFERER = "https://maps.gsis.gr/valuemaps/"
ORIGIN = "https://maps.gsis.gr"

AUTH_FAILURE_STATUSES: frozenset[int] = frozenset({401, 403})
# ArcGIS token errors (498 invalid token, 499 token required) arrive inside
# an HTTP 200 error envelope.
AUTH_FAILURE_ERROR_CODES: frozenset[int] = frozenset({401, 403, 498, 499})

# ------------------------------------------------------------------
# Spatial references
# ------------------------------------------------------------------

WGS84_WKID = 4326
WEB_MERCATOR_WKID = 102100
WEB_MERCATOR_ALIASES: frozenset[int] = frozenset({102100, 102113, 3857, 900913})
WEB_MERCATOR_EXTENT = 20037508.34

ZONE_OUT_FIELDS: tuple[str, ...] = ("ZONEREGISTRYID", "ZONENAME", "TIMH", "CURRENTZONEVALUE")

# ------------------------------------------------------------------
# Cache retention (seconds)
# ------------------------------------------------------------------

SUCCESS_TTL: float = 30 * 24 * 3600
FAILURE_TTL: float = 2 * 60
SESSION_FRESHNESS: float = 20 * 60

SNIPPET_LENGTH = 300
