"""Zone-layer request building.

Two ArcGIS request styles are supported:
  - ``query``    (``.../MapServer/<id>/query``, records under ``features``)
  - ``identify`` (``.../MapServer/identify``, records under ``results``)
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pygsis.config import ZoneLayer
from pygsis.geometry import project_point
from pygsis.models.query import CoordinateQuery, QueryKind
from pygsis.models.result import NormalizedZoneResult, UpstreamFailure
from pygsis.normalize import normalize
from pygsis.relay import UpstreamRelay

_logger = logging.getLogger(__name__)

# Half-width of the map extent sent with identify requests, in layer units.
_IDENTIFY_EXTENT = 1.0


def _point_geometry(x: float, y: float, wkid: int) -> str:
    return json.dumps({"x": x, "y": y, "spatialReference": {"wkid": wkid}}, separators=(",", ":"))


def build_zone_params(layer: ZoneLayer, query: CoordinateQuery) -> dict[str, str]:
    """Query-string parameters for the configured layer and request style."""
    x, y = project_point(query.latitude, query.longitude, layer.wkid)
    geometry = _point_geometry(x, y, layer.wkid)

    if layer.query_kind == QueryKind.IDENTIFY:
        return {
            "f": "json",
            "geometry": geometry,
            "geometryType": "esriGeometryPoint",
            "sr": str(layer.wkid),
            "layers": f"all:{layer.layer_id}",
            "tolerance": "1",
            "mapExtent": ",".join(
                str(v) for v in (x - _IDENTIFY_EXTENT, y - _IDENTIFY_EXTENT, x + _IDENTIFY_EXTENT, y + _IDENTIFY_EXTENT)
            ),
            "imageDisplay": "400,400,96",
            "returnGeometry": "false",
        }

    return {
        "f": "json",
        "where": "1=1",
        "returnGeometry": "false",
        "geometryType": "esriGeometryPoint",
        "spatialRel": "esriSpatialRelIntersects",
        "inSR": str(layer.wkid),
        "outSR": str(layer.wkid),
        "outFields": ",".join(layer.out_fields),
        "geometry": geometry,
        "distance": str(layer.distance),
        "units": layer.units,
    }


async def fetch_zone(relay: UpstreamRelay, layer: ZoneLayer, query: CoordinateQuery) -> NormalizedZoneResult:
    """Relay the zone query for *query* and normalize whatever comes back."""
    params: dict[str, Any] = build_zone_params(layer, query)
    raw = await relay.call(layer.url, params)
    if isinstance(raw, UpstreamFailure):
        _logger.debug("Zone query failed for %s: %s", query, raw.error)
        return NormalizedZoneResult.from_upstream_failure(raw)
    return normalize(raw.payload, layer.query_kind)
