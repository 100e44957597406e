"""Point projection into the spatial reference a zone layer expects."""

from __future__ import annotations

import math

from pygsis._constants import WEB_MERCATOR_ALIASES, WEB_MERCATOR_EXTENT, WGS84_WKID
from pygsis.exceptions import GsisConfigError


def to_web_mercator(lat: float, lng: float) -> tuple[float, float]:
    """Spherical Web Mercator (EPSG:3857 / wkid 102100) from WGS84 degrees."""
    x = lng * WEB_MERCATOR_EXTENT / 180.0
    y = math.log(math.tan((90.0 + lat) * math.pi / 360.0)) / (math.pi / 180.0)
    y = y * WEB_MERCATOR_EXTENT / 180.0
    return x, y


def project_point(lat: float, lng: float, wkid: int) -> tuple[float, float]:
    """Return ``(x, y)`` for *wkid*.

    Raises
    ------
    GsisConfigError
        If *wkid* is neither WGS84 nor a Web Mercator alias.
    """
    if wkid in WEB_MERCATOR_ALIASES:
        return to_web_mercator(lat, lng)
    if wkid == WGS84_WKID:
        return lng, lat
    raise GsisConfigError(f"Unsupported spatial reference wkid={wkid}")
