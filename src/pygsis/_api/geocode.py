"""Postal code geocoding via the ArcGIS World GeocodeServer.

Endpoint:
  - /arcgis/rest/services/World/GeocodeServer/findAddressCandidates
"""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

from pygsis._constants import ACCEPT, SNIPPET_LENGTH
from pygsis._transport import Transport
from pygsis.config import GsisConfig
from pygsis.exceptions import GsisDataError, GsisTransportError
from pygsis.models.result import GeocodeCandidate
from pygsis.normalize import safe_float
from pygsis.relay import build_target_url

_logger = logging.getLogger(__name__)


class Geocoder(Protocol):
    """Resolve free text to the single best candidate, or ``None``."""

    async def geocode(self, text: str) -> GeocodeCandidate | None:
        ...


def parse_candidate(payload: dict[str, Any]) -> GeocodeCandidate | None:
    """First candidate with finite coordinates, or ``None``."""
    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return None
    first = candidates[0]
    if not isinstance(first, dict):
        return None
    location = first.get("location")
    if not isinstance(location, dict):
        return None
    lat = safe_float(location.get("y"))
    lng = safe_float(location.get("x"))
    if lat is None or lng is None:
        return None
    address = first.get("address")
    return GeocodeCandidate(
        lat=lat,
        lng=lng,
        address=str(address) if address is not None else None,
        score=safe_float(first.get("score")) or 0.0,
    )


class ArcGisGeocoder:
    """Geocoder constrained to one country, returning the top candidate only."""

    def __init__(self, config: GsisConfig, transport: Transport) -> None:
        self._config = config
        self._transport = transport

    async def geocode(self, text: str) -> GeocodeCandidate | None:
        """Look up *text*; score filtering is left to the caller.

        Raises
        ------
        GsisTransportError
            Network failure or non-2xx status.
        GsisDataError
            Non-JSON body or an ArcGIS error envelope.
        """
        url = build_target_url(
            self._config.geocoder_url,
            {
                "f": "json",
                "singleLine": text,
                "maxLocations": "1",
                "outSR": "4326",
                "countryCode": self._config.geocode_country,
            },
        )
        response = await self._transport.get(url, headers={"Accept": ACCEPT})
        if not response.ok:
            raise GsisTransportError(
                f"Geocoder HTTP {response.status}",
                status_code=response.status,
                target=url,
                detail=response.text[:SNIPPET_LENGTH] or None,
            )
        try:
            payload = json.loads(response.text)
        except json.JSONDecodeError as exc:
            raise GsisDataError(
                "Geocoder non-JSON response",
                status_code=response.status,
                target=url,
                detail=response.text[:SNIPPET_LENGTH],
            ) from exc
        if not isinstance(payload, dict):
            raise GsisDataError("Geocoder unexpected payload", status_code=response.status, target=url)
        if isinstance(payload.get("error"), dict):
            raise GsisDataError(
                f"Geocoder error {payload['error'].get('code')}",
                status_code=response.status,
                target=url,
                detail=payload["error"],
            )

        candidate = parse_candidate(payload)
        _logger.debug("Geocoded %r -> %s", text, candidate)
        return candidate
