"""High-level async lookup client for GSIS zone valuations."""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from pygsis._api.geocode import ArcGisGeocoder, Geocoder
from pygsis._api.zones import fetch_zone
from pygsis._cache import OutcomeCache, coordinate_cache_key, postal_cache_key
from pygsis._transport import HttpTransport, Transport
from pygsis.config import GsisConfig
from pygsis.exceptions import GsisDataError, GsisError, GsisGeocodeError, GsisTransportError, GsisValidationError
from pygsis.models.query import CoordinateQuery, PostalCodeQuery
from pygsis.models.result import ErrorKind, GeocodeCandidate, NormalizedZoneResult
from pygsis.relay import UpstreamRelay
from pygsis.session import SessionManager

_logger = logging.getLogger(__name__)

GEOCODE_FAILED = "geocode failed"


class GsisLookupClient:
    """Async client answering zone-value lookups by point or postal code.

    Usage::

        async with GsisLookupClient(config) as client:
            result = await client.lookup_coordinate(37.9838, 23.7275)

    Neither lookup method raises: every failure comes back as a
    :class:`NormalizedZoneResult` with ``success=False``.
    """

    def __init__(
        self,
        config: GsisConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        cache: OutcomeCache | None = None,
        geocoder: Geocoder | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._cache = cache or OutcomeCache(success_ttl=config.success_ttl, failure_ttl=config.failure_ttl)
        self._custom_geocoder = geocoder
        self._transport: Transport | None = None
        self._sessions: SessionManager | None = None
        self._relay: UpstreamRelay | None = None
        self._geocoder: Geocoder | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> GsisLookupClient:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        self._transport = HttpTransport(self._config, self._http_session)
        self._sessions = SessionManager(self._config, self._transport)
        self._relay = UpstreamRelay(self._config, self._sessions, self._transport)
        self._geocoder = self._custom_geocoder or ArcGisGeocoder(self._config, self._transport)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._transport = None
        self._relay = None
        self._geocoder = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @property
    def cache(self) -> OutcomeCache:
        return self._cache

    @property
    def sessions(self) -> SessionManager:
        if self._sessions is None:
            raise GsisError("Client not initialized. Use 'async with GsisLookupClient(...) as client:'")
        return self._sessions

    def _require_relay(self) -> UpstreamRelay:
        if self._relay is None:
            raise GsisError("Client not initialized. Use 'async with GsisLookupClient(...) as client:'")
        return self._relay

    def _require_geocoder(self) -> Geocoder:
        if self._geocoder is None:
            raise GsisError("Client not initialized. Use 'async with GsisLookupClient(...) as client:'")
        return self._geocoder

    async def _resolve_coordinate(self, query: CoordinateQuery) -> NormalizedZoneResult:
        """Cached zone lookup for an already validated point."""
        key = coordinate_cache_key(query, self._config.coordinate_precision)
        hit = self._cache.get(key)
        if hit is not None:
            return hit.tagged(cached=True)

        result = await fetch_zone(self._require_relay(), self._config.layer, query)
        self._cache.put(key, result)
        return result.tagged(cached=False)

    async def _geocode(self, query: PostalCodeQuery) -> GeocodeCandidate:
        candidate = await self._require_geocoder().geocode(query.postal_code)
        if candidate is None:
            raise GsisGeocodeError("no geocode candidate", postal_code=query.postal_code)
        if candidate.score < self._config.geocode_min_score:
            raise GsisGeocodeError(
                f"geocode score {candidate.score:g} below {self._config.geocode_min_score:g}",
                postal_code=query.postal_code,
                score=candidate.score,
            )
        return candidate

    async def _resolve_postal_code(self, query: PostalCodeQuery) -> NormalizedZoneResult:
        key = postal_cache_key(query)
        hit = self._cache.get(key)
        if hit is not None:
            return hit.tagged(cached=True)

        try:
            candidate = await self._geocode(query)
        except GsisGeocodeError as exc:
            _logger.debug("Geocoding %s failed: %s", query.postal_code, exc)
            result = NormalizedZoneResult.failure(
                GEOCODE_FAILED,
                kind=ErrorKind.GEOCODE,
                detail=str(exc),
                postal_code=query.postal_code,
            )
        except (GsisTransportError, GsisDataError) as exc:
            _logger.debug("Geocoder unavailable for %s: %s", query.postal_code, exc)
            result = NormalizedZoneResult.failure(
                GEOCODE_FAILED,
                kind=ErrorKind.TRANSPORT if isinstance(exc, GsisTransportError) else ErrorKind.DATA,
                detail=str(exc),
                http_status=exc.status_code,
                postal_code=query.postal_code,
            )
        else:
            point = CoordinateQuery(latitude=candidate.lat, longitude=candidate.lng)
            zone = await self._resolve_coordinate(point)
            result = zone.model_copy(update={"postal_code": query.postal_code, "geocode": candidate})

        self._cache.put(key, result)
        return result.tagged(cached=False)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def lookup_coordinate(self, latitude: Any, longitude: Any) -> NormalizedZoneResult:
        """Zone value at a WGS84 point."""
        try:
            query = CoordinateQuery.parse(latitude, longitude)
        except GsisValidationError as exc:
            return NormalizedZoneResult.failure(str(exc), kind=ErrorKind.VALIDATION)

        try:
            return await self._resolve_coordinate(query)
        except Exception as exc:
            _logger.exception("Coordinate lookup failed unexpectedly")
            return NormalizedZoneResult.failure(str(exc) or type(exc).__name__, kind=ErrorKind.INTERNAL)

    async def lookup_postal_code(self, postal_code: Any) -> NormalizedZoneResult:
        """Zone value at the geocoded centre of a Greek postal code."""
        try:
            query = PostalCodeQuery.parse(postal_code)
        except GsisValidationError as exc:
            return NormalizedZoneResult.failure(str(exc), kind=ErrorKind.VALIDATION)

        try:
            return await self._resolve_postal_code(query)
        except Exception as exc:
            _logger.exception("Postal code lookup failed unexpectedly")
            return NormalizedZoneResult.failure(
                str(exc) or type(exc).__name__,
                kind=ErrorKind.INTERNAL,
                postal_code=query.postal_code,
            )
