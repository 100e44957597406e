"""Client and server configuration for pygsis."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pygsis._constants import (
    FAILURE_TTL,
    GATEWAY_URL,
    GEOCODER_URL,
    ORIGIN,
    PRIMING_TARGETS,
    REFERER,
    SESSION_FRESHNESS,
    SUCCESS_TTL,
    USER_AGENT,
    WEB_MERCATOR_WKID,
    ZONE_LAYER_URL,
    ZONE_OUT_FIELDS,
)
from pygsis.exceptions import GsisConfigError
from pygsis.models.query import QueryKind


def _env_list(value: str | None) -> tuple[str, ...] | None:
    if value is None:
        return None
    return tuple(item.strip() for item in value.split(",") if item.strip())


def _env_number(env: Any, key: str, cast: type[int] | type[float]) -> int | float | None:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return None
    try:
        return cast(raw)
    except ValueError as exc:
        raise GsisConfigError(f"{key} must be a number, got {raw!r}") from exc


@dataclasses.dataclass(frozen=True)
class ZoneLayer:
    """Upstream valuation layer the zone query is sent to.

    The spatial reference and the layer/service version have changed over
    the upstream's history, so they are configuration rather than code.

    Parameters
    ----------
    url : str
        Full ``.../MapServer/<id>/query`` URL (``query`` style) or
        ``.../MapServer/identify`` URL (``identify`` style).
    wkid : int
        Spatial reference the point is expressed in. ``102100`` (Web
        Mercator) and ``4326`` (WGS84) are supported.
    query_kind : QueryKind
        ArcGIS request style; decides both the request parameters and
        where records live in the response.
    layer_id : int
        Layer index, used by the ``identify`` style.
    out_fields : tuple[str, ...]
        Attribute names requested from the layer.
    distance : float
        Search buffer around the point, in ``units``.
    units : str
        ArcGIS unit name for ``distance``.
    """

    url: str = ZONE_LAYER_URL
    wkid: int = WEB_MERCATOR_WKID
    query_kind: QueryKind = QueryKind.QUERY
    layer_id: int = 1
    out_fields: tuple[str, ...] = ZONE_OUT_FIELDS
    distance: float = 0.01
    units: str = "esriSRUnit_Meter"


@dataclasses.dataclass(frozen=True)
class GsisConfig:
    """Relay configuration.

    Parameters
    ----------
    gateway_url : str
        Gateway prefix; target URLs are appended to it verbatim.
    priming_targets : tuple[str, ...]
        Target URLs called through the gateway to provoke cookie issuance.
    user_agent, referer, origin : str
        Browser-like headers the gateway requires before forwarding.
    session_freshness : float
        Seconds an acquired authorization state is trusted before the next
        call re-primes it.
    request_timeout : float or None
        Total timeout per upstream call in seconds. ``None`` keeps the
        aiohttp default.
    success_ttl, failure_ttl : float
        Cache retention in seconds for successful and failed outcomes.
    coordinate_precision : int
        Decimal places coordinates are rounded to when building cache keys.
    geocoder_url : str
        ArcGIS ``findAddressCandidates`` endpoint.
    geocode_country : str
        ISO-3 country code the geocoder is constrained to.
    geocode_min_score : float
        Candidates scoring below this are rejected as a geocode failure.
    api_key : str
        Shared secret expected in ``X-API-Key``. Empty disables the gate.
    allowed_origins : tuple[str, ...]
        CORS allow-list. Empty reflects any origin.
    host, port
        Bind address of the HTTP server.
    layer : ZoneLayer
        Zone layer settings.
    """

    gateway_url: str = GATEWAY_URL
    priming_targets: tuple[str, ...] = PRIMING_TARGETS
    user_agent: str = USER_AGENT
    referer: str = REFERER
    origin: str = ORIGIN
    session_freshness: float = SESSION_FRESHNESS
    request_timeout: float | None = None
    success_ttl: float = SUCCESS_TTL
    failure_ttl: float = FAILURE_TTL
    coordinate_precision: int = 6
    geocoder_url: str = GEOCODER_URL
    geocode_country: str = "GRC"
    geocode_min_score: float = 90.0
    api_key: str = ""
    allowed_origins: tuple[str, ...] = ()
    host: str = "0.0.0.0"
    port: int = 3000
    layer: ZoneLayer = dataclasses.field(default_factory=ZoneLayer)

    @classmethod
    def from_env(cls, **overrides: Any) -> GsisConfig:
        """Create configuration from ``GSIS_*`` environment variables.

        Explicit keyword arguments override environment values.

        Raises
        ------
        GsisConfigError
            If a numeric variable cannot be parsed or the layer query kind
            is unknown.
        """
        env = os.environ

        layer_kwargs: dict[str, Any] = {}
        layer_url = env.get("GSIS_LAYER_URL")
        if layer_url:
            layer_kwargs["url"] = layer_url
        wkid = _env_number(env, "GSIS_LAYER_WKID", int)
        if wkid is not None:
            layer_kwargs["wkid"] = wkid
        layer_id = _env_number(env, "GSIS_LAYER_ID", int)
        if layer_id is not None:
            layer_kwargs["layer_id"] = layer_id
        query_kind = env.get("GSIS_LAYER_QUERY_KIND")
        if query_kind:
            try:
                layer_kwargs["query_kind"] = QueryKind(query_kind.strip().lower())
            except ValueError as exc:
                raise GsisConfigError(f"GSIS_LAYER_QUERY_KIND must be 'query' or 'identify', got {query_kind!r}") from exc

        layer_overrides = overrides.pop("layer", None)
        if isinstance(layer_overrides, dict):
            layer_kwargs.update(layer_overrides)
        elif isinstance(layer_overrides, ZoneLayer):
            layer_kwargs = dataclasses.asdict(layer_overrides)

        config_kwargs: dict[str, Any] = {"layer": ZoneLayer(**layer_kwargs)}

        _ENV_STR_MAP = {
            "GSIS_API_KEY": "api_key",
            "GSIS_HOST": "host",
            "GSIS_GATEWAY_URL": "gateway_url",
            "GSIS_GEOCODER_URL": "geocoder_url",
        }
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        origins = _env_list(env.get("GSIS_ALLOWED_ORIGINS"))
        if origins is not None:
            config_kwargs["allowed_origins"] = origins
        priming = _env_list(env.get("GSIS_PRIMING_TARGETS"))
        if priming:
            config_kwargs["priming_targets"] = priming

        _ENV_NUMBER_MAP: dict[str, tuple[str, type[int] | type[float]]] = {
            "GSIS_PORT": ("port", int),
            "GSIS_CACHE_SUCCESS_TTL": ("success_ttl", float),
            "GSIS_CACHE_FAILURE_TTL": ("failure_ttl", float),
            "GSIS_SESSION_FRESHNESS": ("session_freshness", float),
            "GSIS_REQUEST_TIMEOUT": ("request_timeout", float),
            "GSIS_COORDINATE_PRECISION": ("coordinate_precision", int),
            "GSIS_GEOCODE_MIN_SCORE": ("geocode_min_score", float),
        }
        for env_key, (field_name, cast) in _ENV_NUMBER_MAP.items():
            if field_name in overrides:
                continue
            number = _env_number(env, env_key, cast)
            if number is not None:
                config_kwargs[field_name] = number

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
