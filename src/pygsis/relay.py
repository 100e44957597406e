"""Upstream relay through the GSIS proxy gateway."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any
from urllib.parse import urlencode

from pygsis._constants import AUTH_FAILURE_ERROR_CODES, AUTH_FAILURE_STATUSES, SNIPPET_LENGTH
from pygsis._transport import GatewayResponse, Transport
from pygsis.config import GsisConfig
from pygsis.exceptions import GsisAuthorizationError, GsisDataError, GsisTransportError
from pygsis.models.result import ErrorKind, RawUpstreamResult, UpstreamFailure, UpstreamSuccess
from pygsis.session import SessionManager, build_gateway_url, build_headers

_logger = logging.getLogger(__name__)

__all__ = [
    "UpstreamRelay",
    "build_gateway_url",
    "build_headers",
    "build_target_url",
    "parse_gateway_response",
]


def build_target_url(base_url: str, params: Mapping[str, Any] | None = None) -> str:
    """Fully-qualified upstream URL with its own form-encoded query string."""
    if not params:
        return base_url
    return f"{base_url}?{urlencode(params)}"


def _error_code(envelope: Any) -> int | None:
    if not isinstance(envelope, dict):
        return None
    try:
        return int(envelope.get("code"))
    except (TypeError, ValueError):
        return None


def parse_gateway_response(response: GatewayResponse, target: str) -> dict[str, Any]:
    """Classify a gateway response, returning the JSON payload on success.

    Raises
    ------
    GsisAuthorizationError
        HTTP 401/403, or an ArcGIS token error inside the JSON envelope.
    GsisDataError
        Body is not a JSON object, or carries an ArcGIS ``error`` envelope.
    GsisTransportError
        Any other non-2xx status.
    """
    if response.status in AUTH_FAILURE_STATUSES:
        raise GsisAuthorizationError(
            f"GSIS HTTP {response.status}",
            status_code=response.status,
            target=target,
            detail=response.text[:SNIPPET_LENGTH] or None,
        )

    try:
        payload = json.loads(response.text)
    except json.JSONDecodeError as exc:
        raise GsisDataError(
            f"GSIS non-JSON (HTTP {response.status})",
            status_code=response.status,
            target=target,
            detail=response.text[:SNIPPET_LENGTH],
        ) from exc

    if not isinstance(payload, dict):
        raise GsisDataError(
            f"GSIS unexpected payload (HTTP {response.status})",
            status_code=response.status,
            target=target,
            detail=response.text[:SNIPPET_LENGTH],
        )

    envelope = payload.get("error")
    code = _error_code(envelope)
    if code is not None:
        if code in AUTH_FAILURE_ERROR_CODES:
            raise GsisAuthorizationError(
                f"ArcGIS error {code}",
                status_code=response.status,
                target=target,
                detail=envelope,
            )
        raise GsisDataError(
            f"ArcGIS error {code}",
            status_code=response.status,
            target=target,
            detail=envelope,
        )

    if not response.ok:
        raise GsisTransportError(
            f"GSIS HTTP {response.status}",
            status_code=response.status,
            target=target,
            detail=payload,
        )

    return payload


class UpstreamRelay:
    """Send target URLs through the gateway with the current credentials.

    Every outcome comes back as a :data:`RawUpstreamResult`; exceptions stay
    inside this class.
    """

    def __init__(self, config: GsisConfig, sessions: SessionManager, transport: Transport) -> None:
        self._config = config
        self._sessions = sessions
        self._transport = transport

    async def call(self, target_url: str, params: Mapping[str, Any] | None = None) -> RawUpstreamResult:
        """Relay one upstream request, re-authorizing once on rejection."""
        target = build_target_url(target_url, params)
        try:
            payload = await self._call_with_reauth(target)
        except GsisAuthorizationError as exc:
            _logger.warning("Gateway rejected credentials after re-authorization: %s", exc)
            return UpstreamFailure(
                kind=ErrorKind.AUTHORIZATION,
                error=str(exc),
                http_status=exc.status_code,
                detail=exc.detail,
            )
        except GsisTransportError as exc:
            _logger.debug("Relay transport failure: %s", exc)
            return UpstreamFailure(
                kind=ErrorKind.TRANSPORT,
                error=str(exc),
                http_status=exc.status_code,
                detail=exc.detail,
            )
        except GsisDataError as exc:
            _logger.debug("Relay data failure: %s", exc)
            return UpstreamFailure(
                kind=ErrorKind.DATA,
                error=str(exc),
                http_status=exc.status_code,
                detail=exc.detail,
            )
        return UpstreamSuccess(payload=payload)

    async def _call_with_reauth(self, target: str) -> dict[str, Any]:
        """Run the call, retrying exactly once after an authorization failure."""
        try:
            return await self._fetch(target)
        except GsisAuthorizationError as exc:
            _logger.info("Gateway authorization failed (%s); re-acquiring credentials", exc)
            self._sessions.invalidate()
            return await self._fetch(target)

    async def _fetch(self, target: str) -> dict[str, Any]:
        state = await self._sessions.ensure_authorization()
        url = build_gateway_url(self._config.gateway_url, target)
        response = await self._transport.get(url, headers=build_headers(self._config, state))
        self._sessions.absorb(response.set_cookies)
        return parse_gateway_response(response, target)
