"""HTTP transport for gateway, priming and geocoder calls."""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp
from yarl import URL

from pygsis._redact import redact_headers
from pygsis.config import GsisConfig
from pygsis.exceptions import GsisTransportError

_logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class GatewayResponse:
    """Raw HTTP response as the relay layers need it."""

    status: int
    text: str
    set_cookies: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class Transport(Protocol):
    """Structural transport interface used by the session, relay and geocoder.

    Tests pass plain fakes implementing ``get``; production uses
    :class:`HttpTransport`.
    """

    async def get(self, url: str, *, headers: Mapping[str, str]) -> GatewayResponse:
        ...


class HttpTransport:
    """aiohttp-backed GET transport that never re-encodes the URL.

    The gateway matches the embedded target URL literally, so the URL is
    handed to aiohttp as already encoded.
    """

    def __init__(self, config: GsisConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._timeout = (
            aiohttp.ClientTimeout(total=config.request_timeout) if config.request_timeout is not None else None
        )

    async def get(self, url: str, *, headers: Mapping[str, str]) -> GatewayResponse:
        """Issue a GET and return status, body text and ``Set-Cookie`` headers.

        Raises
        ------
        GsisTransportError
            On network failure or timeout. HTTP error statuses are returned,
            not raised; classifying them is the caller's job.
        """
        _logger.debug("GET %s headers=%s", url, redact_headers(headers))

        kwargs: dict[str, Any] = {"headers": dict(headers)}
        if self._timeout is not None:
            kwargs["timeout"] = self._timeout

        try:
            async with self._http.get(URL(url, encoded=True), **kwargs) as resp:
                text = await resp.text(errors="replace")
                set_cookies = tuple(resp.headers.getall("Set-Cookie", []))
                status = resp.status
        except aiohttp.ClientError as exc:
            raise GsisTransportError(f"Request failed: {exc}", target=url) from exc
        except TimeoutError as exc:
            raise GsisTransportError("Request timed out", target=url) from exc

        _logger.debug("GET %s -> HTTP %d (%d bytes, %d cookies)", url, status, len(text), len(set_cookies))
        return GatewayResponse(status=status, text=text, set_cookies=set_cookies)
