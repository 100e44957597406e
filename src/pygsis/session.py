"""Authorization state for the GSIS gateway.

The gateway hands out session cookies on some calls and answers 403 once
they are missing or stale. :class:`SessionManager` keeps one
:class:`AuthorizationState` per client, refreshes it after a freshness
window, and re-primes on demand after the relay sees an authorization
failure.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Mapping
from http.cookies import CookieError, SimpleCookie
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field

from pygsis._constants import ACCEPT
from pygsis._transport import Transport
from pygsis.config import GsisConfig
from pygsis.exceptions import GsisTransportError

_logger = logging.getLogger(__name__)


def parse_set_cookies(raw_headers: Iterable[str]) -> dict[str, str]:
    """Extract ``name -> value`` pairs from ``Set-Cookie`` header values."""
    cookies: dict[str, str] = {}
    for raw in raw_headers:
        cookie: SimpleCookie = SimpleCookie()
        try:
            cookie.load(raw)
        except CookieError:
            _logger.debug("Ignoring unparseable Set-Cookie header")
            continue
        for key, morsel in cookie.items():
            cookies[key] = morsel.value
    return cookies


def build_headers(config: GsisConfig, state: AuthorizationState | None = None) -> dict[str, str]:
    """Browser-like header set the gateway insists on before forwarding."""
    headers: dict[str, str] = {
        "Accept": ACCEPT,
        "User-Agent": config.user_agent,
        "Referer": config.referer,
        "Origin": config.origin,
    }
    if state is not None and state.cookies:
        headers["Cookie"] = state.cookie_header()
    return headers


def build_gateway_url(gateway_url: str, target_url: str) -> str:
    """Append *target_url* to the gateway prefix verbatim."""
    return f"{gateway_url}{target_url}"


class AuthorizationState(BaseModel):
    """Gateway cookies plus the monotonic time they were last acquired.

    Parameters
    ----------
    cookies : dict[str, str]
        Opaque credentials, attached as-is to every relay call.
    acquired_at : float or None
        ``time.monotonic()`` of the last successful priming, ``None``
        before the first one.
    """

    model_config = ConfigDict(frozen=True)

    cookies: dict[str, str] = Field(default_factory=dict)
    acquired_at: float | None = None

    @property
    def is_empty(self) -> bool:
        return not self.cookies

    def cookie_header(self) -> str:
        return "; ".join(f"{k}={v}" for k, v in self.cookies.items())

    def age(self, now: float) -> float | None:
        """Seconds since acquisition, ``None`` if never acquired."""
        if self.acquired_at is None:
            return None
        return now - self.acquired_at

    def merged(self, incoming: Mapping[str, str], *, acquired_at: float | None = None) -> AuthorizationState:
        """Additive merge: same-named cookies are overwritten, others kept."""
        cookies = dict(self.cookies)
        cookies.update(incoming)
        return AuthorizationState(
            cookies=cookies,
            acquired_at=self.acquired_at if acquired_at is None else acquired_at,
        )


class CredentialPrimer(Protocol):
    """Strategy that provokes the gateway into issuing cookies.

    Returns the captured cookies (possibly empty) when at least one priming
    call got through, or ``None`` when every attempt failed.
    """

    async def prime(self) -> dict[str, str] | None:
        ...


class GatewayPrimer:
    """Prime by calling harmless informational targets through the gateway."""

    def __init__(self, config: GsisConfig, transport: Transport) -> None:
        self._config = config
        self._transport = transport

    async def prime(self) -> dict[str, str] | None:
        captured: dict[str, str] = {}
        reached = False
        headers = build_headers(self._config)
        for target in self._config.priming_targets:
            url = build_gateway_url(self._config.gateway_url, target)
            try:
                response = await self._transport.get(url, headers=headers)
            except GsisTransportError as exc:
                _logger.debug("Priming call to %s failed: %s", target, exc)
                continue
            cookies = parse_set_cookies(response.set_cookies)
            if not response.ok and not cookies:
                _logger.debug("Priming call to %s returned HTTP %d without cookies", target, response.status)
                continue
            reached = True
            captured.update(cookies)
        return captured if reached else None


class SessionManager:
    """Owns the process-wide authorization state for one client.

    Usage::

        sessions = SessionManager(config, transport)
        state = await sessions.ensure_authorization()
    """

    def __init__(
        self,
        config: GsisConfig,
        transport: Transport,
        *,
        primer: CredentialPrimer | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config
        self._primer: CredentialPrimer = primer or GatewayPrimer(config, transport)
        self._clock = clock
        self._state = AuthorizationState()
        self._force_refresh = False
        self.acquisitions = 0

    @property
    def state(self) -> AuthorizationState:
        return self._state

    def _needs_refresh(self, now: float) -> bool:
        if self._force_refresh:
            return True
        age = self._state.age(now)
        return age is None or age >= self._config.session_freshness

    async def ensure_authorization(self) -> AuthorizationState:
        """Return a usable state, priming once if it is missing or stale.

        A failed priming keeps the previous cookies: stale credentials are
        still attached rather than none.
        """
        now = self._clock()
        if not self._needs_refresh(now):
            return self._state

        self.acquisitions += 1
        cookies = await self._primer.prime()
        if cookies is None:
            _logger.warning("Gateway priming failed; keeping %d previous cookie(s)", len(self._state.cookies))
            return self._state

        self._state = self._state.merged(cookies, acquired_at=now)
        self._force_refresh = False
        _logger.debug("Gateway authorization acquired (%d cookie(s))", len(self._state.cookies))
        return self._state

    def invalidate(self) -> None:
        """Force the next :meth:`ensure_authorization` to re-prime."""
        self._force_refresh = True

    def absorb(self, set_cookie_headers: Iterable[str]) -> None:
        """Merge cookies the gateway rotated on an ordinary relay response."""
        cookies = parse_set_cookies(set_cookie_headers)
        if cookies:
            self._state = self._state.merged(cookies)
