from __future__ import annotations

from dataclasses import dataclass

import pytest
from fakes import FakeGateway

from pygsis.config import GsisConfig
from pygsis.session import AuthorizationState, SessionManager, build_headers, parse_set_cookies


@dataclass
class FakeClock:
    now: float = 500.0

    def __call__(self) -> float:
        return self.now


def _manager(gateway: FakeGateway, clock: FakeClock, **config: object) -> SessionManager:
    return SessionManager(GsisConfig(**config), gateway, clock=clock)


def test_parse_set_cookies_handles_attributes_and_garbage() -> None:
    cookies = parse_set_cookies(
        [
            "PHPSESSID=abc; Path=/; HttpOnly",
            "BIGipServer=rd1; Secure",
            "\x00bad",
        ]
    )
    assert cookies == {"PHPSESSID": "abc", "BIGipServer": "rd1"}


def test_merge_is_additive() -> None:
    state = AuthorizationState(cookies={"a": "1", "b": "2"}, acquired_at=1.0)
    merged = state.merged({"b": "3", "c": "4"}, acquired_at=2.0)

    assert merged.cookies == {"a": "1", "b": "3", "c": "4"}
    assert merged.acquired_at == 2.0
    assert state.cookies == {"a": "1", "b": "2"}
    assert merged.cookie_header() == "a=1; b=3; c=4"


def test_headers_are_browser_like_and_carry_cookies() -> None:
    config = GsisConfig()
    headers = build_headers(config, AuthorizationState(cookies={"PHPSESSID": "abc"}))

    assert headers["Accept"] == "application/json"
    assert headers["User-Agent"].startswith("Mozilla/5.0")
    assert headers["Referer"] == "https://maps.gsis.gr/valuemaps/"
    assert headers["Origin"] == "https://maps.gsis.gr"
    assert headers["Cookie"] == "PHPSESSID=abc"
    assert "Cookie" not in build_headers(config, AuthorizationState())


@pytest.mark.asyncio
async def test_ensure_authorization_primes_once_while_fresh() -> None:
    gateway = FakeGateway()
    clock = FakeClock()
    sessions = _manager(gateway, clock, session_freshness=1200)

    state = await sessions.ensure_authorization()
    assert state.cookies == {"PHPSESSID": "abc"}

    clock.now += 1199
    await sessions.ensure_authorization()
    assert gateway.calls["prime"] == 1


@pytest.mark.asyncio
async def test_stale_state_is_reprimed() -> None:
    gateway = FakeGateway()
    clock = FakeClock()
    sessions = _manager(gateway, clock, session_freshness=1200)

    await sessions.ensure_authorization()
    gateway.cookie_value = "def"
    clock.now += 1200

    state = await sessions.ensure_authorization()
    assert gateway.calls["prime"] == 2
    assert state.cookies == {"PHPSESSID": "def"}
    assert state.acquired_at == clock.now


@pytest.mark.asyncio
async def test_failed_priming_keeps_previous_credentials() -> None:
    gateway = FakeGateway()
    clock = FakeClock()
    sessions = _manager(gateway, clock)

    await sessions.ensure_authorization()
    gateway.priming_fails = True
    sessions.invalidate()

    state = await sessions.ensure_authorization()
    assert state.cookies == {"PHPSESSID": "abc"}
    assert gateway.calls["prime"] == 2

    # Still forced: the next call tries again rather than trusting the stale jar.
    await sessions.ensure_authorization()
    assert gateway.calls["prime"] == 3


@pytest.mark.asyncio
async def test_failed_first_priming_leaves_state_empty() -> None:
    gateway = FakeGateway(priming_fails=True)
    sessions = _manager(gateway, FakeClock())

    state = await sessions.ensure_authorization()
    assert state.is_empty
    assert state.acquired_at is None


@pytest.mark.asyncio
async def test_priming_sends_browser_headers_through_gateway() -> None:
    gateway = FakeGateway()
    sessions = _manager(gateway, FakeClock())

    await sessions.ensure_authorization()
    url, headers = gateway.requests[0]
    assert url == "https://maps.gsis.gr/valuemaps2/PHP/proxy.php?https://maps.gsis.gr/arcgis/rest/info?f=json"
    assert headers["Referer"] == "https://maps.gsis.gr/valuemaps/"


def test_absorb_merges_rotated_cookies() -> None:
    sessions = SessionManager(GsisConfig(), FakeGateway(), clock=FakeClock())
    sessions.absorb(["PHPSESSID=new; Path=/"])
    sessions.absorb([])
    assert sessions.state.cookies == {"PHPSESSID": "new"}
