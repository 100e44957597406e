from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import pytest
from fakes import FakeGateway

from pygsis._cache import OutcomeCache
from pygsis._transport import GatewayResponse
from pygsis.client import GsisLookupClient
from pygsis.config import GsisConfig, ZoneLayer
from pygsis.models.query import QueryKind
from pygsis.models.result import ErrorKind

FAILURE_TTL = 120.0
SUCCESS_TTL = 30 * 24 * 3600.0


@dataclass
class FakeClock:
    now: float = 10_000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def config() -> GsisConfig:
    return GsisConfig(success_ttl=SUCCESS_TTL, failure_ttl=FAILURE_TTL)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def gateway(monkeypatch: pytest.MonkeyPatch) -> FakeGateway:
    fake_gateway = FakeGateway()

    async def fake_get(_self: Any, url: str, *, headers: Mapping[str, str]) -> GatewayResponse:
        return await fake_gateway.get(url, headers=headers)

    monkeypatch.setattr("pygsis._transport.HttpTransport.get", fake_get)
    return fake_gateway


def _client(config: GsisConfig, clock: FakeClock) -> GsisLookupClient:
    cache = OutcomeCache(success_ttl=config.success_ttl, failure_ttl=config.failure_ttl, clock=clock)
    return GsisLookupClient(config, cache=cache)


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_coordinate_lookup_scenario_a(config: GsisConfig, clock: FakeClock, gateway: FakeGateway) -> None:
    async with _client(config, clock) as client:
        result = await client.lookup_coordinate(37.9838, 23.7275)

    assert result.success is True
    assert result.zone_id == "42"
    assert result.zone_name == "Kolonaki"
    assert result.assessed_value_per_area == 3500
    assert result.cached is False
    assert result.to_response() == {
        "success": True,
        "assessedValuePerArea": 3500.0,
        "zoneId": "42",
        "zoneName": "Kolonaki",
        "cached": False,
    }


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_repeated_lookup_is_served_from_cache(
    config: GsisConfig, clock: FakeClock, gateway: FakeGateway
) -> None:
    async with _client(config, clock) as client:
        first = await client.lookup_coordinate(37.983810, 23.727539)
        clock.now += SUCCESS_TTL - 1
        second = await client.lookup_coordinate("37.9838095", "23.7275391")

    assert second.cached is True
    assert first.model_dump(exclude={"cached"}) == second.model_dump(exclude={"cached"})
    assert gateway.calls["zone"] == 1


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_empty_feature_set_scenario_c(config: GsisConfig, clock: FakeClock, gateway: FakeGateway) -> None:
    gateway.zone_attributes = None

    async with _client(config, clock) as client:
        result = await client.lookup_coordinate(37.9838, 23.7275)
        assert result.success is False
        assert result.error == "no attributes returned"

        clock.now += FAILURE_TTL - 1
        again = await client.lookup_coordinate(37.9838, 23.7275)
        assert again.cached is True
        assert gateway.calls["zone"] == 1

        clock.now += 2
        retried = await client.lookup_coordinate(37.9838, 23.7275)
        assert retried.cached is False
        assert gateway.calls["zone"] == 2


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_low_confidence_geocode_scenario_b(config: GsisConfig, clock: FakeClock, gateway: FakeGateway) -> None:
    gateway.geocode_candidates = [{"address": "Somewhere", "location": {"x": 23.7, "y": 37.9}, "score": 40}]

    async with _client(config, clock) as client:
        result = await client.lookup_postal_code("10681")

    assert result.success is False
    assert result.error == "geocode failed"
    assert result.error_kind == ErrorKind.GEOCODE
    assert result.postal_code == "10681"
    assert result.geocode is None
    assert "zone" not in gateway.calls
    assert "prime" not in gateway.calls


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_postal_lookup_merges_geocode_metadata(
    config: GsisConfig, clock: FakeClock, gateway: FakeGateway
) -> None:
    async with _client(config, clock) as client:
        result = await client.lookup_postal_code("GR-106 81")
        cached = await client.lookup_postal_code("10681")

    assert result.success is True
    assert result.zone_id == "42"
    body = result.to_response()
    assert body["zip"] == "10681"
    assert body["geocode"] == {"lat": 37.9838, "lng": 23.7275, "address": "10681, Athina", "score": 100.0}
    assert cached.cached is True
    assert cached.geocode == result.geocode
    assert gateway.calls["geocode"] == 1
    assert gateway.calls["zone"] == 1


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_validation_failures_never_reach_the_network(
    config: GsisConfig, clock: FakeClock, gateway: FakeGateway
) -> None:
    async with _client(config, clock) as client:
        bad_zip = await client.lookup_postal_code("1068")
        bad_point = await client.lookup_coordinate("north", 23.7)

    assert bad_zip.error_kind == ErrorKind.VALIDATION
    assert bad_point.error_kind == ErrorKind.VALIDATION
    assert gateway.calls == {}
    assert len(client.cache) == 0


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_point_is_sent_in_web_mercator_by_default(
    config: GsisConfig, clock: FakeClock, gateway: FakeGateway
) -> None:
    async with _client(config, clock) as client:
        await client.lookup_coordinate(37.9838, 23.7275)

    params = gateway.zone_params()
    assert params["inSR"] == ["102100"]
    assert params["outFields"] == ["ZONEREGISTRYID,ZONENAME,TIMH,CURRENTZONEVALUE"]
    assert '"wkid":102100' in params["geometry"][0]
    assert params["geometry"][0].startswith('{"x":2641')


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_wgs84_identify_layer_is_configurable(clock: FakeClock, gateway: FakeGateway) -> None:
    layer = ZoneLayer(
        url="https://maps.gsis.gr/arcgis/rest/services/APAA_PUBLIC/PUBLIC_ZONES_APAA_2021_INFO/MapServer/identify",
        wkid=4326,
        query_kind=QueryKind.IDENTIFY,
    )
    gateway.zone_responses = [
        GatewayResponse(
            status=200,
            text='{"results": [{"layerId": 1, "attributes": {"ZONEREGISTRYID": 9, "CURRENTZONEVALUE": 1200}}]}',
        )
    ]

    async with _client(GsisConfig(layer=layer), clock) as client:
        result = await client.lookup_coordinate(37.9838, 23.7275)

    assert result.success is True
    assert result.zone_id == "9"
    assert result.assessed_value_per_area == 1200
    params = gateway.zone_params()
    assert params["layers"] == ["all:1"]
    assert params["geometry"] == ['{"x":23.7275,"y":37.9838,"spatialReference":{"wkid":4326}}']


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_unexpected_errors_become_failure_results(
    config: GsisConfig, clock: FakeClock, gateway: FakeGateway, monkeypatch: pytest.MonkeyPatch
) -> None:
    async def boom(*_args: Any, **_kwargs: Any) -> None:
        raise RuntimeError("boom")

    monkeypatch.setattr("pygsis.client.fetch_zone", boom)

    async with _client(config, clock) as client:
        result = await client.lookup_coordinate(37.9838, 23.7275)

    assert result.success is False
    assert result.error == "boom"
    assert result.error_kind == ErrorKind.INTERNAL
    assert len(client.cache) == 0


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_oversized_coordinate_does_not_raise(config: GsisConfig, clock: FakeClock, gateway: FakeGateway) -> None:
    async with _client(config, clock) as client:
        result = await client.lookup_coordinate(10**400, 23.7)

    assert result.success is False
    assert result.error_kind == ErrorKind.VALIDATION
    assert gateway.calls == {}
