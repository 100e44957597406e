from __future__ import annotations

import pytest

from pygsis.config import GsisConfig, ZoneLayer
from pygsis.exceptions import GsisConfigError
from pygsis.geometry import project_point, to_web_mercator
from pygsis.models.query import QueryKind


def test_defaults_match_upstream_layer() -> None:
    config = GsisConfig()
    assert config.gateway_url == "https://maps.gsis.gr/valuemaps2/PHP/proxy.php?"
    assert config.layer.wkid == 102100
    assert config.layer.query_kind == QueryKind.QUERY
    assert config.success_ttl == 30 * 24 * 3600
    assert config.failure_ttl == 120
    assert config.allowed_origins == ()


def test_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GSIS_API_KEY", "k")
    monkeypatch.setenv("GSIS_ALLOWED_ORIGINS", "https://a.example, https://b.example,")
    monkeypatch.setenv("GSIS_CACHE_SUCCESS_TTL", "86400")
    monkeypatch.setenv("GSIS_LAYER_WKID", "4326")
    monkeypatch.setenv("GSIS_LAYER_QUERY_KIND", "Identify")
    monkeypatch.setenv("GSIS_REQUEST_TIMEOUT", "15")

    config = GsisConfig.from_env(port=8080)

    assert config.api_key == "k"
    assert config.allowed_origins == ("https://a.example", "https://b.example")
    assert config.success_ttl == 86400.0
    assert config.request_timeout == 15.0
    assert config.layer.wkid == 4326
    assert config.layer.query_kind == QueryKind.IDENTIFY
    assert config.port == 8080


def test_from_env_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GSIS_CACHE_FAILURE_TTL", "60")
    config = GsisConfig.from_env(failure_ttl=5.0, layer=ZoneLayer(wkid=3857))
    assert config.failure_ttl == 5.0
    assert config.layer.wkid == 3857


@pytest.mark.parametrize(
    ("key", "value"),
    [("GSIS_PORT", "eighty"), ("GSIS_LAYER_QUERY_KIND", "find")],
)
def test_from_env_rejects_bad_values(monkeypatch: pytest.MonkeyPatch, key: str, value: str) -> None:
    monkeypatch.setenv(key, value)
    with pytest.raises(GsisConfigError):
        GsisConfig.from_env()


def test_web_mercator_projection() -> None:
    x, y = to_web_mercator(0.0, 180.0)
    assert x == pytest.approx(20037508.34)
    assert y == pytest.approx(0.0, abs=1e-6)

    x, y = to_web_mercator(37.9838, 23.7275)
    assert x == pytest.approx(2641333.2, abs=5.0)
    assert y == pytest.approx(4576700, abs=2000)


def test_project_point_by_wkid() -> None:
    assert project_point(37.9838, 23.7275, 4326) == (23.7275, 37.9838)
    assert project_point(37.9838, 23.7275, 3857) == to_web_mercator(37.9838, 23.7275)
    with pytest.raises(GsisConfigError):
        project_point(37.9838, 23.7275, 2100)
