"""
Tests for the live weather lookup
"""
import pytest
import requests

from conftest import T0

from garden_backend.services import weather_service
from garden_backend.services.weather_service import condition_for_code, current_conditions


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload or {}
        self.text = text

    def json(self):
        return self._payload


@pytest.mark.parametrize(
    "code,wind,expected",
    [
        (0, 5, "sunny"),
        (1, 0, "sunny"),
        (3, 0, "cloudy"),
        (0, 45, "windy"),
        (45, 0, "foggy"),
        (61, 0, "rainy"),
        (81, 60, "rainy"),
        (73, 0, "snowy"),
        (95, 0, "stormy"),
        (None, 0, "cloudy"),
    ],
)
def test_condition_for_code(code, wind, expected):
    assert condition_for_code(code, wind) == expected


def test_current_conditions(monkeypatch):
    seen = {}

    def fake_get(url, params=None, timeout=None):
        seen.update(url=url, params=params, timeout=timeout)
        return FakeResponse(payload={"current": {"temperature_2m": 21.5, "weather_code": 2, "wind_speed_10m": 4}})

    monkeypatch.setattr(weather_service.requests, "get", fake_get)
    conditions = current_conditions(52.5, 13.4, now=T0)

    assert conditions == {
        "season": "spring",
        "weather": "cloudy",
        "temperature": 21.5,
        "growth_multiplier": 1.0,
        "water_evaporation_rate": 1.0,
    }
    assert seen["params"]["latitude"] == 52.5
    assert seen["timeout"] == weather_service.TIMEOUT_SECONDS


def test_provider_error_returns_none(monkeypatch):
    monkeypatch.setattr(weather_service.requests, "get", lambda *a, **kw: FakeResponse(status_code=503, text="down"))
    assert current_conditions(now=T0) is None


def test_network_error_returns_none(monkeypatch):
    def boom(*args, **kwargs):
        raise requests.ConnectionError("no route to host")

    monkeypatch.setattr(weather_service.requests, "get", boom)
    assert current_conditions(now=T0) is None
