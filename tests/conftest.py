"""Pytest configuration and fixtures."""

import asyncio
import copy
import os
from typing import Any

import pytest
import respx

from core.config import Settings


T0 = 1_735_732_800.0  # 2025-01-01T12:00:00Z


# ============================================================================
# Pytest Hooks
# ============================================================================

def pytest_configure(config):
    """Configure pytest with environment variables."""
    os.environ["WEATHER_LOG_LEVEL"] = "DEBUG"
    os.environ.pop("GOOGLE_AISTUDIO_API_KEY", None)


# ============================================================================
# Helpers
# ============================================================================

class FakeClock:
    """Manually advanced epoch clock."""

    def __init__(self, now: float = T0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


async def wait_for(predicate, timeout: float = 2.0) -> None:
    """Poll until ``predicate()`` is true."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.005)


# ============================================================================
# Core Fixtures
# ============================================================================

@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def eventually():
    """Async poller: ``await eventually(lambda: ...)``."""
    return wait_for


@pytest.fixture
def cache_dir(tmp_path):
    return tmp_path / "cache"


@pytest.fixture
def settings(cache_dir):
    """Test settings with an isolated cache directory."""
    return Settings(
        cache_dir=cache_dir,
        google_aistudio_api_key="test-api-key",
        http_timeout=2.0,
    )


@pytest.fixture
def mock_router():
    """respx router intercepting every outbound httpx call."""
    with respx.mock(assert_all_called=False) as router:
        yield router


# ============================================================================
# Provider Payloads
# ============================================================================

_FORECAST: dict[str, Any] = {
    "type": "Feature",
    "geometry": {"type": "Point", "coordinates": [24.9384, 60.1699, 12]},
    "properties": {
        "meta": {
            "updated_at": "2025-01-01T11:47:12Z",
            "units": {
                "air_temperature": "celsius",
                "precipitation_amount": "mm",
                "wind_speed": "m/s",
            },
        },
        "timeseries": [
            {
                "time": "2025-01-01T12:00:00Z",
                "data": {
                    "instant": {
                        "details": {
                            "air_pressure_at_sea_level": 1003.2,
                            "air_temperature": -3.4,
                            "cloud_area_fraction": 87.5,
                            "fog_area_fraction": 0.0,
                            "relative_humidity": 91.2,
                            "wind_from_direction": 210.3,
                            "wind_speed": 5.1,
                            "wind_speed_of_gust": 9.8,
                            "ultraviolet_index_clear_sky": 0.0,
                        }
                    },
                    "next_1_hours": {
                        "summary": {"symbol_code": "lightsnow"},
                        "details": {
                            "precipitation_amount": 0.3,
                            "probability_of_precipitation": 64.0,
                        },
                    },
                    "next_6_hours": {
                        "summary": {"symbol_code": "snow"},
                        "details": {
                            "air_temperature_max": -2.1,
                            "air_temperature_min": -4.0,
                            "precipitation_amount": 2.4,
                            "probability_of_precipitation": 80.0,
                        },
                    },
                    "next_12_hours": {
                        "summary": {"symbol_code": "cloudy"},
                        "details": {"probability_of_precipitation": 35.0},
                    },
                },
            },
            {
                "time": "2025-01-01T13:00:00Z",
                "data": {"instant": {"details": {"air_temperature": -3.9}}},
            },
        ],
    },
}


@pytest.fixture
def forecast_payload() -> dict[str, Any]:
    """MET Norway ``complete`` response for Helsinki."""
    return copy.deepcopy(_FORECAST)


@pytest.fixture
def geocode_payload() -> list[dict[str, Any]]:
    return [
        {
            "place_id": 308876133,
            "lat": "60.1699",
            "lon": "24.9384",
            "display_name": "Helsinki, Helsingin seutukunta, Uusimaa, Finland",
        },
        {"place_id": 1, "lat": "0.0", "lon": "0.0", "display_name": "Somewhere else"},
    ]


@pytest.fixture
def textgen_payload() -> dict[str, Any]:
    return {
        "candidates": [
            {
                "content": {
                    "parts": [{"text": "Grey and snowy, with a light breeze picking up later."}],
                    "role": "model",
                },
                "finishReason": "STOP",
            }
        ]
    }
