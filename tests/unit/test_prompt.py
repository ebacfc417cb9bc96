"""Tests for the summary prompt builder."""

from datetime import datetime

import pytest
import pytz

from caches.prompt import MISSING, build_prompt, fmt, resolve_timezone
from core.errors import InvalidTimezone, NotFound
from models import ForecastEnvelope

NOON_UTC = datetime(2025, 1, 1, 12, 0, tzinfo=pytz.utc)


def _view(payload):
    return ForecastEnvelope.model_validate(payload).public_view()


@pytest.mark.unit
def test_prompt_fills_current_conditions(forecast_payload):
    prompt = build_prompt(_view(forecast_payload), now=NOON_UTC)

    assert "Current time: 12:00" in prompt
    assert "Temperature: -3.4°C" in prompt
    assert "Wind: 5.1 m/s with gusts of 9.8 m/s" in prompt
    assert "Humidity: 91.2%" in prompt
    assert "Cloud area fraction: 87.5%" in prompt
    assert "Fog area fraction: 0.0%" in prompt


@pytest.mark.unit
def test_prompt_fills_periods(forecast_payload):
    prompt = build_prompt(_view(forecast_payload), now=NOON_UTC)

    assert "Summary: lightsnow\nPrecipitation: 0.3 mm with a probability of 64.0%" in prompt
    assert "Summary: snow\nMax Temperature: -2.1°C\nMin Temperature: -4.0°C" in prompt
    assert "Summary: cloudy\nMax Temperature: N/A°C\nMin Temperature: N/A°C" in prompt
    assert "Precipitation: N/A mm with a probability of 35.0%" in prompt


@pytest.mark.unit
def test_prompt_local_time(forecast_payload):
    prompt = build_prompt(_view(forecast_payload), timezone="Europe/Helsinki", now=NOON_UTC)
    assert "Current time: 14:00" in prompt


@pytest.mark.unit
def test_prompt_missing_readings(forecast_payload):
    data = forecast_payload["properties"]["timeseries"][0]["data"]
    del data["instant"]["details"]
    del data["next_1_hours"]
    del data["next_6_hours"]["details"]

    prompt = build_prompt(_view(forecast_payload), now=NOON_UTC)

    assert "Temperature: N/A°C" in prompt
    assert "Wind: N/A m/s with gusts of N/A m/s" in prompt
    assert "Forecast 1 hour:\nSummary: N/A\nPrecipitation: N/A mm" in prompt
    assert "Forecast 6 hours:\nSummary: snow\nMax Temperature: N/A°C" in prompt


@pytest.mark.unit
def test_prompt_requires_timeseries(forecast_payload):
    forecast_payload["properties"]["timeseries"] = []

    with pytest.raises(NotFound, match="No timeseries data available"):
        build_prompt(_view(forecast_payload), now=NOON_UTC)


@pytest.mark.unit
def test_unknown_timezone(forecast_payload):
    with pytest.raises(InvalidTimezone, match="Mars/Olympus_Mons"):
        build_prompt(_view(forecast_payload), timezone="Mars/Olympus_Mons", now=NOON_UTC)


@pytest.mark.unit
def test_resolve_timezone_defaults_to_utc():
    assert resolve_timezone(None) is pytz.utc
    assert resolve_timezone("") is pytz.utc
    assert resolve_timezone("Europe/Oslo").zone == "Europe/Oslo"


@pytest.mark.unit
@pytest.mark.parametrize(
    "value, expected",
    [(None, MISSING), (0, "0.0"), (-3.45, "-3.5"), (12.04, "12.0"), (100, "100.0")],
)
def test_fmt(value, expected):
    assert fmt(value) == expected
