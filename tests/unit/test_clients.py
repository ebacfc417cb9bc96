"""Tests for the provider HTTP clients."""

import json
from unittest.mock import patch

import httpx
import pybreaker
import pytest

from clients import ForecastClient, GeocoderClient, TextGenerationClient
from clients.textgen import extract_text
from core.errors import (
    ConfigMissing,
    MalformedUpstreamResponse,
    NotFound,
    UpstreamParseFailed,
    UpstreamRequestFailed,
)
from models import Coordinates, GenerationConfig


GEOCODER_URL = "https://geocoder.test/search"
FORECAST_URL = "https://forecast.test/complete"
TEXTGEN_URL = "https://textgen.test/v1beta/models/gemma-3-27b-it:generateContent"


@pytest.fixture
def geocoder():
    client = GeocoderClient(url=GEOCODER_URL, timeout=2.0, fail_max=2, user_agent="tests")
    yield client
    client.close()


@pytest.fixture
def forecaster():
    client = ForecastClient(url=FORECAST_URL, timeout=2.0)
    yield client
    client.close()


@pytest.fixture
def textgen():
    client = TextGenerationClient(
        api_key="secret", base_url="https://textgen.test/v1beta", timeout=2.0
    )
    yield client
    client.close()


# ============================================================================
# Geocoder
# ============================================================================

@pytest.mark.unit
def test_geocode_uses_first_result(geocoder, mock_router, geocode_payload):
    route = mock_router.get(GEOCODER_URL).mock(
        return_value=httpx.Response(200, json=geocode_payload)
    )

    coords = geocoder.geocode("Helsinki")

    assert coords == Coordinates(lat=60.1699, lon=24.9384)
    request = route.calls.last.request
    assert request.url.params["q"] == "Helsinki"
    assert request.url.params["format"] == "json"
    assert request.headers["User-Agent"] == "tests"


@pytest.mark.unit
def test_geocode_no_results(geocoder, mock_router):
    mock_router.get(GEOCODER_URL).mock(return_value=httpx.Response(200, json=[]))

    with pytest.raises(NotFound, match="No results found"):
        geocoder.geocode("Atlantis")


@pytest.mark.unit
@pytest.mark.parametrize(
    "body",
    [
        {"error": "not a list"},
        [{"lat": "north", "lon": "24.9"}],
        [{"display_name": "no coordinates"}],
    ],
)
def test_geocode_unparseable(geocoder, mock_router, body):
    mock_router.get(GEOCODER_URL).mock(return_value=httpx.Response(200, json=body))

    with pytest.raises(UpstreamParseFailed):
        geocoder.geocode("Helsinki")


@pytest.mark.unit
def test_geocode_invalid_json(geocoder, mock_router):
    mock_router.get(GEOCODER_URL).mock(return_value=httpx.Response(200, text="<html>"))

    with pytest.raises(UpstreamParseFailed):
        geocoder.geocode("Helsinki")


@pytest.mark.unit
def test_transport_error(geocoder, mock_router):
    mock_router.get(GEOCODER_URL).mock(side_effect=httpx.ConnectError("refused"))

    with pytest.raises(UpstreamRequestFailed, match="Failed to send geocoder request"):
        geocoder.geocode("Helsinki")


# ============================================================================
# Circuit breaker
# ============================================================================

@pytest.mark.unit
def test_client_initializes_circuit_breaker(geocoder):
    assert isinstance(geocoder._breaker, pybreaker.CircuitBreaker)
    assert geocoder._breaker.name == "geocoder-http"
    assert geocoder._breaker.fail_max == 2


@pytest.mark.unit
def test_breaker_opens_after_server_errors(geocoder, mock_router):
    route = mock_router.get(GEOCODER_URL).mock(return_value=httpx.Response(503, text="busy"))

    for _ in range(2):
        with pytest.raises(UpstreamRequestFailed):
            geocoder.geocode("Helsinki")

    with pytest.raises(UpstreamRequestFailed, match="circuit breaker open"):
        geocoder.geocode("Helsinki")

    assert route.call_count == 2
    assert geocoder._breaker.current_state == pybreaker.STATE_OPEN


@pytest.mark.unit
def test_client_errors_do_not_open_breaker(geocoder, mock_router):
    route = mock_router.get(GEOCODER_URL).mock(return_value=httpx.Response(400, text="bad query"))

    for _ in range(4):
        with pytest.raises(UpstreamRequestFailed, match=r"\(400\): bad query"):
            geocoder.geocode("")

    assert route.call_count == 4
    assert geocoder._breaker.current_state == pybreaker.STATE_CLOSED


@pytest.mark.unit
def test_breaker_state_change_is_logged(geocoder):
    listener = geocoder._breaker.listeners[0]

    with patch("clients.base.logger") as mock_logger:
        listener.state_change(geocoder._breaker, "closed", "open")

    mock_logger.warning.assert_called_once()
    assert mock_logger.warning.call_args[0][0] == "breaker_state_change"


# ============================================================================
# Forecast
# ============================================================================

@pytest.mark.unit
def test_forecast_fetch(forecaster, mock_router, forecast_payload):
    route = mock_router.get(FORECAST_URL).mock(
        return_value=httpx.Response(200, json=forecast_payload)
    )

    envelope = forecaster.fetch(Coordinates(lat=60.169856, lon=24.938379))

    params = route.calls.last.request.url.params
    assert params["lat"] == "60.1699"
    assert params["lon"] == "24.9384"
    assert envelope.public_view().current().data.instant.details.air_temperature == -3.4


@pytest.mark.unit
def test_forecast_schema_mismatch(forecaster, mock_router):
    mock_router.get(FORECAST_URL).mock(
        return_value=httpx.Response(200, json={"type": "Feature", "properties": {}})
    )

    with pytest.raises(UpstreamParseFailed):
        forecaster.fetch(Coordinates(lat=60.1699, lon=24.9384))


# ============================================================================
# Text generation
# ============================================================================

@pytest.mark.unit
def test_generate_request(textgen, mock_router, textgen_payload):
    route = mock_router.post(TEXTGEN_URL).mock(
        return_value=httpx.Response(200, json=textgen_payload)
    )

    text = textgen.generate("describe the weather")

    assert text == "Grey and snowy, with a light breeze picking up later."
    request = route.calls.last.request
    assert request.url.params["key"] == "secret"
    assert json.loads(request.content) == GenerationConfig().request_body("describe the weather")


@pytest.mark.unit
def test_generate_without_key_makes_no_request(mock_router):
    route = mock_router.post(TEXTGEN_URL)
    client = TextGenerationClient(api_key="", base_url="https://textgen.test/v1beta")

    with pytest.raises(ConfigMissing, match="GOOGLE_AISTUDIO_API_KEY"):
        client.generate("hello")

    assert route.call_count == 0
    client.close()


@pytest.mark.unit
def test_generate_error_status(textgen, mock_router):
    mock_router.post(TEXTGEN_URL).mock(
        return_value=httpx.Response(429, text="quota exceeded")
    )

    with pytest.raises(UpstreamRequestFailed, match="quota exceeded"):
        textgen.generate("hello")


@pytest.mark.unit
def test_generate_uses_configured_model(mock_router, textgen_payload):
    url = "https://generativelanguage.googleapis.com/v1beta/models/gemini-2.0-flash:generateContent"
    route = mock_router.post(url).mock(return_value=httpx.Response(200, json=textgen_payload))
    client = TextGenerationClient(
        api_key="k", config=GenerationConfig(model_name="gemini-2.0-flash")
    )

    client.generate("hello")

    assert route.called
    client.close()


@pytest.mark.unit
@pytest.mark.parametrize(
    "body, error",
    [
        ({}, MalformedUpstreamResponse),
        ({"candidates": []}, MalformedUpstreamResponse),
        ({"candidates": [{"content": {"parts": []}}]}, MalformedUpstreamResponse),
        ({"candidates": [{"content": {}}]}, MalformedUpstreamResponse),
        ({"candidates": [{"content": {"parts": [{"inline": "x"}]}}]}, MalformedUpstreamResponse),
        ({"candidates": [{"finishReason": "SAFETY"}]}, UpstreamParseFailed),
        ({"candidates": "none"}, UpstreamParseFailed),
        ({"candidates": [{"content": {"parts": [{"text": 3}]}}]}, UpstreamParseFailed),
        ([], UpstreamParseFailed),
    ],
)
def test_extract_text_failures(body, error):
    with pytest.raises(error):
        extract_text(body)
