"""Weather Handler and HTTP routes."""

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

from caches import ForecastCache, LocationCache, SummaryCache, current_temperature
from core import LogContext, NotFound, WeatherServiceError, get_logger
from models import Coordinates, PublicForecast
from monitoring import MetricsCollector

logger = get_logger(__name__)


class TemperatureNotFound(NotFound):
    """The forecast has no current temperature; rendered as 404."""


class WeatherHandler:
    """Resolves requests through the three caches, one cache per step."""

    def __init__(
        self,
        locations: LocationCache,
        forecasts: ForecastCache,
        summaries: SummaryCache,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self.locations = locations
        self.forecasts = forecasts
        self.summaries = summaries
        self.metrics = metrics

    async def coordinates(self, location: str) -> Coordinates:
        return await self.locations.get_coordinates(location)

    async def forecast(self, location: str) -> PublicForecast:
        coords = await self.locations.get_coordinates(location)
        return await self.forecasts.get_forecast(coords)

    async def summary(self, location: str, timezone: str | None = None) -> str:
        weather = await self.forecast(location)
        return await self.summaries.get_summary(weather, timezone)

    async def current_temperature(self, location: str) -> float:
        weather = await self.forecast(location)
        try:
            return current_temperature(weather)
        except NotFound as e:
            raise TemperatureNotFound(str(e)) from e


router = APIRouter(prefix="/api", tags=["weather"])


def _handler(request: Request) -> WeatherHandler:
    return request.app.state.weather_handler


@router.get("/location/{location}")
async def handle_location(location: str, request: Request):
    with LogContext(endpoint="location", location=location):
        coords = await _handler(request).coordinates(location)
    return coords.model_dump()


@router.get("/weather/{location}")
async def handle_weather(location: str, request: Request):
    with LogContext(endpoint="weather", location=location):
        weather = await _handler(request).forecast(location)
    return weather.to_json()


@router.get("/weather/{location}/summary")
async def handle_summary(location: str, request: Request, timezone: str | None = None):
    with LogContext(endpoint="summary", location=location):
        summary = await _handler(request).summary(location, timezone)
    return {"summary": summary}


@router.get("/weather/{location}/current_temperature")
async def handle_current_temperature(location: str, request: Request):
    with LogContext(endpoint="current_temperature", location=location):
        temperature = await _handler(request).current_temperature(location)
    return {"temperature_celsius": temperature}


async def weather_error_handler(request: Request, exc: WeatherServiceError) -> PlainTextResponse:
    """Render service errors as plain text: 404 for a missing temperature, 500 otherwise."""
    status = 404 if isinstance(exc, TemperatureNotFound) else 500
    handler: WeatherHandler | None = getattr(request.app.state, "weather_handler", None)
    if handler and handler.metrics:
        endpoint = getattr(request.scope.get("route"), "name", "unknown")
        handler.metrics.record_error(type(exc).__name__, endpoint)
    logger.warning("request_failed", path=request.url.path, status=status, error=str(exc))
    return PlainTextResponse(str(exc), status_code=status)
