"""MET Norway Locationforecast client."""

from pydantic import ValidationError

from core import get_logger
from core.errors import UpstreamParseFailed
from models import Coordinates, ForecastEnvelope

from .base import ProviderClient

logger = get_logger(__name__)


class ForecastClient(ProviderClient):
    """Fetches the ``complete`` forecast for a point."""

    provider = "forecast"

    def __init__(
        self,
        url: str = "https://api.met.no/weatherapi/locationforecast/2.0/complete",
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.url = url

    def fetch(self, coords: Coordinates) -> ForecastEnvelope:
        """
        Fetch and validate the forecast envelope.

        Coordinates are sent with 4 decimals, the same resolution the
        forecast cache keys on.

        Raises:
            UpstreamParseFailed: The envelope does not match the schema
            UpstreamRequestFailed: The provider could not be reached
        """
        params = {"lat": round(coords.lat, 4), "lon": round(coords.lon, 4)}
        response = self._request("GET", self.url, params=params)
        payload = self._json(response)

        try:
            envelope = ForecastEnvelope.model_validate(payload)
        except ValidationError as e:
            logger.warning("forecast_invalid", errors=e.error_count())
            raise UpstreamParseFailed(f"Failed to parse forecast response: {e}") from e

        logger.info(
            "forecast_fetched",
            lat=params["lat"],
            lon=params["lon"],
            entries=len(envelope.properties.timeseries),
        )
        return envelope
