"""Nominatim geocoder client."""

from core import get_logger
from core.errors import NotFound, UpstreamParseFailed
from models import Coordinates

from .base import ProviderClient

logger = get_logger(__name__)


class GeocoderClient(ProviderClient):
    """Resolves free-text place names to coordinates using the first match."""

    provider = "geocoder"

    def __init__(self, url: str = "https://nominatim.openstreetmap.org/search", **kwargs) -> None:
        super().__init__(**kwargs)
        self.url = url

    def geocode(self, query: str) -> Coordinates:
        """
        Look up a place name.

        Args:
            query: Place name exactly as the caller supplied it

        Returns:
            Coordinates of the first result

        Raises:
            NotFound: The provider returned no results
            UpstreamParseFailed: The body or its numbers could not be parsed
            UpstreamRequestFailed: The provider could not be reached
        """
        response = self._request("GET", self.url, params={"q": query, "format": "json"})
        results = self._json(response)

        if not isinstance(results, list):
            raise UpstreamParseFailed(
                f"Expected a list of geocode results, got {type(results).__name__}"
            )
        if not results:
            logger.info("geocode_no_results", query=query)
            raise NotFound("No results found")

        first = results[0]
        try:
            # Nominatim returns decimal strings
            coords = Coordinates(lat=float(first["lat"]), lon=float(first["lon"]))
        except (KeyError, TypeError, ValueError) as e:
            raise UpstreamParseFailed(f"Invalid coordinates in geocode result: {e}") from e

        logger.info("geocoded", query=query, lat=coords.lat, lon=coords.lon)
        return coords
