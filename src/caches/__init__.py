"""The three cache families: locations, forecasts and summaries."""

from .forecast import ForecastCache, current_temperature
from .location import LocationCache
from .prompt import build_prompt
from .summary import SummaryCache

__all__ = [
    "ForecastCache",
    "LocationCache",
    "SummaryCache",
    "build_prompt",
    "current_temperature",
]
