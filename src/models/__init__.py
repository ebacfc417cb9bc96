"""Typed models for locations, forecasts and text generation."""

from .config import GenerationConfig, TextModel
from .weather import (
    Coordinates,
    ForecastEnvelope,
    PublicForecast,
    TimeSeriesEntry,
    coordinate_key,
)

__all__ = [
    "GenerationConfig",
    "TextModel",
    "Coordinates",
    "ForecastEnvelope",
    "PublicForecast",
    "TimeSeriesEntry",
    "coordinate_key",
]
