"""Handlers for HTTP requests."""

from .weather import TemperatureNotFound, WeatherHandler, router, weather_error_handler

__all__ = ["TemperatureNotFound", "WeatherHandler", "router", "weather_error_handler"]
