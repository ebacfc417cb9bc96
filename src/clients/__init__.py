"""
Client modules for the external providers
"""

from .base import ProviderClient
from .forecast import ForecastClient
from .geocoder import GeocoderClient
from .textgen import TextGenerationClient

__all__ = ["ProviderClient", "ForecastClient", "GeocoderClient", "TextGenerationClient"]
