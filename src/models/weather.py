"""
Forecast and location models.

The forecast envelope follows MET Norway's Locationforecast 2.0 GeoJSON
response. ``geometry.coordinates`` is ``[lon, lat, altitude]``.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Coordinates(BaseModel):
    """A geocoded point. Immutable."""

    model_config = ConfigDict(frozen=True)

    lat: float
    lon: float

    def key(self) -> str:
        """Cache key, quantized to 4 decimals (about 11 m)."""
        return coordinate_key(self.lat, self.lon)


def coordinate_key(lat: float, lon: float) -> str:
    return f"{lat:.4f},{lon:.4f}"


class _Forecast(BaseModel):
    """Shared config: immutable, unknown provider fields dropped, ``type`` aliased."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class Geometry(_Forecast):
    coordinates: list[float] = Field(min_length=2)
    geometry_type: str = Field(alias="type")

    @property
    def lon(self) -> float:
        return self.coordinates[0]

    @property
    def lat(self) -> float:
        return self.coordinates[1]


class InstantDetails(_Forecast):
    air_pressure_at_sea_level: float | None = None
    air_temperature: float | None = None
    cloud_area_fraction: float | None = None
    cloud_area_fraction_high: float | None = None
    cloud_area_fraction_low: float | None = None
    cloud_area_fraction_medium: float | None = None
    dew_point_temperature: float | None = None
    fog_area_fraction: float | None = None
    relative_humidity: float | None = None
    wind_from_direction: float | None = None
    wind_speed: float | None = None
    wind_speed_of_gust: float | None = None


class PeriodDetails(_Forecast):
    air_temperature_max: float | None = None
    air_temperature_min: float | None = None
    precipitation_amount: float | None = None
    precipitation_amount_max: float | None = None
    precipitation_amount_min: float | None = None
    probability_of_precipitation: float | None = None
    probability_of_thunder: float | None = None
    ultraviolet_index_clear_sky_max: float | None = None


class PeriodSummary(_Forecast):
    symbol_code: str


class PeriodForecast(_Forecast):
    summary: PeriodSummary
    details: PeriodDetails | None = None


class Instant(_Forecast):
    details: InstantDetails | None = None


class TimeSeriesData(_Forecast):
    instant: Instant
    next_1_hours: PeriodForecast | None = None
    next_6_hours: PeriodForecast | None = None
    next_12_hours: PeriodForecast | None = None


class TimeSeriesEntry(_Forecast):
    time: str
    data: TimeSeriesData


class ForecastMeta(_Forecast):
    updated_at: str
    units: dict[str, str] = Field(default_factory=dict)


class PublicProperties(_Forecast):
    meta: ForecastMeta
    timeseries: list[TimeSeriesEntry]


class PublicForecast(_Forecast):
    """The trimmed forecast served to callers and stored in the cache."""

    response_type: str = Field(alias="type")
    geometry: Geometry
    properties: PublicProperties

    def current(self) -> TimeSeriesEntry | None:
        """The first time-series entry, which the provider aligns to "now"."""
        return self.properties.timeseries[0] if self.properties.timeseries else None

    def summary_key(self) -> str:
        """Summary cache key from the geometry's own ``[lon, lat, ...]`` ordering."""
        return coordinate_key(self.geometry.lat, self.geometry.lon)

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ForecastProperties(BaseModel):
    model_config = ConfigDict(extra="allow")

    meta: ForecastMeta
    timeseries: list[TimeSeriesEntry]


class ForecastEnvelope(BaseModel):
    """The full provider response. Extra top-level fields are kept, not served."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    response_type: str = Field(alias="type")
    geometry: Geometry
    properties: ForecastProperties

    def public_view(self) -> PublicForecast:
        return PublicForecast(
            response_type=self.response_type,
            geometry=self.geometry,
            properties=PublicProperties(
                meta=self.properties.meta,
                timeseries=self.properties.timeseries,
            ),
        )
