"""Dependency Injection Container."""

from injector import Injector, Module, provider, singleton

from caches import ForecastCache, LocationCache, SummaryCache
from clients import ForecastClient, GeocoderClient, TextGenerationClient
from models import GenerationConfig
from monitoring import MetricsCollector, metrics_collector

from .config import Settings, get_settings


class CoreModule(Module):
    """Core dependencies. Each cache family is built once per container."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    @singleton
    @provider
    def provide_settings(self) -> Settings:
        return self.settings

    @singleton
    @provider
    def provide_metrics(self) -> MetricsCollector:
        return metrics_collector

    @singleton
    @provider
    def provide_geocoder(self, metrics: MetricsCollector) -> GeocoderClient:
        """Provide geocoder client with circuit breaker."""
        s = self.settings
        return GeocoderClient(
            url=s.geocoder_url,
            timeout=s.http_timeout,
            user_agent=s.geocoder_user_agent,
            fail_max=s.breaker_fail_max,
            reset_timeout=s.breaker_reset_timeout,
            metrics=metrics,
        )

    @singleton
    @provider
    def provide_forecast_client(self, metrics: MetricsCollector) -> ForecastClient:
        """Provide forecast client with circuit breaker."""
        s = self.settings
        return ForecastClient(
            url=s.forecast_url,
            timeout=s.http_timeout,
            user_agent=s.forecast_user_agent,
            fail_max=s.breaker_fail_max,
            reset_timeout=s.breaker_reset_timeout,
            metrics=metrics,
        )

    @singleton
    @provider
    def provide_textgen_client(self, metrics: MetricsCollector) -> TextGenerationClient:
        """Provide text generation client."""
        s = self.settings
        config = GenerationConfig(
            model_name=s.textgen_model,
            temperature=s.textgen_temperature,
            max_output_tokens=s.textgen_max_tokens,
            top_p=s.textgen_top_p,
        )
        return TextGenerationClient(
            api_key=s.google_aistudio_api_key,
            config=config,
            base_url=s.textgen_base_url,
            timeout=s.http_timeout,
            fail_max=s.breaker_fail_max,
            reset_timeout=s.breaker_reset_timeout,
            metrics=metrics,
        )

    @singleton
    @provider
    def provide_location_cache(
        self, client: GeocoderClient, metrics: MetricsCollector
    ) -> LocationCache:
        return LocationCache(client, self.settings.cache_dir, metrics=metrics)

    @singleton
    @provider
    def provide_forecast_cache(
        self, client: ForecastClient, metrics: MetricsCollector
    ) -> ForecastCache:
        return ForecastCache(
            client, self.settings.cache_dir, self.settings.weather_ttl, metrics=metrics
        )

    @singleton
    @provider
    def provide_summary_cache(
        self, client: TextGenerationClient, metrics: MetricsCollector
    ) -> SummaryCache:
        return SummaryCache(
            client, self.settings.cache_dir, self.settings.summary_ttl, metrics=metrics
        )


def create_container(settings: Settings | None = None) -> Injector:
    """Create configured injector."""
    return Injector([CoreModule(settings)])
