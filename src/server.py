"""
HTTP Server
FastAPI application wiring the cache-backed weather handler.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse, Response
from injector import Injector

from caches import ForecastCache, LocationCache, SummaryCache
from clients import ForecastClient, GeocoderClient, TextGenerationClient
from core import Settings, WeatherServiceError, create_container, get_logger
from handlers import WeatherHandler, router, weather_error_handler
from monitoring import MetricsCollector


logger = get_logger(__name__)


def create_app(container: Injector | None = None) -> FastAPI:
    """
    Build the application.

    The three caches are resolved once from the container and shared by
    every request through ``app.state``.
    """
    container = container or create_container()
    settings = container.get(Settings)
    metrics = container.get(MetricsCollector)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("starting", cache_dir=str(settings.cache_dir))
        yield
        # Fills run on the provider clients, so they finish first
        for cache_type in (LocationCache, ForecastCache, SummaryCache):
            await container.get(cache_type).store.close(settings.shutdown_timeout)
        for client_type in (GeocoderClient, ForecastClient, TextGenerationClient):
            container.get(client_type).close()
        logger.info("stopped")

    app = FastAPI(title="Weather Service", version="0.1.0", lifespan=lifespan)
    app.state.weather_handler = WeatherHandler(
        locations=container.get(LocationCache),
        forecasts=container.get(ForecastCache),
        summaries=container.get(SummaryCache),
        metrics=metrics,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )
    app.add_exception_handler(WeatherServiceError, weather_error_handler)
    app.include_router(router)

    @app.get("/", response_class=PlainTextResponse)
    async def root():
        return "Hello, World!"

    @app.get("/metrics")
    async def prometheus_metrics():
        return Response(metrics.get_metrics(), media_type=metrics.content_type)

    return app


def serve() -> None:
    """Entry point - run the HTTP server with uvicorn."""
    import uvicorn

    from core import configure_logging, get_settings

    settings = get_settings()
    configure_logging(settings.log_level, settings.json_logs)

    logger.info("listening", host=settings.host, port=settings.port)
    uvicorn.run(create_app(), host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    serve()
