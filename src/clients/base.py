"""Shared HTTP plumbing for provider clients."""

import time
from typing import Any

import httpx
import pybreaker

from core import get_logger
from core.errors import UpstreamParseFailed, UpstreamRequestFailed
from monitoring import MetricsCollector

logger = get_logger(__name__)


class BreakerListener(pybreaker.CircuitBreakerListener):
    """Listener for circuit breaker state changes."""

    def state_change(self, cb, old_state, new_state):
        """Called when circuit breaker state changes."""
        logger.warning(
            "breaker_state_change",
            breaker=cb.name,
            from_state=str(old_state),
            to_state=str(new_state),
        )


def _is_client_error(exc: BaseException) -> bool:
    # A 4xx means our request was wrong, not that the provider is down
    return isinstance(exc, httpx.HTTPStatusError) and exc.response.status_code < 500


class ProviderClient:
    """
    Blocking httpx client with a per-provider circuit breaker.

    Every call is bounded by ``timeout``, so a hung provider cannot hold a
    cache fill open indefinitely. Transport failures, non-2xx answers and
    an open breaker all surface as ``UpstreamRequestFailed``.
    """

    provider = "upstream"

    def __init__(
        self,
        timeout: float = 10.0,
        user_agent: str | None = None,
        fail_max: int = 5,
        reset_timeout: int = 30,
        metrics: MetricsCollector | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if user_agent:
            headers["User-Agent"] = user_agent

        self.timeout = timeout
        self._client = httpx.Client(timeout=timeout, headers=headers)
        self._metrics = metrics
        self._breaker = pybreaker.CircuitBreaker(
            fail_max=fail_max,
            reset_timeout=reset_timeout,
            exclude=[_is_client_error],
            name=f"{self.provider}-http",
            listeners=[BreakerListener()],
        )

        logger.info("client_init", provider=self.provider, timeout=timeout)

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send a request through the breaker; return only 2xx responses."""

        def _make_request() -> httpx.Response:
            response = self._client.request(method, url, **kwargs)
            response.raise_for_status()
            return response

        start = time.perf_counter()
        status = "error"
        try:
            response = self._breaker.call(_make_request)
            status = "success"
            return response
        except pybreaker.CircuitBreakerError as e:
            status = "breaker_open"
            logger.error("request_rejected", provider=self.provider, error=str(e))
            raise UpstreamRequestFailed(
                f"{self.provider} unavailable: circuit breaker open"
            ) from e
        except httpx.HTTPStatusError as e:
            logger.warning(
                "http_status_error",
                provider=self.provider,
                status=e.response.status_code,
                url=str(e.request.url.copy_remove_param("key")),
            )
            raise UpstreamRequestFailed(
                f"{self.provider} request failed ({e.response.status_code}): {e.response.text}"
            ) from e
        except httpx.HTTPError as e:
            logger.warning("http_error", provider=self.provider, error=str(e))
            raise UpstreamRequestFailed(f"Failed to send {self.provider} request: {e}") from e
        finally:
            if self._metrics:
                self._metrics.record_upstream_call(
                    self.provider, status, time.perf_counter() - start
                )

    def _json(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamParseFailed(f"Failed to parse {self.provider} JSON response: {e}") from e

    def close(self) -> None:
        """Close HTTP client"""
        self._client.close()

    def __enter__(self) -> "ProviderClient":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
