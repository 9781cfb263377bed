"""HTTP client for the upstream programs/traffic API."""

import logging
import time
from typing import Dict, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from aggregator.models.config import AppConfig
from aggregator.utils.performance_monitor import PerformanceMonitor


logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class UpstreamError(Exception):
    """Base exception for failures talking to the upstream API."""

    def __init__(self, message: str, path: str, error_type: str = "unknown", status_code: Optional[int] = None):
        super().__init__(message)
        self.path = path
        self.error_type = error_type
        self.status_code = status_code


class UpstreamUnavailableError(UpstreamError):
    """The upstream API could not be reached (connection failure or timeout)."""

    def __init__(self, message: str, path: str):
        super().__init__(message, path, error_type="unavailable")


class UpstreamBadResponseError(UpstreamError):
    """The upstream API answered with an error status or an unparseable body."""

    def __init__(self, message: str, path: str, status_code: Optional[int] = None):
        super().__init__(message, path, error_type="bad_response", status_code=status_code)


class UpstreamClient:
    """Issues GET requests against the configured upstream base URL."""

    def __init__(
        self,
        config: AppConfig,
        performance_monitor: Optional[PerformanceMonitor] = None
    ):
        """Initialize the upstream client.

        Args:
            config: Application configuration carrying base URL and timeout
            performance_monitor: Optional monitor that records call timings
        """
        self.base_url = config.upstream_base_url
        self.timeout = httpx.Timeout(config.upstream_timeout_seconds)
        self.performance_monitor = performance_monitor
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers={"Accept": "application/json"}
        )

    async def get_json(
        self,
        path: str,
        model: Type[ModelT],
        params: Optional[Dict[str, object]] = None
    ) -> ModelT:
        """Fetch ``path`` and decode the JSON body into ``model``.

        Args:
            path: Path relative to the upstream base URL
            model: Pydantic model the response body is validated against
            params: Extra query parameters; ``format=json`` is always sent

        Returns:
            The decoded model instance

        Raises:
            UpstreamUnavailableError: If the upstream API cannot be reached
            UpstreamBadResponseError: On a non-2xx status or invalid body
        """
        query = {"format": "json", **(params or {})}
        start_time = time.perf_counter()
        status_code = None

        try:
            try:
                response = await self._client.get(path, params=query)
            except httpx.TimeoutException as e:
                raise UpstreamUnavailableError(f"Timeout fetching {path}", path) from e
            except httpx.RequestError as e:
                raise UpstreamUnavailableError(f"Network error fetching {path}: {e}", path) from e

            status_code = response.status_code
            if not response.is_success:
                raise UpstreamBadResponseError(
                    f"Upstream returned HTTP {status_code} for {path}",
                    path,
                    status_code=status_code
                )

            try:
                result = model.model_validate_json(response.content)
            except ValidationError as e:
                raise UpstreamBadResponseError(
                    f"Invalid response body from {path}: {e.error_count()} validation error(s)",
                    path,
                    status_code=status_code
                ) from e

        except UpstreamError as e:
            duration = time.perf_counter() - start_time
            self._record(path, duration, False, status_code)
            logger.warning("Upstream request failed", extra={
                'path': path,
                'params': query,
                'error_type': e.error_type,
                'status_code': status_code,
                'duration': duration,
                'error_message': str(e)
            })
            raise

        duration = time.perf_counter() - start_time
        self._record(path, duration, True, status_code)
        logger.debug("Upstream request completed", extra={
            'path': path,
            'params': query,
            'status_code': status_code,
            'duration': duration
        })
        return result

    def _record(self, path: str, duration: float, success: bool, status_code: Optional[int]) -> None:
        if self.performance_monitor is not None:
            self.performance_monitor.record_upstream_call(path, duration, success, status_code)

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._client.aclose()
        logger.info("Upstream client closed", extra={'base_url': self.base_url})
