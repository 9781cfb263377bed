"""Main entry point for the Radio and Traffic Aggregator API."""

import os
import logging
import uuid
import time
from contextlib import asynccontextmanager
from datetime import datetime
from http import HTTPStatus
from typing import List

from fastapi import FastAPI, HTTPException, status, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from aggregator import __version__
from aggregator.models.config import AppConfig
from aggregator.models.api import SongDto, TrafficMessageDto, HealthResponse, StatusResponse, ErrorResponse
from aggregator.services.config_manager import load_app_config
from aggregator.services.interfaces import ProgramServiceInterface, TrafficMessageServiceInterface
from aggregator.services.program_service import ProgramService
from aggregator.services.traffic_service import TrafficMessageService
from aggregator.services.upstream_client import (
    UpstreamClient,
    UpstreamError,
    UpstreamUnavailableError,
    UpstreamBadResponseError
)
from aggregator.services.mappers import song_to_dto, traffic_message_to_dto
from aggregator.utils.performance_monitor import PerformanceMonitor
from aggregator.utils.logging_config import (
    setup_logging,
    log_api_request,
    log_api_response,
    get_request_logger,
    log_performance_metric
)

# Initialize structured logging
setup_logging(
    log_level=os.getenv("LOG_LEVEL", "INFO"),
    log_dir=os.getenv("APP_LOG_DIR", "./work/logs"),
    enable_console=True,
    enable_file=os.getenv("APP_LOG_TO_FILE", "true").lower() in ("1", "true", "yes"),
    enable_structured=True
)

logger = logging.getLogger(__name__)

UPSTREAM_ERROR_RESPONSES = {
    500: {"model": ErrorResponse, "description": "Internal Server Error"},
    502: {"model": ErrorResponse, "description": "Bad Gateway"},
    503: {"model": ErrorResponse, "description": "Service Unavailable"}
}


def _upstream_status_code(error: UpstreamError) -> int:
    """Map an upstream failure to the HTTP status returned to the caller."""
    if isinstance(error, UpstreamUnavailableError):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    if isinstance(error, UpstreamBadResponseError):
        return status.HTTP_502_BAD_GATEWAY
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _error_response(status_code: int, error: ErrorResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=error.model_dump())


def create_app(app_config: AppConfig) -> FastAPI:
    """Create the FastAPI application.

    Args:
        app_config: Immutable application configuration

    Returns:
        Configured FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        performance_monitor = PerformanceMonitor()
        upstream_client = UpstreamClient(app_config, performance_monitor=performance_monitor)
        app.state.performance_monitor = performance_monitor
        app.state.upstream_client = upstream_client
        app.state.program_service = ProgramService(
            upstream_client,
            batch_size=app_config.batch_size,
            max_concurrency=app_config.max_concurrency,
            isolate_channel_failures=app_config.isolate_channel_failures
        )
        app.state.traffic_service = TrafficMessageService(upstream_client)
        logger.info("Application started successfully", extra={
            'upstream_base_url': app_config.upstream_base_url
        })

        try:
            yield
        finally:
            app.state.program_service = None
            app.state.traffic_service = None
            try:
                await upstream_client.aclose()
            except Exception as e:
                logger.error(f"Error during application shutdown: {e}")
            logger.info("Application shutdown completed")

    app = FastAPI(
        title="Radio and Traffic Aggregator API",
        description="Aggregates now-playing songs across radio channels and current traffic messages",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )
    app.state.app_config = app_config
    app.state.program_service = None
    app.state.traffic_service = None
    app.state.performance_monitor = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.exception_handler(UpstreamError)
    async def upstream_error_handler(request: Request, exc: UpstreamError) -> JSONResponse:
        """Return upstream failures as ErrorResponse with the mapped status."""
        status_code = _upstream_status_code(exc)
        logger.error(f"Upstream failure while serving {request.url.path}: {exc}", extra={
            'endpoint': request.url.path,
            'error_type': exc.error_type,
            'upstream_path': exc.path,
            'upstream_status_code': exc.status_code,
            'status_code': status_code
        })
        return _error_response(status_code, ErrorResponse(
            error=f"upstream_{exc.error_type}",
            message=str(exc),
            details=f"upstream path: {exc.path}"
        ))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Return HTTP errors in the ErrorResponse shape."""
        return _error_response(exc.status_code, ErrorResponse(
            error=HTTPStatus(exc.status_code).phrase,
            message=str(exc.detail)
        ))

    @app.middleware("http")
    async def logging_middleware(request: Request, call_next):
        """Middleware for logging API requests and responses."""
        request_id = str(uuid.uuid4())
        method = request.method
        endpoint = str(request.url.path)
        client_ip = request.client.host if request.client else "unknown"

        start_time = time.time()
        log_api_request(
            request_id=request_id,
            endpoint=endpoint,
            method=method,
            client_ip=client_ip,
            user_agent=request.headers.get("user-agent", "unknown")
        )

        try:
            response = await call_next(request)
        except Exception as e:
            duration = time.time() - start_time
            request_logger = get_request_logger(request_id, endpoint, method)
            request_logger.error(f"Request failed: {e}", extra={
                'duration': duration,
                'error_type': type(e).__name__,
                'error_message': str(e)
            })
            raise

        duration = time.time() - start_time
        log_api_response(
            request_id=request_id,
            endpoint=endpoint,
            method=method,
            status_code=response.status_code,
            duration=duration
        )
        log_performance_metric(
            component="api",
            operation=f"{method}_{endpoint.replace('/', '_')}",
            duration=duration,
            status_code=response.status_code
        )

        # Add request ID to response headers for tracing
        response.headers["X-Request-ID"] = request_id
        return response

    def get_program_service(request: Request) -> ProgramServiceInterface:
        program_service = request.app.state.program_service
        if program_service is None:
            logger.error("Program service not initialized")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Program service not available"
            )
        return program_service

    def get_traffic_service(request: Request) -> TrafficMessageServiceInterface:
        traffic_service = request.app.state.traffic_service
        if traffic_service is None:
            logger.error("Traffic service not initialized")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Traffic service not available"
            )
        return traffic_service

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {"message": "Radio and Traffic Aggregator API", "version": __version__}

    @app.get(
        "/api/v1/programs/aggregated-songs",
        response_model=List[SongDto],
        responses=UPSTREAM_ERROR_RESPONSES
    )
    async def aggregate_songs_from_all_channels(request: Request) -> List[SongDto]:
        """Return the currently playing, or last played, song of every channel.

        Songs are listed in the order the per-channel requests completed.
        """
        program_service = get_program_service(request)

        try:
            result = await program_service.aggregate_songs_from_all_channels()
        except UpstreamError:
            raise
        except Exception as e:
            logger.error(f"Unexpected error during song aggregation: {e}", exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Internal server error"
            )

        return [song_to_dto(song) for song in result.songs]

    @app.get(
        "/api/v1/traffic/messages",
        response_model=List[TrafficMessageDto],
        responses=UPSTREAM_ERROR_RESPONSES
    )
    async def get_latest_messages(request: Request) -> List[TrafficMessageDto]:
        """Return the current traffic messages in upstream order."""
        traffic_service = get_traffic_service(request)

        try:
            messages = await traffic_service.get_latest_messages()
        except UpstreamError:
            raise
        except Exception as e:
            logger.error(f"Unexpected error fetching traffic messages: {e}", exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Internal server error"
            )

        return [traffic_message_to_dto(message) for message in messages]

    @app.get("/healthz", response_model=HealthResponse)
    async def health_check(request: Request) -> HealthResponse:
        """Health check endpoint for service monitoring."""
        services_ready = (
            request.app.state.program_service is not None and
            request.app.state.traffic_service is not None
        )
        overall_status = "healthy" if services_ready else "unhealthy"

        logger.info("Health check performed", extra={'health_status': overall_status})
        return HealthResponse(
            status=overall_status,
            timestamp=datetime.now(),
            version=__version__
        )

    @app.get("/status", response_model=StatusResponse)
    async def get_status(request: Request) -> StatusResponse:
        """Get aggregation statistics and upstream call metrics."""
        program_service = get_program_service(request)
        performance_monitor = request.app.state.performance_monitor

        try:
            statistics = {
                'aggregation': program_service.get_statistics(),
                'performance': performance_monitor.get_performance_status()
            }
        except Exception as e:
            logger.error(f"Status endpoint failed: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to get system status"
            )

        return StatusResponse(
            timestamp=datetime.now(),
            service_status="running",
            upstream_base_url=app_config.upstream_base_url,
            statistics=statistics
        )

    return app


app_config = load_app_config()
app = create_app(app_config)


def run() -> None:
    """Serve the application with uvicorn."""
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=app_config.port)


if __name__ == "__main__":
    run()
