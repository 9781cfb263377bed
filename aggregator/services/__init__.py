# Services module

from .interfaces import (
    UpstreamClientInterface,
    ProgramServiceInterface,
    TrafficMessageServiceInterface
)
from .config_manager import ConfigurationError, load_app_config
from .upstream_client import (
    UpstreamClient,
    UpstreamError,
    UpstreamUnavailableError,
    UpstreamBadResponseError
)
from .program_service import ProgramService, AggregationResult, batched
from .traffic_service import TrafficMessageService
from .mappers import song_to_dto, traffic_message_to_dto

__all__ = [
    "ConfigurationError",
    "load_app_config",
    "UpstreamClientInterface",
    "ProgramServiceInterface",
    "TrafficMessageServiceInterface",
    "UpstreamClient",
    "UpstreamError",
    "UpstreamUnavailableError",
    "UpstreamBadResponseError",
    "ProgramService",
    "AggregationResult",
    "batched",
    "TrafficMessageService",
    "song_to_dto",
    "traffic_message_to_dto"
]
