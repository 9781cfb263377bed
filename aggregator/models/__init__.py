# Models module

from .config import AppConfig
from .api import SongDto, TrafficMessageDto, HealthResponse, StatusResponse, ErrorResponse
from .upstream import (
    Channel,
    Program,
    ProgramIndexResponse,
    Song,
    Playlist,
    ChannelPlaylistResponse,
    TrafficMessage,
    TrafficResponse
)

__all__ = [
    "AppConfig",
    "SongDto",
    "TrafficMessageDto",
    "HealthResponse",
    "StatusResponse",
    "ErrorResponse",
    "Channel",
    "Program",
    "ProgramIndexResponse",
    "Song",
    "Playlist",
    "ChannelPlaylistResponse",
    "TrafficMessage",
    "TrafficResponse"
]
