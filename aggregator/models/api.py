"""API response models for the radio and traffic aggregator."""

from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field


class SongDto(BaseModel):
    """Public representation of a song."""

    title: Optional[str] = Field(None, description="Song title")
    description: Optional[str] = Field(None, description="Free-text description")
    artist: Optional[str] = Field(None, description="Performing artist")
    composer: Optional[str] = Field(None, description="Composer")
    recordlabel: Optional[str] = Field(None, description="Record label")


class TrafficMessageDto(BaseModel):
    """Public representation of a traffic message."""

    id: int = Field(..., description="Upstream message identifier")
    title: Optional[str] = Field(None, description="Message title")
    description: Optional[str] = Field(None, description="Message body")
    category: Optional[str] = Field(None, description="Message category")
    priority: int = Field(..., description="Message priority")


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str = Field(..., description="Health status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="Application version")


class StatusResponse(BaseModel):
    """Response model for the status endpoint."""

    timestamp: datetime = Field(..., description="Current timestamp")
    service_status: str = Field(..., description="Service status")
    upstream_base_url: str = Field(..., description="Configured upstream base URL")
    statistics: Dict[str, Any] = Field(default_factory=dict, description="Service statistics")


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    details: Optional[str] = Field(None, description="Additional error details")
