"""Configuration data models for the radio and traffic aggregator API."""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AppConfig(BaseModel):
    """Application configuration model."""

    model_config = ConfigDict(frozen=True)

    upstream_base_url: str = Field(
        default="https://api.sr.se/api/v2",
        description="Base URL of the upstream programs/traffic API"
    )
    upstream_timeout_seconds: float = Field(
        default=10.0, gt=0, description="Timeout for a single upstream request"
    )
    batch_size: int = Field(default=5, ge=1, description="Channels per fan-out batch")
    max_concurrency: int = Field(
        default=5, ge=1, description="Maximum in-flight playlist requests"
    )
    isolate_channel_failures: bool = Field(
        default=True,
        description="Skip channels whose playlist fetch fails instead of failing the request"
    )
    port: int = Field(default=8000, ge=1, le=65535, description="API server port")

    @field_validator('upstream_base_url')
    @classmethod
    def validate_upstream_base_url(cls, v: str) -> str:
        """Validate the upstream base URL format."""
        if not v.startswith(('http://', 'https://')):
            raise ValueError("Upstream base URL must start with http:// or https://")
        return v.rstrip('/')
