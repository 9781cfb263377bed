"""Base interfaces for service classes."""

from typing import Any, Dict, List, Optional, Protocol, Type, TypeVar

from pydantic import BaseModel

from aggregator.models.upstream import TrafficMessage

ModelT = TypeVar("ModelT", bound=BaseModel)


class UpstreamClientInterface(Protocol):
    """Interface for fetching typed documents from the upstream API."""

    async def get_json(
        self,
        path: str,
        model: Type[ModelT],
        params: Optional[Dict[str, object]] = None
    ) -> ModelT:
        """GET a path relative to the upstream base URL and decode it into ``model``."""
        ...

    async def aclose(self) -> None:
        """Release network resources."""
        ...


class ProgramServiceInterface(Protocol):
    """Interface for song aggregation across channels."""

    async def aggregate_songs_from_all_channels(self) -> Any:
        """Collect the available song of every channel."""
        ...

    def get_statistics(self) -> Dict[str, Any]:
        """Get aggregation statistics."""
        ...


class TrafficMessageServiceInterface(Protocol):
    """Interface for traffic message retrieval."""

    async def get_latest_messages(self) -> List[TrafficMessage]:
        """Fetch the current traffic messages."""
        ...
