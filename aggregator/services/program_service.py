"""Aggregates the currently playing song of every channel in the program index."""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, Iterable, Iterator, List, Optional, Sequence, TypeVar

from aggregator.models.upstream import Channel, ChannelPlaylistResponse, ProgramIndexResponse, Song
from aggregator.services.interfaces import UpstreamClientInterface
from aggregator.services.upstream_client import UpstreamError
from aggregator.utils.logging_config import log_performance_metric


logger = logging.getLogger(__name__)

T = TypeVar("T")

PROGRAM_INDEX_PATH = "/programs/index"
PLAYLIST_RIGHT_NOW_PATH = "/playlists/rightnow"


def batched(items: Iterable[T], size: int) -> Iterator[List[T]]:
    """Split ``items`` into consecutive lists of at most ``size`` elements."""
    if size < 1:
        raise ValueError("batch size must be at least 1")

    batch: List[T] = []
    for item in items:
        batch.append(item)
        if len(batch) == size:
            yield batch
            batch = []
    if batch:
        yield batch


@dataclass
class AggregationResult:
    """Outcome of one aggregation run."""
    songs: List[Song] = field(default_factory=list)
    channel_count: int = 0
    batch_count: int = 0
    failed_channels: List[int] = field(default_factory=list)
    duration: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            'song_count': len(self.songs),
            'channel_count': self.channel_count,
            'batch_count': self.batch_count,
            'failed_channels': self.failed_channels,
            'duration': self.duration
        }


class ProgramService:
    """Fetches the channel index and fans out to each channel's playlist."""

    def __init__(
        self,
        upstream_client: UpstreamClientInterface,
        batch_size: int = 5,
        max_concurrency: int = 5,
        isolate_channel_failures: bool = True
    ):
        """Initialize the program service.

        Args:
            upstream_client: Client used for all upstream requests
            batch_size: Number of channels fetched per batch
            max_concurrency: Maximum number of playlist requests in flight
            isolate_channel_failures: Skip failing channels instead of failing the run
        """
        if batch_size < 1 or max_concurrency < 1:
            raise ValueError("batch_size and max_concurrency must be at least 1")

        self.upstream_client = upstream_client
        self.batch_size = batch_size
        self.max_concurrency = max_concurrency
        self.isolate_channel_failures = isolate_channel_failures

        self._stats = {
            'total_aggregations': 0,
            'failed_aggregations': 0,
            'channel_failures': 0
        }

    async def fetch_channels(self) -> List[Channel]:
        """Fetch the program index and return the channels it references."""
        index = await self.upstream_client.get_json(PROGRAM_INDEX_PATH, ProgramIndexResponse)
        channels = index.channels

        skipped = len(index.programs or []) - len(channels)
        if skipped:
            logger.debug("Skipped programs without a channel", extra={'skipped_programs': skipped})

        return channels

    async def get_song_by_channel(self, channel: Channel) -> Optional[Song]:
        """Fetch the available song for a single channel, if any."""
        response = await self.upstream_client.get_json(
            PLAYLIST_RIGHT_NOW_PATH,
            ChannelPlaylistResponse,
            params={"channelid": channel.id}
        )
        return response.available_song

    async def iter_songs(self, result: Optional[AggregationResult] = None) -> AsyncIterator[Song]:
        """Yield the available song of every channel as each fetch completes.

        Channels are processed in batches of ``batch_size``; within a batch at
        most ``max_concurrency`` playlist requests are in flight. Songs come
        out in completion order, not index order.

        Args:
            result: Optional result object updated with channel, batch and
                failure counts while iterating

        Raises:
            UpstreamError: If the index fetch fails, or a channel fetch fails
                while channel failures are not isolated
        """
        if result is None:
            result = AggregationResult()

        channels = await self.fetch_channels()
        result.channel_count = len(channels)

        semaphore = asyncio.Semaphore(self.max_concurrency)
        for batch in batched(channels, self.batch_size):
            result.batch_count += 1
            logger.debug("Fetching playlist batch", extra={
                'batch_number': result.batch_count,
                'channel_ids': [channel.id for channel in batch]
            })
            batch_songs = self._fetch_batch(batch, semaphore, result)
            try:
                async for song in batch_songs:
                    yield song
            finally:
                await batch_songs.aclose()

    async def aggregate_songs_from_all_channels(self) -> AggregationResult:
        """Collect the available song of every channel.

        Returns:
            AggregationResult with the songs and run statistics
        """
        self._stats['total_aggregations'] += 1
        result = AggregationResult()
        start_time = time.perf_counter()

        try:
            async for song in self.iter_songs(result):
                result.songs.append(song)
        except Exception as e:
            self._stats['failed_aggregations'] += 1
            logger.error("Song aggregation failed", extra={
                'error_type': type(e).__name__,
                'error_message': str(e),
                'channel_count': result.channel_count,
                'batch_count': result.batch_count
            })
            raise

        result.duration = time.perf_counter() - start_time
        logger.info("Song aggregation complete", extra=result.to_dict())
        log_performance_metric(
            component='program_service',
            operation='aggregate_songs',
            duration=result.duration,
            channel_count=result.channel_count,
            batch_count=result.batch_count
        )
        return result

    async def _fetch_channel_song(self, channel: Channel, semaphore: asyncio.Semaphore) -> Optional[Song]:
        async with semaphore:
            return await self.get_song_by_channel(channel)

    async def _fetch_batch(
        self,
        batch: Sequence[Channel],
        semaphore: asyncio.Semaphore,
        result: AggregationResult
    ) -> AsyncIterator[Song]:
        """Fetch one batch concurrently and yield songs in completion order."""
        pending = {
            asyncio.create_task(self._fetch_channel_song(channel, semaphore)): channel
            for channel in batch
        }

        try:
            while pending:
                done, _ = await asyncio.wait(set(pending), return_when=asyncio.FIRST_COMPLETED)
                for task in done:
                    channel = pending.pop(task)
                    try:
                        song = task.result()
                    except UpstreamError as e:
                        self._stats['channel_failures'] += 1
                        if not self.isolate_channel_failures:
                            raise

                        result.failed_channels.append(channel.id)
                        logger.warning("Skipping channel after playlist fetch failed", extra={
                            'channel_id': channel.id,
                            'error_type': e.error_type,
                            'error_message': str(e)
                        })
                        continue

                    if song is not None:
                        yield song
        finally:
            # Abandoned on error or early exit; don't leave requests running
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

    def get_statistics(self) -> Dict[str, Any]:
        """Get aggregation counters and settings."""
        return {
            **self._stats,
            'batch_size': self.batch_size,
            'max_concurrency': self.max_concurrency,
            'isolate_channel_failures': self.isolate_channel_failures
        }
