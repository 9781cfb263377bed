"""Shared fixtures: a fake upstream API mocked with respx."""

import asyncio
import os
from typing import Any, Dict, List, Optional

# Keep test runs from writing rotating log files; must happen before main is imported
os.environ.setdefault("APP_LOG_TO_FILE", "false")

import httpx
import pytest
import respx

from aggregator.models.config import AppConfig
from aggregator.services.upstream_client import UpstreamClient
from aggregator.utils.performance_monitor import PerformanceMonitor


UPSTREAM_BASE_URL = "http://upstream.test/api/v2"
UPSTREAM_HOST = "upstream.test"
UPSTREAM_PREFIX = "/api/v2"


def make_song(title: str, **fields: Any) -> Dict[str, Any]:
    """Build an upstream song payload."""
    song = {
        "title": title,
        "description": f"{title} description",
        "artist": f"{title} artist",
        "composer": f"{title} composer",
        "recordlabel": f"{title} label",
    }
    song.update(fields)
    return song


def make_index(channel_ids: List[int]) -> Dict[str, Any]:
    """Build an upstream program index payload."""
    return {
        "programs": [
            {"id": 1000 + channel_id, "name": f"Program {channel_id}",
             "channel": {"id": channel_id, "name": f"P{channel_id}"}}
            for channel_id in channel_ids
        ],
        "pagination": {"page": 1, "size": 10, "totalhits": len(channel_ids)},
    }


class FakeUpstream:
    """In-memory stand-in for the upstream programs/traffic API, served through respx routes.

    Payloads may be dicts (served as JSON), ``httpx.Response`` objects, or
    exception instances (raised in place of a response).
    """

    def __init__(self, router: respx.MockRouter, delay: float = 0.0):
        self.delay = delay
        self.index: Any = make_index([])
        self.playlists: Dict[int, Any] = {}
        self.traffic: Any = {"messages": []}
        self.requests: List[httpx.Request] = []
        self.in_flight = 0
        self.max_in_flight = 0

        router.get(host=UPSTREAM_HOST, path=f"{UPSTREAM_PREFIX}/programs/index").mock(
            side_effect=self._serve_index
        )
        router.get(host=UPSTREAM_HOST, path=f"{UPSTREAM_PREFIX}/playlists/rightnow").mock(
            side_effect=self._serve_playlist
        )
        router.get(host=UPSTREAM_HOST, path=f"{UPSTREAM_PREFIX}/traffic/messages").mock(
            side_effect=self._serve_traffic
        )

    @property
    def playlist_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith("/playlists/rightnow")]

    async def _serve_index(self, request: httpx.Request) -> httpx.Response:
        return await self._respond(request, self.index)

    async def _serve_playlist(self, request: httpx.Request) -> httpx.Response:
        channel_id = int(request.url.params["channelid"])
        return await self._respond(request, self.playlists.get(channel_id, {"playlist": {}}))

    async def _serve_traffic(self, request: httpx.Request) -> httpx.Response:
        return await self._respond(request, self.traffic)

    async def _respond(self, request: httpx.Request, payload: Any) -> httpx.Response:
        self.requests.append(request)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        finally:
            self.in_flight -= 1

        if isinstance(payload, Exception):
            raise payload
        if isinstance(payload, httpx.Response):
            return payload
        return httpx.Response(200, json=payload)


@pytest.fixture
def fake_upstream():
    """Mock the upstream API host with an empty fake."""
    with respx.mock(assert_all_called=False) as router:
        yield FakeUpstream(router)


@pytest.fixture
def app_config():
    """Create an AppConfig pointing at the fake upstream."""
    return AppConfig(upstream_base_url=UPSTREAM_BASE_URL, upstream_timeout_seconds=5.0)


@pytest.fixture
def performance_monitor():
    """Create a PerformanceMonitor."""
    return PerformanceMonitor()


@pytest.fixture
def upstream_client(app_config, fake_upstream, performance_monitor):
    """Create an UpstreamClient wired to the fake upstream."""
    return UpstreamClient(app_config, performance_monitor=performance_monitor)


def connection_refused(path: str = "/") -> httpx.ConnectError:
    """Build the error httpx raises when the upstream host refuses connections."""
    return httpx.ConnectError(
        "Connection refused",
        request=httpx.Request("GET", UPSTREAM_BASE_URL + path)
    )


def server_error(status_code: int = 500, body: Optional[str] = None) -> httpx.Response:
    return httpx.Response(status_code, text=body or "upstream failure")
