"""Shared test helpers: a fake clock and a scripted VNDB transport."""

import json
from typing import Any

import httpx
import pytest

from vndb_provider.services.http_client import RetryPolicy, VndbHttpClient
from vndb_provider.services.provider import VndbMetadataProvider
from vndb_provider.services.rate_limiter import SlidingWindowRateLimiter


class FakeClock:
    """Monotonic clock that only moves when something sleeps on it."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += max(seconds, 0.0)

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedTransport:
    """Replays queued responses and records the requests it received."""

    def __init__(self, *responses: httpx.Response | Exception) -> None:
        self._responses = list(responses)
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self._responses:
            raise AssertionError("Unexpected extra request")
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def payloads(self) -> list[dict[str, Any]]:
        return [json.loads(request.content) for request in self.requests]


def json_response(data: Any, status_code: int = 200, headers: dict[str, str] | None = None) -> httpx.Response:
    return httpx.Response(status_code, json=data, headers=headers)


def text_response(text: str, status_code: int = 200, headers: dict[str, str] | None = None) -> httpx.Response:
    return httpx.Response(status_code, text=text, headers=headers)


def make_record(
    vn_id: str = "v4",
    title: str | None = "Clannad",
    image_url: str | None = "https://t.vndb.org/cv/31/51931.jpg",
    **extra: Any,
) -> dict[str, Any]:
    """Build a raw VNDB record the way the API returns it."""
    record: dict[str, Any] = {
        "id": vn_id,
        "title": title,
        "image": {"url": image_url} if image_url is not None else None,
        "released": "2004-04-28",
        "description": "A story about a town and a family.",
        "rating": 88.7,
        "length_minutes": 4200,
        "devstatus": 0,
        "screenshots": [{"url": "https://t.vndb.org/sf/12/1234.jpg"}],
        "developers": [{"id": "p24", "name": "Key"}],
        "tags": [{"id": "g32", "name": "Drama"}, {"id": "g133", "name": "School Life"}],
        "extlinks": [{"url": "https://key.visualarts.gr.jp/"}],
    }
    record.update(extra)
    return record


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_client(clock: FakeClock):
    """Factory for an HTTP client wired to a scripted transport and the fake clock."""
    created: list[VndbHttpClient] = []

    def factory(scripted: ScriptedTransport, retry_policy: RetryPolicy | None = None) -> VndbHttpClient:
        limiter = SlidingWindowRateLimiter(clock=clock, sleep=clock.sleep)
        client = VndbHttpClient(
            rate_limiter=limiter,
            retry_policy=retry_policy,
            transport=scripted.transport,
            sleep=clock.sleep,
        )
        created.append(client)
        return client

    return factory


@pytest.fixture
def make_provider(make_client):
    """Factory for a provider whose HTTP traffic is scripted."""

    def factory(scripted: ScriptedTransport, image_fetcher: Any = None) -> VndbMetadataProvider:
        return VndbMetadataProvider(make_client(scripted), image_fetcher=image_fetcher)

    return factory
