import asyncio
from dataclasses import dataclass, field
from typing import Any, Callable

import httpx
import pytest

from recipe_data.cache import TTLCacheStore
from recipe_data.client import RecipeClient
from recipe_data.config import Config
from recipe_data.coordinator import FetchCoordinator
from recipe_data.preferences import MemoryPreferenceStore
from recipe_data.server import create_server

Responder = Callable[[httpx.Request], httpx.Response]


@dataclass
class MockAPI:
    responses: dict[str, Responder] = field(default_factory=dict)
    calls: list[httpx.Request] = field(default_factory=list)

    def add_json(self, path: str, payload: Any, status_code: int = 200) -> None:
        def responder(_: httpx.Request) -> httpx.Response:
            return httpx.Response(status_code=status_code, json=payload)

        self.responses[path] = responder

    def add_responder(self, path: str, responder: Responder) -> None:
        self.responses[path] = responder

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        responder = self.responses.get(request.url.path)
        if responder is None:
            raise AssertionError(f'Unexpected request to {request.url.path}')
        return responder(request)


class Clock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@dataclass
class FakeSource:
    """In-memory data source with scripted responses and optional gates."""

    collection_response: Any = field(default_factory=list)
    item_responses: dict[str, Any] = field(default_factory=dict)
    collection_calls: list[dict[str, Any]] = field(default_factory=list)
    item_calls: list[str] = field(default_factory=list)
    gates: dict[str, asyncio.Event] = field(default_factory=dict)

    async def get_collection(self, params):
        self.collection_calls.append(dict(params))
        gate = self.gates.get(str(params.get('category')))
        if gate is not None:
            await gate.wait()
        response = self.collection_response
        if callable(response):
            response = response(params)
        if isinstance(response, Exception):
            raise response
        return response

    async def get_by_id(self, recipe_id):
        self.item_calls.append(recipe_id)
        gate = self.gates.get(recipe_id)
        if gate is not None:
            await gate.wait()
        response = self.item_responses.get(recipe_id)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def config() -> Config:
    return Config(
        base_url='https://example.test',
        api_token=None,
        user_agent='pytest-agent',
        timeout=5.0,
        cache_ttl=60.0,
        entity_cache_ttl=60.0,
        max_retries=3,
        retry_base_delay=0.1,  # Fast for tests
        retry_max_delay=1.0,  # Fast for tests
        connection_pool_maxsize=10,
        connection_pool_max_keepalive=5,
    )


@pytest.fixture
def mock_api() -> tuple[MockAPI, httpx.MockTransport]:
    api = MockAPI()
    transport = httpx.MockTransport(api.handler)
    return api, transport


@pytest.fixture
def recipe_client(config: Config, mock_api: tuple[MockAPI, httpx.MockTransport]) -> RecipeClient:
    _, transport = mock_api
    return RecipeClient(config, transport=transport)


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def source() -> FakeSource:
    return FakeSource()


@pytest.fixture
def coordinator(source: FakeSource, clock: Clock) -> FetchCoordinator:
    return FetchCoordinator(
        source,
        collections=TTLCacheStore(clock),
        entities=TTLCacheStore(clock),
    )


@pytest.fixture
def preferences() -> MemoryPreferenceStore:
    return MemoryPreferenceStore()


@pytest.fixture
def recipe_server(
    config: Config,
    mock_api: tuple[MockAPI, httpx.MockTransport],
    preferences: MemoryPreferenceStore,
):
    _, transport = mock_api
    return create_server(config=config, transport=transport, preferences=preferences)
