"""
Pytest configuration and fixtures for Alexzo API tests.
"""
from typing import Callable, Dict, List

import httpx
import pytest
from fastapi.testclient import TestClient

from alexzo.core.config import Settings
from alexzo.core.errors import AuthenticationError
from alexzo.core.security import Identity
from alexzo.keys import InMemoryKeyStore, IssuedKey
from alexzo.main import create_app
from alexzo.ratelimit import RateLimitConfig, RateLimiter

ALICE_KEY = "alexzo_" + "a" * 26
BOB_KEY = "alexzo_" + "b" * 26


class FakeClock:
    """Manually advanced time source for the rate limiter"""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class StubVerifier:
    """Identity verifier mapping fixed tokens to users"""

    def __init__(self, identities: Dict[str, Identity]):
        self.identities = identities

    async def verify(self, token: str) -> Identity:
        identity = self.identities.get(token)
        if identity is None:
            raise AuthenticationError("Unauthorized")
        return identity


class RecordingKeyStore(InMemoryKeyStore):
    """In-memory store that records which methods were called"""

    def __init__(self):
        super().__init__()
        self.calls: List[str] = []

    async def get(self, key):
        self.calls.append("get")
        return await super().get(key)

    async def record_usage(self, key, endpoint):
        self.calls.append("record_usage")
        return await super().record_usage(key, endpoint)


class Upstream:
    """Programmable stand-in for outbound HTTP services"""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.handler: Callable[[httpx.Request], httpx.Response] = (
            lambda request: httpx.Response(200, json={"results": []})
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings isolated from the environment: memory key store, temp SQLite."""
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'alexzo-test.db'}",
        KEY_STORE_BACKEND="memory",
        FIREBASE_PROJECT_ID=None,
        SEARCH_UPSTREAM_URL="https://search.example.test",
        IMAGE_UPSTREAM_URL="https://image.example.test/prompt",
        LOG_FORMAT="console",
    )


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rate_limiter(fake_clock) -> RateLimiter:
    return RateLimiter(RateLimitConfig(limit=15, window_seconds=60), clock=fake_clock)


@pytest.fixture
def key_store() -> RecordingKeyStore:
    return RecordingKeyStore()


@pytest.fixture
def verifier() -> StubVerifier:
    return StubVerifier({
        "token-alice": Identity(uid="alice", name="Alice", email="alice@example.com"),
        "token-bob": Identity(uid="bob", name="Bob", email="bob@example.com"),
    })


@pytest.fixture
def upstream() -> Upstream:
    return Upstream()


@pytest.fixture
def http_client(upstream) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(upstream))


@pytest.fixture
def app(settings, key_store, verifier, http_client, rate_limiter):
    return create_app(
        settings,
        key_store=key_store,
        identity_verifier=verifier,
        http_client=http_client,
        rate_limiter=rate_limiter,
    )


@pytest.fixture
def client(app) -> TestClient:
    """Test client running the application lifespan."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
async def async_client(app):
    """Async client against the app, for tests that await background work."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


@pytest.fixture
async def alice_key(key_store) -> IssuedKey:
    issued = IssuedKey(key=ALICE_KEY, user_id="alice", user_name="Alice", name="Alice key")
    await key_store.create(issued)
    key_store.calls.clear()
    return issued


@pytest.fixture
def alice_auth() -> Dict[str, str]:
    return {"Authorization": "Bearer token-alice"}


@pytest.fixture
def bob_auth() -> Dict[str, str]:
    return {"Authorization": "Bearer token-bob"}
