"""Pytest configuration and fixtures."""

import pytest

from smsgate.domain.models import GateConfig
from smsgate.domain.services.gatekeeper import Gatekeeper
from smsgate.infrastructure.memory_store import InMemoryStore

# 2025-10-09T08:55:00Z, aligned to both the 60s burst and 300s flood windows
START_SECONDS = 1_760_000_100

GUEST = "+15551234567"


class FakeClock:
    """Controllable clock shared by the store (TTLs) and the pipeline (now_ms)."""

    def __init__(self, start: float = START_SECONDS) -> None:
        self.now = float(start)

    def __call__(self) -> float:
        return self.now

    @property
    def ms(self) -> int:
        return int(self.now * 1000)

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock) -> InMemoryStore:
    """In-memory counter store driven by the fake clock."""
    return InMemoryStore(clock=clock)


@pytest.fixture
def config() -> GateConfig:
    return GateConfig(
        secret_text="Thanks! Here's the wedding site password: PASSWORD",
        help_text="Wedding info SMS helper. Reply STOP to opt out.",
        fallback_text="We couldn't match this number to our guest list.",
        timezone="America/Los_Angeles",
    )


@pytest.fixture
def gatekeeper(store, config) -> Gatekeeper:
    return Gatekeeper(store, config)


@pytest.fixture
async def whitelisted_store(store) -> InMemoryStore:
    await store.sadd("whitelist", GUEST)
    return store


@pytest.fixture
def api_client(store, config):
    """Create a test FastAPI client backed by the in-memory store."""
    from fastapi.testclient import TestClient

    from smsgate.api.deps import get_counter_store, get_gate_config
    from smsgate.main import app

    app.dependency_overrides[get_counter_store] = lambda: store
    app.dependency_overrides[get_gate_config] = lambda: config

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
