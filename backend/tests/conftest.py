"""
Shared fixtures for the GuardianAI backend tests.

Every test runs with provider keys blanked, an empty in-memory store wired
into the app, cleared provider caches and no rate limiting.
"""

import numpy as np
import pytest
from fastapi.testclient import TestClient

import cache
import data_fetchers
import gemini
import route_analysis
import routes
from routes import app
from store import InMemoryStore, StoreError, get_store


@pytest.fixture(autouse=True)
def offline_providers(monkeypatch):
    """Blank every provider key so nothing reaches the network."""
    monkeypatch.setattr(route_analysis, "GOOGLE_MAPS_API_KEY", "")
    monkeypatch.setattr(route_analysis, "GEMINI_API_KEY", "")
    monkeypatch.setattr(data_fetchers, "GOOGLE_MAPS_API_KEY", "")
    monkeypatch.setattr(gemini, "GEMINI_API_KEY", "")
    monkeypatch.setattr(routes, "GOOGLE_MAPS_API_KEY", "")
    monkeypatch.setattr(routes, "MAPBOX_PUBLIC_TOKEN", "")
    monkeypatch.setattr(routes, "RATE_LIMIT", 0)
    routes._rate_store.clear()
    cache.clear_all()
    yield


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def seeded_rng():
    """Factory for reproducible jitter."""
    def _make(seed: int = 7) -> np.random.Generator:
        return np.random.default_rng(seed)
    return _make


class FailingStore(InMemoryStore):
    """Reads work; every write raises."""

    async def insert(self, table, row):
        raise StoreError(f"insert into {table} refused")

    async def update(self, table, row_id, values):
        raise StoreError(f"update of {table} refused")


class BrokenStore(InMemoryStore):
    """Every operation raises."""

    async def select(self, table, filters=None, order_by=None, descending=False, limit=None):
        raise StoreError("connection refused")

    async def insert(self, table, row):
        raise StoreError("connection refused")

    async def update(self, table, row_id, values):
        raise StoreError("connection refused")


@pytest.fixture
def failing_store():
    return FailingStore()


@pytest.fixture
def broken_store():
    return BrokenStore()


@pytest.fixture
def sample_directions():
    """Normalised fetch_directions() result for a short daytime trip."""
    return {
        "summary": "SV Road",
        "duration": "25 mins",
        "duration_seconds": 1500,
        "distance": "8.2 km",
        "distance_meters": 8200,
        "start_location": {"lat": 19.0596, "lng": 72.8295},
        "end_location": {"lat": 19.1136, "lng": 72.8697},
        "points": [[19.0596, 72.8295], [19.1136, 72.8697]],
    }
