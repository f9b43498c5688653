"""Shared fixtures for travel atlas tests."""
import httpx
import pytest

from travel_atlas.config import Settings
from travel_atlas.services.cache import TTLCache


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


def make_place(
    name: str,
    place_id: str = None,
    lat: float = 48.8566,
    lng: float = 2.3522,
    types: list = None,
    **extra
) -> dict:
    """A nearby-search result in Google Places shape."""
    place = {
        "name": name,
        "geometry": {"location": {"lat": lat, "lng": lng}},
        "types": types or ["point_of_interest", "establishment"],
        "vicinity": f"{name} street",
    }
    if place_id:
        place["place_id"] = place_id
    place.update(extra)
    return place


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        google_places_api_key="test-places-key",
        llm_api_key="test-llm-key",
        places_base_url="https://places.test/api/place",
        frontend_dir="does-not-exist",
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return TTLCache(ttl_seconds=60, clock=clock)


@pytest.fixture
def mock_http():
    """Build an AsyncClient whose requests are answered by ``handler``."""
    def factory(handler):
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return factory
