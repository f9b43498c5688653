"""Tests for the place details fetcher."""
from unittest.mock import AsyncMock

import pytest

from travel_atlas.errors import UpstreamDenied, UpstreamTransportFailure
from travel_atlas.models.landmark import EnrichmentLevel
from travel_atlas.services.place_details import PlaceDetailsFetcher
from travel_atlas.services.places_client import GooglePlacesClient


LOUVRE_PAYLOAD = {
    "status": "OK",
    "result": {
        "place_id": "louvre",
        "name": "Musée du Louvre",
        "formatted_address": "75001 Paris",
        "geometry": {"location": {"lat": 48.8606, "lng": 2.3376}},
        "rating": 4.7,
        "types": ["museum"],
    },
}


def make_fetcher(cache, payload=None, error=None):
    client = AsyncMock(spec=GooglePlacesClient)
    if error is not None:
        client.place_details.side_effect = error
    else:
        client.place_details.return_value = payload
    return PlaceDetailsFetcher(client, cache), client


class TestPlaceDetailsFetcher:
    """Test cached, non-raising details lookups."""

    @pytest.mark.asyncio
    async def test_success_is_cached(self, cache):
        """A successful lookup is served from cache the second time."""
        fetcher, client = make_fetcher(cache, LOUVRE_PAYLOAD)

        first = await fetcher.fetch("louvre")
        second = await fetcher.fetch("louvre")

        assert first.available
        assert first.details.name == "Musée du Louvre"
        assert second.details == first.details
        client.place_details.assert_awaited_once_with("louvre")

    @pytest.mark.asyncio
    async def test_cache_expiry_refetches(self, cache, clock):
        """After the TTL the upstream is asked again."""
        fetcher, client = make_fetcher(cache, LOUVRE_PAYLOAD)
        await fetcher.fetch("louvre")
        clock.advance(61)
        await fetcher.fetch("louvre")
        assert client.place_details.await_count == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        UpstreamTransportFailure("timeout"),
        UpstreamDenied("bad key"),
    ])
    async def test_upstream_errors_are_unavailable(self, cache, error):
        """Upstream failures become an unavailable result, not an exception."""
        fetcher, _ = make_fetcher(cache, error=error)
        outcome = await fetcher.fetch("louvre")
        assert not outcome.available
        assert outcome.reason

    @pytest.mark.asyncio
    async def test_not_found_is_unavailable_and_not_cached(self, cache):
        """Non-OK statuses are unavailable and leave the cache empty."""
        fetcher, _ = make_fetcher(cache, {"status": "NOT_FOUND"})
        outcome = await fetcher.fetch("ghost")
        assert not outcome.available
        assert outcome.reason == "NOT_FOUND"
        assert len(cache) == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("place_id", ["", "   ", "place-old-mill-45.1-7.0"])
    async def test_blank_and_synthetic_ids_skip_upstream(self, cache, place_id):
        """Ids without an upstream identity never hit the API."""
        fetcher, client = make_fetcher(cache, LOUVRE_PAYLOAD)
        outcome = await fetcher.fetch(place_id)
        assert not outcome.available
        client.place_details.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_fetch_landmark_enriched(self, cache):
        """A resolvable id becomes an enriched landmark."""
        fetcher, _ = make_fetcher(cache, LOUVRE_PAYLOAD)
        landmark = await fetcher.fetch_landmark("louvre")
        assert landmark.id == "louvre"
        assert landmark.enrichment == EnrichmentLevel.ENRICHED
        assert landmark.coordinates.lat == 48.8606
        assert landmark.description == "75001 Paris"

    @pytest.mark.asyncio
    async def test_fetch_landmark_unknown_id_returns_placeholder(self, cache):
        """A malformed id yields the placeholder instead of raising."""
        fetcher, _ = make_fetcher(cache, {"status": "INVALID_REQUEST"})
        landmark = await fetcher.fetch_landmark("%%%not-an-id")
        assert landmark.id == "%%%not-an-id"
        assert landmark.name == "Unknown Place"
        assert landmark.enrichment == EnrichmentLevel.UNAVAILABLE
