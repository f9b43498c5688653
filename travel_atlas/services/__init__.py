"""Services for the travel atlas backend."""
from dataclasses import dataclass
from typing import Optional

import httpx

from .cache import TTLCache
from .itinerary import ItineraryNarrator
from .llm_client import LLMClient
from .osm_client import OpenStreetMapClient
from .place_details import PlaceDetailsFetcher
from .place_search import PlaceSearchAggregator
from .places_client import GooglePlacesClient
from .recommendation import RecommendationEngine
from ..config import Settings


@dataclass
class Services:
    """Everything the routes need, built once per application."""
    cache: TTLCache
    places: GooglePlacesClient
    details: PlaceDetailsFetcher
    search: PlaceSearchAggregator
    recommendations: RecommendationEngine
    itinerary: ItineraryNarrator
    osm: OpenStreetMapClient
    http_client: Optional[httpx.AsyncClient] = None
    llm: Optional[LLMClient] = None

    async def aclose(self) -> None:
        if self.http_client is not None:
            await self.http_client.aclose()
        if self.llm is not None:
            await self.llm.aclose()


def build_services(
    settings: Settings,
    http_client: Optional[httpx.AsyncClient] = None,
    llm: Optional[LLMClient] = None,
    cache: Optional[TTLCache] = None
) -> Services:
    """Construct the service graph; the caller owns its lifecycle."""
    http_client = http_client or httpx.AsyncClient(timeout=settings.request_timeout_seconds)
    if cache is None:
        cache = TTLCache(ttl_seconds=settings.cache_ttl_seconds)
    llm = llm or LLMClient(settings)

    places = GooglePlacesClient(settings, http_client)
    details = PlaceDetailsFetcher(places, cache, settings.public_base_url)
    return Services(
        cache=cache,
        places=places,
        details=details,
        search=PlaceSearchAggregator(places, details, cache, settings.public_base_url),
        recommendations=RecommendationEngine(llm),
        itinerary=ItineraryNarrator(llm),
        osm=OpenStreetMapClient(settings, http_client, cache),
        http_client=http_client,
        llm=llm,
    )


__all__ = [
    "Services",
    "build_services",
    "TTLCache",
    "GooglePlacesClient",
    "PlaceDetailsFetcher",
    "PlaceSearchAggregator",
    "LLMClient",
    "RecommendationEngine",
    "ItineraryNarrator",
    "OpenStreetMapClient",
]
