"""
Place Details Fetcher - Cached place detail lookups that never raise.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from .cache import TTLCache
from .places_client import GooglePlacesClient
from ..errors import TravelAtlasError
from ..models.landmark import Coordinates, Landmark, PlaceDetails, is_synthetic_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DetailsResult:
    """Outcome of a details lookup: available details, or the reason they are not."""
    place_id: str
    details: Optional[PlaceDetails] = None
    reason: str = ""

    @property
    def available(self) -> bool:
        return self.details is not None

    @classmethod
    def unavailable(cls, place_id: str, reason: str) -> "DetailsResult":
        return cls(place_id=place_id, reason=reason)


class PlaceDetailsFetcher:
    """Resolves a place id to normalized details through the shared cache."""

    def __init__(self, client: GooglePlacesClient, cache: TTLCache, public_base_url: str = ""):
        self.client = client
        self.cache = cache
        self.public_base_url = public_base_url

    @staticmethod
    def cache_key(place_id: str) -> str:
        return f"details:{place_id}"

    async def fetch(self, place_id: str) -> DetailsResult:
        """
        Look up a place.

        Synthetic and blank ids are unavailable without an upstream call.
        Any upstream problem yields an unavailable result instead of an error.
        """
        place_id = (place_id or "").strip()
        if not place_id:
            return DetailsResult.unavailable(place_id, "Place ID is required")
        if is_synthetic_id(place_id):
            logger.warning(f"Skipping details fetch for synthetic ID: {place_id}")
            return DetailsResult.unavailable(place_id, "No upstream identifier")

        cached = self.cache.get(self.cache_key(place_id))
        if cached is not None:
            return DetailsResult(place_id=place_id, details=cached)

        try:
            payload = await self.client.place_details(place_id)
        except TravelAtlasError as e:
            logger.warning(f"Details unavailable for {place_id}: {e}")
            return DetailsResult.unavailable(place_id, str(e))

        result = payload.get("result")
        if payload.get("status") != "OK" or not result:
            logger.warning(f"No place details found for ID {place_id} (status={payload.get('status')})")
            return DetailsResult.unavailable(place_id, payload.get("status") or "No result")

        try:
            details = PlaceDetails.from_upstream(place_id, result)
        except ValueError as e:
            logger.warning(f"Malformed details for {place_id}: {e}")
            return DetailsResult.unavailable(place_id, "Malformed details")
        self.cache.set(self.cache_key(place_id), details)
        return DetailsResult(place_id=place_id, details=details)

    async def fetch_landmark(self, place_id: str, category: str = "point_of_interest") -> Landmark:
        """Details as a landmark, or the placeholder landmark when unavailable."""
        outcome = await self.fetch(place_id)
        if not outcome.available:
            return Landmark.unavailable(place_id, category)

        details = outcome.details
        basic = Landmark(
            id=details.place_id,
            name=details.name,
            coordinates=details.coordinates or Coordinates(lat=0, lng=0),
            category=category,
            estimated_visit_days=1,
            place_id=details.place_id,
        )
        return basic.enrich(details, self.public_base_url)
