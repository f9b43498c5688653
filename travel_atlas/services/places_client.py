"""
Google Places client.
Handles nearby search, place details and photo downloads over httpx.
"""
import httpx
import logging
from typing import Optional

from ..config import Settings, require_places_key
from ..errors import UpstreamDenied, UpstreamTransportFailure
from ..models.activity_catalog import QuerySpec
from ..models.landmark import Coordinates

logger = logging.getLogger(__name__)

MAX_RADIUS_METERS = 50000

DETAILS_FIELDS = (
    "place_id,name,formatted_address,vicinity,geometry,rating,price_level,"
    "user_ratings_total,types,photos,reviews,website,international_phone_number,"
    "formatted_phone_number,opening_hours"
)

STATUS_OK = "OK"
STATUS_ZERO_RESULTS = "ZERO_RESULTS"
DENIED_STATUSES = {"REQUEST_DENIED", "OVER_QUERY_LIMIT", "OVER_DAILY_LIMIT"}


def clamp_radius(radius: Optional[float]) -> int:
    """Clamp a radius to the provider's 1..50 000 m range."""
    if radius is None or radius <= 0:
        return MAX_RADIUS_METERS
    return int(min(radius, MAX_RADIUS_METERS))


class GooglePlacesClient:
    """Thin async client for the Places web service."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self.settings = settings
        self.base_url = settings.places_base_url.rstrip("/")
        self.http = http_client

    async def nearby_search(
        self,
        center: Coordinates,
        radius: float,
        query: QuerySpec
    ) -> list[dict]:
        """
        Run one nearby search.

        Returns:
            Raw result objects in upstream relevance order; empty on ZERO_RESULTS.

        Raises:
            ConfigurationError: no API key configured
            UpstreamDenied: REQUEST_DENIED or quota statuses
            UpstreamTransportFailure: network errors, non-2xx, other statuses
        """
        params = {
            "key": require_places_key(self.settings),
            "location": center.as_query(),
            "radius": clamp_radius(radius),
            "type": query.place_type,
        }
        if query.keyword:
            params["keyword"] = query.keyword

        logger.debug(
            f"Nearby search type={query.place_type} keyword={query.keyword!r} "
            f"at {center.as_query()} radius={params['radius']}"
        )
        data = await self._get_json("/nearbysearch/json", params)
        status = data.get("status")

        if status == STATUS_ZERO_RESULTS:
            logger.info(f"No results for type={query.place_type} keyword={query.keyword!r}")
            return []
        self._raise_for_status(status, data)
        return data.get("results") or []

    async def place_details(self, place_id: str) -> dict:
        """
        Fetch the raw details payload (``{result, status, ...}``) for a place.

        Raises the same errors as ``nearby_search``; a NOT_FOUND or INVALID_REQUEST
        status is returned as-is for the caller to interpret.
        """
        params = {
            "key": require_places_key(self.settings),
            "place_id": place_id,
            "fields": DETAILS_FIELDS,
        }
        data = await self._get_json("/details/json", params)
        status = data.get("status")
        if status in DENIED_STATUSES:
            self._raise_for_status(status, data)
        return data

    async def photo(self, photo_reference: str, max_width: int = 400) -> tuple[bytes, str]:
        """Download a place photo; returns the bytes and upstream content type."""
        params = {
            "key": require_places_key(self.settings),
            "photo_reference": photo_reference,
            "maxwidth": max_width,
        }
        try:
            response = await self.http.get(
                f"{self.base_url}/photo", params=params, follow_redirects=True
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"Places photo error: {e.response.status_code}")
            if e.response.status_code == 403:
                raise UpstreamDenied("Photo request denied", original_error=e) from e
            raise UpstreamTransportFailure(
                "Failed to fetch photo", status_code=e.response.status_code, original_error=e
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Places photo error: {e}")
            raise UpstreamTransportFailure("Failed to fetch photo", original_error=e) from e

        content_type = response.headers.get("content-type", "application/octet-stream")
        return response.content, content_type

    async def _get_json(self, path: str, params: dict) -> dict:
        try:
            response = await self.http.get(f"{self.base_url}{path}", params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Places API HTTP error on {path}: {e.response.status_code}")
            raise UpstreamTransportFailure(
                f"HTTP {e.response.status_code} from Places API",
                status_code=e.response.status_code,
                original_error=e,
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Places API transport error on {path}: {e!r}")
            raise UpstreamTransportFailure(str(e) or type(e).__name__, original_error=e) from e
        except ValueError as e:
            logger.error(f"Places API returned invalid JSON on {path}")
            raise UpstreamTransportFailure("Invalid JSON from Places API", original_error=e) from e

    @staticmethod
    def _raise_for_status(status: Optional[str], data: dict) -> None:
        message = data.get("error_message") or "Unknown error"
        if status in DENIED_STATUSES:
            logger.error(f"Places API request denied ({status}): {message}")
            raise UpstreamDenied(message, status=status)
        if status != STATUS_OK:
            logger.error(f"Places API error ({status}): {message}")
            raise UpstreamTransportFailure(f"{status}: {message}")
