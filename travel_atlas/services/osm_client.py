"""
OpenStreetMap client.
Free-text place search over Nominatim, normalized into landmarks.
"""
import httpx
import logging
from typing import Optional

from .cache import TTLCache
from ..config import Settings
from ..errors import UpstreamDenied, UpstreamTransportFailure
from ..models.landmark import Landmark

logger = logging.getLogger(__name__)

SERVICE_NAME = "OpenStreetMap"

# Rough bounding box for Europe: west, north, east, south
EUROPE_VIEWBOX = "-10,70,40,30"


class OpenStreetMapClient:
    """Nominatim search with cached raw results."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient, cache: TTLCache):
        self.settings = settings
        self.base_url = settings.nominatim_base_url.rstrip("/")
        self.http = http_client
        self.cache = cache

    @staticmethod
    def cache_key(query: str, country_codes: Optional[str]) -> str:
        return f"osm:{query}:{country_codes or 'all'}"

    async def search(
        self,
        query: str,
        country_codes: Optional[str] = None,
        category: str = "point_of_interest"
    ) -> list[Landmark]:
        """
        Search places by free text.

        Args:
            query: Free-text query, e.g. "Sagrada Familia"
            country_codes: Comma-separated ISO codes; defaults to the configured European list
            category: Category tag given to the returned landmarks

        Returns:
            Landmarks in upstream order; records that cannot be normalized are skipped

        Raises:
            ValueError: empty query
            UpstreamDenied: 403 or 429 from Nominatim
            UpstreamTransportFailure: network errors, other non-2xx, invalid JSON
        """
        query = (query or "").strip()
        if not query:
            raise ValueError("query must not be empty")
        country_codes = (country_codes or "").strip() or None

        key = self.cache_key(query, country_codes)
        places = self.cache.get(key)
        if places is None:
            places = await self._fetch(query, country_codes or self.settings.nominatim_country_codes)
            self.cache.set(key, places)
        else:
            logger.debug(f"OSM cache hit: {key}")

        landmarks = []
        for place in places:
            try:
                landmarks.append(Landmark.from_osm_result(place, category))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed OSM result {place.get('place_id')!r}: {e}")
        return landmarks

    async def _fetch(self, query: str, country_codes: str) -> list[dict]:
        params = {
            "q": query,
            "format": "json",
            "limit": self.settings.nominatim_result_limit,
            "countrycodes": country_codes,
            "addressdetails": 1,
            "accept-language": "en",
            "viewbox": EUROPE_VIEWBOX,
            "bounded": 1,
        }
        headers = {
            "Accept": "application/json",
            "User-Agent": self.settings.nominatim_user_agent,
        }
        logger.info(f"OSM search q={query!r} countrycodes={country_codes}")
        try:
            response = await self.http.get(f"{self.base_url}/search", params=params, headers=headers)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error(f"Nominatim HTTP error: {status}")
            if status in (403, 429):
                raise UpstreamDenied(
                    f"HTTP {status} from Nominatim", service_name=SERVICE_NAME, original_error=e
                ) from e
            raise UpstreamTransportFailure(
                f"HTTP {status} from Nominatim",
                service_name=SERVICE_NAME,
                status_code=status,
                original_error=e,
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Nominatim transport error: {e!r}")
            raise UpstreamTransportFailure(
                str(e) or type(e).__name__, service_name=SERVICE_NAME, original_error=e
            ) from e
        except ValueError as e:
            logger.error("Nominatim returned invalid JSON")
            raise UpstreamTransportFailure(
                "Invalid JSON from Nominatim", service_name=SERVICE_NAME, original_error=e
            ) from e

        if not isinstance(data, list):
            raise UpstreamTransportFailure("Unexpected Nominatim response", service_name=SERVICE_NAME)
        return data
