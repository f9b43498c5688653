"""
Place Search Aggregator.
Fans out one logical search into the catalog's upstream queries, then merges,
deduplicates, filters and normalizes the results into landmarks.
"""
import asyncio
import logging
from typing import Optional

from .cache import TTLCache
from .place_details import PlaceDetailsFetcher
from .places_client import GooglePlacesClient, clamp_radius
from ..errors import UpstreamDenied, UpstreamTransportFailure
from ..models.activity_catalog import ActivityCategory, CategoryPolicy, QuerySpec, get_policy
from ..models.landmark import Coordinates, Landmark

logger = logging.getLogger(__name__)

DEFAULT_MAX_RESULTS = 5


class PlaceSearchAggregator:
    """Builds landmark lists for an activity category around a point."""

    def __init__(
        self,
        client: GooglePlacesClient,
        details: PlaceDetailsFetcher,
        cache: TTLCache,
        public_base_url: str = ""
    ):
        self.client = client
        self.details = details
        self.cache = cache
        self.public_base_url = public_base_url

    async def search(
        self,
        center: Coordinates,
        category: str,
        radius: Optional[float] = None,
        keyword: Optional[str] = None,
        max_results: int = DEFAULT_MAX_RESULTS,
        enrich: bool = True
    ) -> list[Landmark]:
        """
        Search for landmarks of one activity category.

        Args:
            center: Search center
            category: Activity category tag; unknown tags use the general query
            radius: Meters, capped at the provider maximum
            keyword: Replaces the catalog keyword on every query when given
            max_results: Upper bound on returned landmarks
            enrich: Merge a details lookup into each retained landmark

        Returns:
            Landmarks in upstream relevance order, unique by id

        Raises:
            ConfigurationError: Places API key missing
            UpstreamDenied: any sub-query was denied by the provider
            UpstreamTransportFailure: every sub-query failed in transport
        """
        if max_results < 1:
            raise ValueError("max_results must be at least 1")

        activity = ActivityCategory.from_tag(category)
        policy = get_policy(activity)
        radius = clamp_radius(radius)
        keyword = (keyword or "").strip()

        cache_key = self._cache_key(center, radius, activity, keyword, max_results, enrich)
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug(f"Search cache hit: {cache_key}")
            return list(cached)

        queries = self._queries_for(policy, keyword)
        candidates, partial = await self._fan_out(center, radius, queries)

        landmarks = self._normalize(candidates, activity, policy)
        landmarks = deduplicate(landmarks)
        landmarks = filter_lodging(landmarks, policy.name_signals)
        landmarks = landmarks[:max_results]

        if enrich:
            landmarks, missing_details = await self._enrich_all(landmarks)
            partial = partial or missing_details

        logger.info(
            f"Search {activity.value!r} at {center.as_query()}: "
            f"{len(candidates)} candidates, {len(landmarks)} returned"
        )
        # Partial or basic-only results are never cached
        if partial:
            logger.info(f"Not caching degraded search result: {cache_key}")
        else:
            self.cache.set(cache_key, landmarks)
        return list(landmarks)

    @staticmethod
    def _queries_for(policy: CategoryPolicy, keyword: str) -> list[QuerySpec]:
        if not keyword:
            return list(policy.queries)
        return [q.model_copy(update={"keyword": keyword}) for q in policy.queries]

    async def _fan_out(
        self,
        center: Coordinates,
        radius: int,
        queries: list[QuerySpec]
    ) -> tuple[list[dict], bool]:
        """
        Run all queries concurrently and merge their results once all have settled.

        Returns:
            Merged raw results, and whether any sub-query was skipped after a transport failure
        """
        outcomes = await asyncio.gather(
            *(self.client.nearby_search(center, radius, q) for q in queries),
            return_exceptions=True
        )

        merged: list[dict] = []
        denied: Optional[UpstreamDenied] = None
        failures: list[Exception] = []
        for query, outcome in zip(queries, outcomes):
            if isinstance(outcome, UpstreamDenied):
                denied = denied or outcome
            elif isinstance(outcome, UpstreamTransportFailure):
                logger.warning(
                    f"Sub-query type={query.place_type} keyword={query.keyword!r} failed: {outcome}"
                )
                failures.append(outcome)
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                merged.extend(outcome)

        if denied is not None:
            raise denied
        if failures and len(failures) == len(queries):
            raise failures[0]
        return merged, bool(failures)

    def _normalize(
        self,
        candidates: list[dict],
        activity: ActivityCategory,
        policy: CategoryPolicy
    ) -> list[Landmark]:
        landmarks = []
        for place in candidates:
            try:
                landmarks.append(Landmark.from_search_result(
                    place,
                    category=activity.value,
                    estimated_visit_days=policy.estimated_visit_days,
                    public_base_url=self.public_base_url,
                ))
            except ValueError as e:
                logger.warning(f"Skipping malformed search result {place.get('place_id')!r}: {e}")
        return landmarks

    async def _enrich_all(self, landmarks: list[Landmark]) -> tuple[list[Landmark], bool]:
        """Enrich concurrently; the flag is set when any details lookup was unavailable."""
        async def enrich_one(landmark: Landmark) -> tuple[Landmark, bool]:
            if not landmark.place_id:
                return landmark, False
            outcome = await self.details.fetch(landmark.place_id)
            if not outcome.available:
                logger.warning(
                    f"Keeping basic record for {landmark.name!r}: {outcome.reason}"
                )
                return landmark, True
            return landmark.enrich(outcome.details, self.public_base_url), False

        outcomes = await asyncio.gather(*(enrich_one(lm) for lm in landmarks))
        return [lm for lm, _ in outcomes], any(missing for _, missing in outcomes)

    @staticmethod
    def _cache_key(
        center: Coordinates,
        radius: int,
        activity: ActivityCategory,
        keyword: str,
        max_results: int,
        enrich: bool
    ) -> str:
        return (
            f"search:{center.lat:.5f},{center.lng:.5f}:{radius}:{activity.value}:"
            f"{keyword.lower()}:{max_results}:{int(enrich)}"
        )


def deduplicate(landmarks: list[Landmark]) -> list[Landmark]:
    """Keep the first landmark for each id, preserving order."""
    seen: set[str] = set()
    unique = []
    for landmark in landmarks:
        if landmark.id in seen:
            continue
        seen.add(landmark.id)
        unique.append(landmark)
    return unique


def filter_lodging(landmarks: list[Landmark], name_signals: tuple[str, ...] = ()) -> list[Landmark]:
    """
    Drop lodging/hotel results.

    A lodging result survives only if its name contains one of the category's
    name signals (e.g. "Wine Country Inn" for wine searches).
    """
    kept = []
    for landmark in landmarks:
        if landmark.is_lodging:
            lowered = landmark.name.lower()
            if not any(signal in lowered for signal in name_signals):
                logger.debug(f"Filtered lodging result: {landmark.name!r}")
                continue
        kept.append(landmark)
    return kept
