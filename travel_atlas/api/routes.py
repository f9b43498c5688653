"""
API Routes for the travel atlas backend.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from pydantic import BaseModel
from typing import Optional

from ..models.conversation import RecommendRequest, RequestType
from ..models.landmark import Coordinates, Landmark
from ..services import Services
from ..services.place_search import DEFAULT_MAX_RESULTS
from ..services.recommendation import reply_payload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["travel-atlas"])


def get_services(request: Request) -> Services:
    """Services built by the application lifespan."""
    return request.app.state.services


# Response Models
class SearchResponse(BaseModel):
    results: list[Landmark]


# Endpoints

@router.get("/places/search", response_model=SearchResponse)
async def search_places(
    location: Optional[str] = Query(None, description="Search center as 'lat,lng'"),
    type: Optional[str] = Query(None, description="Activity category"),
    radius: Optional[float] = Query(None, description="Radius in meters, max 50000"),
    max_results: int = Query(DEFAULT_MAX_RESULTS, alias="maxResults", ge=1, le=60),
    keyword: Optional[str] = Query(None),
    enrich: bool = Query(True),
    services: Services = Depends(get_services)
):
    """Search landmarks of an activity category around a location."""
    logger.info(f"Search request: location={location} type={type} radius={radius} maxResults={max_results}")
    if not location:
        raise HTTPException(status_code=400, detail="Location parameter is required")
    try:
        center = Coordinates.parse(location)
    except ValueError:
        raise HTTPException(status_code=400, detail="Location must be 'lat,lng'")

    results = await services.search.search(
        center,
        category=type,
        radius=radius,
        keyword=keyword,
        max_results=max_results,
        enrich=enrich,
    )
    return SearchResponse(results=results)


@router.get("/places/photo")
async def place_photo(
    photo_reference: Optional[str] = Query(None),
    maxwidth: int = Query(400, ge=1, le=1600),
    services: Services = Depends(get_services)
):
    """Proxy a place photo, keeping the upstream content type."""
    if not photo_reference:
        raise HTTPException(status_code=400, detail="photo_reference parameter is required")
    content, content_type = await services.places.photo(photo_reference, maxwidth)
    return Response(content=content, media_type=content_type)


@router.get("/places/details/{place_id}")
async def place_details(place_id: str, services: Services = Depends(get_services)):
    """Raw upstream details payload."""
    logger.info(f"Fetching place details for: {place_id}")
    return await services.places.place_details(place_id)


@router.get("/places/landmark/{place_id}", response_model=Landmark)
async def place_landmark(
    place_id: str,
    type: Optional[str] = Query(None, description="Category to tag the landmark with"),
    services: Services = Depends(get_services)
):
    """Normalized landmark for a place, or the 'Unknown Place' placeholder."""
    return await services.details.fetch_landmark(place_id, category=type or "point_of_interest")


@router.get("/places/osm-search", response_model=SearchResponse)
async def osm_search(
    q: Optional[str] = Query(None, description="Free-text place query"),
    countrycodes: Optional[str] = Query(None, description="Comma-separated ISO country codes"),
    type: Optional[str] = Query(None, description="Category to tag the landmarks with"),
    services: Services = Depends(get_services)
):
    """Free-text search over OpenStreetMap."""
    if not q or not q.strip():
        raise HTTPException(status_code=400, detail="q parameter is required")
    results = await services.osm.search(q, country_codes=countrycodes, category=type or "point_of_interest")
    return SearchResponse(results=results)


@router.post("/ai-recommend")
async def ai_recommend(request: RecommendRequest, services: Services = Depends(get_services)):
    """Run one recommendation turn, or generate the itinerary report."""
    if request.type == RequestType.ITINERARY:
        content = await services.itinerary.generate(
            request.query,
            landmarks=request.landmarks,
            total_days=request.total_days,
            travelers=request.travelers,
            personality=request.personality,
            main_destination=request.main_destination,
            dates=request.dates,
        )
        return {"content": content}

    state = request.conversation_state()
    next_state, reply = await services.recommendations.advance(state, request.query)
    return {
        "content": reply_payload(reply),
        "state": next_state.model_dump(by_alias=True, mode="json"),
    }
