"""
Landmark models - Canonical place records returned to the front-end.
"""
import math
import re
from enum import Enum
from typing import Any, Optional
from urllib.parse import urlencode

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


GOOGLE_PLACES_SOURCE = "google_places"
OPENSTREETMAP_SOURCE = "openstreetmap"
OSM_ID_PREFIX = "osm-"
SYNTHETIC_ID_PREFIX = "place-"
UNKNOWN_PLACE_NAME = "Unknown Place"
COORDINATE_PRECISION = 5


class EnrichmentLevel(str, Enum):
    """How much upstream detail a landmark carries."""
    ENRICHED = "enriched"  # Basic record merged with a details lookup
    BASIC = "basic"  # Nearby-search record only
    UNAVAILABLE = "unavailable"  # Details lookup failed, placeholder values


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Coordinates(CamelModel):
    """Latitude / longitude pair."""
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)

    @classmethod
    def parse(cls, value: str) -> "Coordinates":
        """Parse a ``"lat,lng"`` query string value."""
        parts = [p.strip() for p in (value or "").split(",")]
        if len(parts) != 2:
            raise ValueError(f"Expected 'lat,lng', got {value!r}")
        lat, lng = float(parts[0]), float(parts[1])
        if not (math.isfinite(lat) and math.isfinite(lng)):
            raise ValueError(f"Coordinates must be finite, got {value!r}")
        return cls(lat=lat, lng=lng)

    def as_query(self) -> str:
        return f"{self.lat},{self.lng}"


class PlaceDetails(CamelModel):
    """Normalized Google place details."""
    place_id: str
    name: str = UNKNOWN_PLACE_NAME
    formatted_address: str = ""
    vicinity: str = ""
    coordinates: Optional[Coordinates] = None
    rating: Optional[float] = None
    total_ratings: int = 0
    price_level: Optional[int] = None
    types: list[str] = Field(default_factory=list)
    photos: list[dict] = Field(default_factory=list)
    reviews: list[dict] = Field(default_factory=list)
    website: str = ""
    phone: str = ""
    opening_hours: list[str] = Field(default_factory=list)

    @classmethod
    def from_upstream(cls, place_id: str, result: dict) -> "PlaceDetails":
        """Build details from a Places ``result`` object."""
        return cls(
            place_id=result.get("place_id") or place_id,
            name=result.get("name") or UNKNOWN_PLACE_NAME,
            formatted_address=result.get("formatted_address") or "",
            vicinity=result.get("vicinity") or "",
            coordinates=_coordinates_from(result),
            rating=_bounded(result.get("rating"), 0, 5),
            total_ratings=result.get("user_ratings_total") or 0,
            price_level=_bounded(result.get("price_level"), 0, 4),
            types=result.get("types") or [],
            photos=result.get("photos") or [],
            reviews=result.get("reviews") or [],
            website=result.get("website") or "",
            phone=(
                result.get("formatted_phone_number")
                or result.get("international_phone_number")
                or ""
            ),
            opening_hours=(result.get("opening_hours") or {}).get("weekday_text") or [],
        )


class Landmark(CamelModel):
    """Normalized point of interest, independent of the upstream shape."""
    id: str = Field(..., description="Place id, or a composite of name and rounded coordinates")
    name: str
    description: str = ""
    coordinates: Coordinates
    rating: Optional[float] = Field(None, ge=0, le=5)
    price_level: Optional[int] = Field(None, ge=0, le=4)
    category: str = Field(..., description="Activity category the landmark was found for")
    estimated_visit_days: float = 0.5
    source: str = GOOGLE_PLACES_SOURCE
    country: Optional[str] = None
    place_id: Optional[str] = Field(None, description="Upstream id for detail lookups")
    enrichment: EnrichmentLevel = EnrichmentLevel.BASIC

    # Presentation extras
    types: list[str] = Field(default_factory=list)
    total_ratings: int = 0
    photos: list[dict] = Field(default_factory=list)
    reviews: list[dict] = Field(default_factory=list)
    website: str = ""
    phone: str = ""
    opening_hours: list[str] = Field(default_factory=list)
    image_url: str = ""

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        return value.strip() or UNKNOWN_PLACE_NAME

    @classmethod
    def from_search_result(
        cls,
        place: dict,
        category: str,
        estimated_visit_days: float = 0.5,
        public_base_url: str = ""
    ) -> "Landmark":
        """Normalize one nearby-search result into a basic landmark."""
        name = place.get("name") or UNKNOWN_PLACE_NAME
        coordinates = _coordinates_from(place) or Coordinates(lat=0, lng=0)
        place_id = place.get("place_id") or None
        photos = place.get("photos") or []
        return cls(
            id=stable_landmark_id(place_id, name, coordinates),
            name=name,
            description=place.get("formatted_address") or place.get("vicinity") or "",
            coordinates=coordinates,
            rating=_bounded(place.get("rating"), 0, 5),
            price_level=_bounded(place.get("price_level"), 0, 4),
            category=category,
            estimated_visit_days=estimated_visit_days,
            place_id=place_id,
            types=place.get("types") or [],
            total_ratings=place.get("user_ratings_total") or 0,
            photos=photos,
            image_url=photo_url(photos, public_base_url),
        )

    @classmethod
    def from_osm_result(cls, place: dict, category: str = "point_of_interest") -> "Landmark":
        """
        Normalize one Nominatim search result.

        The name is the first part of ``display_name``; the country comes from
        the address details when present, else from the last part of
        ``display_name``. Importance (0-1) maps onto a 1-5 rating.
        """
        display_name = place.get("display_name") or ""
        parts = [p.strip() for p in display_name.split(",") if p.strip()]
        address = place.get("address") or {}
        country = address.get("country") or (parts[-1] if len(parts) > 1 else None)
        coordinates = Coordinates(lat=float(place["lat"]), lng=float(place["lon"]))
        osm_type = place.get("type") or ""
        return cls(
            id=f"{OSM_ID_PREFIX}{place['place_id']}",
            name=parts[0] if parts else UNKNOWN_PLACE_NAME,
            description=display_name,
            coordinates=coordinates,
            rating=_importance_rating(place.get("importance")),
            price_level=_OSM_PRICE_LEVELS.get(osm_type, 1),
            category=category,
            estimated_visit_days=_OSM_VISIT_DAYS.get(category.lower(), 1),
            source=OPENSTREETMAP_SOURCE,
            country=country,
            types=[t for t in (place.get("class"), osm_type) if t],
        )

    @classmethod
    def unavailable(cls, place_id: str, category: str = "point_of_interest") -> "Landmark":
        """Placeholder returned when a place cannot be resolved."""
        return cls(
            id=place_id or SYNTHETIC_ID_PREFIX + "unknown",
            name=UNKNOWN_PLACE_NAME,
            coordinates=Coordinates(lat=0, lng=0),
            category=category,
            estimated_visit_days=1,
            place_id=place_id or None,
            enrichment=EnrichmentLevel.UNAVAILABLE,
        )

    def enrich(self, details: PlaceDetails, public_base_url: str = "") -> "Landmark":
        """Return a copy merged with a details lookup; identity is unchanged."""
        photos = details.photos or self.photos
        return self.model_copy(update={
            "name": details.name if details.name != UNKNOWN_PLACE_NAME else self.name,
            "description": details.formatted_address or details.vicinity or self.description,
            "coordinates": details.coordinates or self.coordinates,
            "rating": details.rating if details.rating is not None else self.rating,
            "price_level": details.price_level if details.price_level is not None else self.price_level,
            "types": details.types or self.types,
            "total_ratings": details.total_ratings or self.total_ratings,
            "photos": photos,
            "reviews": details.reviews,
            "website": details.website,
            "phone": details.phone,
            "opening_hours": details.opening_hours,
            "image_url": photo_url(photos, public_base_url) or self.image_url,
            "enrichment": EnrichmentLevel.ENRICHED,
        })

    @property
    def is_lodging(self) -> bool:
        lowered = {t.lower() for t in self.types}
        return "lodging" in lowered or "hotel" in lowered


def stable_landmark_id(place_id: Optional[str], name: str, coordinates: Coordinates) -> str:
    """
    Deterministic landmark id.

    Uses the upstream place id when present, otherwise a slug of the name
    plus coordinates rounded to five decimals (about one meter).
    """
    if place_id:
        return place_id
    slug = re.sub(r"[^a-z0-9]+", "-", (name or "").strip().lower()).strip("-") or "unnamed"
    lat = round(coordinates.lat, COORDINATE_PRECISION)
    lng = round(coordinates.lng, COORDINATE_PRECISION)
    return f"{SYNTHETIC_ID_PREFIX}{slug}-{lat}-{lng}"


def is_synthetic_id(place_id: str) -> bool:
    """Ids with no Google place behind them."""
    return place_id.startswith((SYNTHETIC_ID_PREFIX, OSM_ID_PREFIX))


def photo_url(photos: list[dict], public_base_url: str = "", max_width: int = 400) -> str:
    """Link to the photo proxy for the first photo, so the API key stays server-side."""
    if not photos:
        return ""
    reference = photos[0].get("photo_reference")
    if not reference:
        return ""
    query = urlencode({"photo_reference": reference, "maxwidth": max_width})
    return f"{public_base_url.rstrip('/')}/api/places/photo?{query}"


def _coordinates_from(place: dict) -> Optional[Coordinates]:
    location = (place.get("geometry") or {}).get("location") or {}
    lat, lng = location.get("lat"), location.get("lng")
    if lat is None or lng is None:
        return None
    try:
        return Coordinates(lat=float(lat), lng=float(lng))
    except (TypeError, ValueError):
        return None


def _bounded(value: Any, low: float, high: float) -> Optional[Any]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if value < low or value > high:
        return None
    return value


_OSM_PRICE_LEVELS = {
    "restaurant": 2,
    "hotel": 2,
    "attraction": 2,
    "museum": 2,
    "cafe": 1,
    "bar": 1,
}

_OSM_VISIT_DAYS = {
    "museum": 0.5,
    "castle": 0.5,
    "historic site": 0.5,
    "national park": 2,
    "wine region": 2,
    "city": 3,
    "island": 3,
}


def _importance_rating(importance: Any) -> Optional[float]:
    if isinstance(importance, bool) or not isinstance(importance, (int, float)):
        return None
    return float(min(5, max(1, round(importance * 4 + 1))))
