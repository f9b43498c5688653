"""
Activity catalog - Maps activity categories to Google Places queries.
"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class ActivityCategory(str, Enum):
    """Activity categories the front-end can search for."""
    MUSEUM = "museum"
    HIKING = "hiking"
    WINE = "wine"
    VINEYARD_TOURS = "vineyard tours"
    COFFEE = "coffee"
    MUSHROOM = "mushroom"
    CULTURE = "culture"
    NATURE = "nature"
    FOOD = "food"
    SHOPPING = "shopping"
    NIGHTLIFE = "nightlife"
    HISTORICAL = "historical"
    ART = "art"
    THEATRE = "theatre"
    PERFORMING_ARTS = "performing_arts"
    GENERAL = "general"

    @classmethod
    def from_tag(cls, tag: Optional[str]) -> "ActivityCategory":
        """Resolve a free-form tag; unknown or empty tags become GENERAL."""
        if not tag:
            return cls.GENERAL
        try:
            return cls(tag.strip().lower())
        except ValueError:
            return cls.GENERAL


class QuerySpec(BaseModel):
    """One upstream nearby-search query."""
    place_type: str = Field(..., description="Google Places type filter")
    keyword: str = Field(default="", description="Keyword sent with the query")


class CategoryPolicy(BaseModel):
    """Search policy for a category."""
    queries: list[QuerySpec] = Field(..., min_length=1)
    name_signals: tuple[str, ...] = Field(
        default=(),
        description="Name substrings that keep a lodging-typed result"
    )
    estimated_visit_days: float = Field(default=0.5, gt=0)


WINE_NAME_SIGNALS = ("wine", "vinho", "vineyard", "winery")

_WINE_QUERIES = [
    QuerySpec(place_type="tourist_attraction", keyword="winery OR vineyard"),
    QuerySpec(place_type="food", keyword="wine tasting OR wine bar"),
]

ACTIVITY_CATALOG: dict[ActivityCategory, CategoryPolicy] = {
    ActivityCategory.MUSEUM: CategoryPolicy(
        queries=[QuerySpec(place_type="museum", keyword="museum")],
    ),
    ActivityCategory.HIKING: CategoryPolicy(
        queries=[QuerySpec(place_type="natural_feature", keyword="hiking trail mountain")],
        estimated_visit_days=1,
    ),
    ActivityCategory.WINE: CategoryPolicy(
        queries=_WINE_QUERIES,
        name_signals=WINE_NAME_SIGNALS,
    ),
    ActivityCategory.VINEYARD_TOURS: CategoryPolicy(
        queries=_WINE_QUERIES,
        name_signals=WINE_NAME_SIGNALS,
    ),
    ActivityCategory.COFFEE: CategoryPolicy(
        queries=[QuerySpec(place_type="cafe", keyword="coffee")],
    ),
    ActivityCategory.MUSHROOM: CategoryPolicy(
        queries=[QuerySpec(place_type="natural_feature", keyword="forest park")],
        estimated_visit_days=1,
    ),
    ActivityCategory.CULTURE: CategoryPolicy(
        queries=[QuerySpec(place_type="museum", keyword="museum")],
    ),
    ActivityCategory.NATURE: CategoryPolicy(
        queries=[QuerySpec(place_type="park", keyword="nature")],
    ),
    ActivityCategory.FOOD: CategoryPolicy(
        queries=[QuerySpec(place_type="restaurant", keyword="restaurant")],
    ),
    ActivityCategory.SHOPPING: CategoryPolicy(
        queries=[QuerySpec(place_type="shopping_mall", keyword="shopping")],
    ),
    ActivityCategory.NIGHTLIFE: CategoryPolicy(
        queries=[QuerySpec(place_type="bar", keyword="nightlife")],
    ),
    ActivityCategory.HISTORICAL: CategoryPolicy(
        queries=[QuerySpec(place_type="tourist_attraction", keyword="historical")],
    ),
    ActivityCategory.ART: CategoryPolicy(
        queries=[QuerySpec(place_type="art_gallery", keyword="art")],
    ),
    ActivityCategory.THEATRE: CategoryPolicy(
        queries=[QuerySpec(
            place_type="establishment",
            keyword="theatre OR theater OR opera house OR performing arts"
        )],
    ),
    ActivityCategory.PERFORMING_ARTS: CategoryPolicy(
        queries=[QuerySpec(
            place_type="establishment",
            keyword="theatre OR theater OR opera house OR concert hall"
        )],
    ),
    ActivityCategory.GENERAL: CategoryPolicy(
        queries=[QuerySpec(place_type="point_of_interest")],
    ),
}


def get_policy(category: ActivityCategory) -> CategoryPolicy:
    """Look up the search policy for a category."""
    return ACTIVITY_CATALOG[category]


def validate_catalog(catalog: Optional[dict] = None) -> None:
    """
    Check that every category has a policy with at least one query.

    Raises:
        ValueError: naming the categories without a usable policy
    """
    catalog = ACTIVITY_CATALOG if catalog is None else catalog
    missing = [
        category.value for category in ActivityCategory
        if category not in catalog or not catalog[category].queries
    ]
    if missing:
        raise ValueError(f"Activity catalog incomplete, no queries for: {', '.join(missing)}")
