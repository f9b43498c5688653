"""Data models for the travel atlas backend."""
from .activity_catalog import ActivityCategory, QuerySpec, ACTIVITY_CATALOG
from .landmark import Coordinates, Landmark, PlaceDetails, EnrichmentLevel
from .conversation import ConversationStage, ConversationState, RecommendRequest

__all__ = [
    "ActivityCategory",
    "QuerySpec",
    "ACTIVITY_CATALOG",
    "Coordinates",
    "Landmark",
    "PlaceDetails",
    "EnrichmentLevel",
    "ConversationStage",
    "ConversationState",
    "RecommendRequest",
]
