"""
Conversation models - Recommendation dialogue state and AI reply shapes.
"""
from enum import Enum
from typing import Any, Optional, Union

from pydantic import ConfigDict, Field

from .landmark import CamelModel


class ConversationStage(str, Enum):
    """Step of the three-step recommendation conversation."""
    INITIAL = "initial"  # Waiting for the activity the user likes
    ACTIVITY_IDENTIFIED = "activity_identified"  # Asking which interests to focus on
    INTERESTS_REFINED = "interests_refined"  # Recommending countries

    @property
    def order(self) -> int:
        return _STAGE_ORDER.index(self)


_STAGE_ORDER = [
    ConversationStage.INITIAL,
    ConversationStage.ACTIVITY_IDENTIFIED,
    ConversationStage.INTERESTS_REFINED,
]


class RequestType(str, Enum):
    """``type`` field of an ai-recommend request."""
    ACTIVITY_IDENTIFICATION = "activity_identification"
    INTEREST_REFINEMENT = "interest_refinement"
    COUNTRY_RECOMMENDATION = "country_recommendation"
    ITINERARY = "itinerary"


REQUEST_TYPE_STAGES = {
    RequestType.ACTIVITY_IDENTIFICATION: ConversationStage.INITIAL,
    RequestType.INTEREST_REFINEMENT: ConversationStage.ACTIVITY_IDENTIFIED,
    RequestType.COUNTRY_RECOMMENDATION: ConversationStage.INTERESTS_REFINED,
}


class ConversationState(CamelModel):
    """Client-held dialogue state, sent with every request and returned updated."""
    model_config = ConfigDict(frozen=True)

    stage: ConversationStage = ConversationStage.INITIAL
    current_activity: str = ""
    current_interests: list[str] = Field(default_factory=list)


# AI reply shapes. Required string fields must be non-empty.

class ActivityIdentification(CamelModel):
    """Stage 1 reply."""
    activity: str = Field(..., min_length=1)
    follow_up_question: str = Field(..., min_length=1)
    available_interests: list[str]


class InterestHighlight(CamelModel):
    model_config = ConfigDict(extra="allow")

    name: str = ""
    description: str = ""
    coordinates: list[float] = Field(default_factory=list)
    image_url: str = ""


class CountryInterests(CamelModel):
    model_config = ConfigDict(extra="allow")

    country: str = ""
    interests: list[InterestHighlight] = Field(default_factory=list)


class InterestRefinement(CamelModel):
    """Stage 2 reply."""
    interests: list[str]
    country_recommendations: list[CountryInterests]
    summary: str = Field(..., min_length=1)
    next_step: str = Field(..., min_length=1)


class CountryDetail(CamelModel):
    model_config = ConfigDict(extra="allow")

    country: str = ""
    highlights: list[str] = Field(default_factory=list)
    best_time: str = ""
    tips: list[str] = Field(default_factory=list)


class CountryRecommendation(CamelModel):
    """Stage 3 reply."""
    summary: str = Field(..., min_length=1)
    details: list[CountryDetail]
    next_step: str = Field(..., min_length=1)


AIReply = Union[ActivityIdentification, InterestRefinement, CountryRecommendation]


class RecommendRequest(CamelModel):
    """Body of ``POST /api/ai-recommend``."""
    query: str = ""
    type: RequestType = RequestType.ACTIVITY_IDENTIFICATION
    stage: Optional[ConversationStage] = None
    current_activity: str = ""
    current_interests: list[str] = Field(default_factory=list)

    # Itinerary fields
    dates: Optional[Any] = None
    travelers: Optional[int] = Field(None, ge=1)
    personality: Optional[str] = None
    total_days: Optional[int] = Field(None, ge=1, le=60)
    main_destination: Optional[str] = None
    landmarks: list[str] = Field(default_factory=list)

    def conversation_state(self) -> ConversationState:
        """State implied by the request; an explicit stage wins over ``type``."""
        stage = self.stage or REQUEST_TYPE_STAGES.get(self.type, ConversationStage.INITIAL)
        return ConversationState(
            stage=stage,
            current_activity=self.current_activity,
            current_interests=self.current_interests,
        )
