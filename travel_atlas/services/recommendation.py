"""
Recommendation Dialogue Engine.
Three-stage conversation: identify the activity, refine interests, recommend countries.
"""
import logging
from typing import Tuple

from pydantic import ValidationError

from .llm_client import LLMClient
from ..errors import ValidationFailure
from ..models.conversation import (
    AIReply,
    ActivityIdentification,
    ConversationStage,
    ConversationState,
    CountryRecommendation,
    InterestRefinement,
)

logger = logging.getLogger(__name__)


_JSON_ONLY_PREAMBLE = """You are a travel assistant. Your ONLY task is to return a JSON object.
DO NOT include any text, explanations, or markdown outside the JSON object.
DO NOT use any formatting or styling.
DO NOT add any additional information.
The response must be a valid JSON object with this exact structure:"""

_JSON_ONLY_CLOSING = "Remember: ONLY return the JSON object, nothing else."

ACTIVITY_IDENTIFICATION_PROMPT = f"""{_JSON_ONLY_PREAMBLE}
{{
  "activity": "theaters and performing arts",
  "followUpQuestion": "What type of performances interest you most?",
  "availableInterests": ["Classical Performances", "Contemporary Shows", "Opera", "Ballet", "Historical Venues", "Modern Theaters"]
}}
{_JSON_ONLY_CLOSING}"""

INTEREST_REFINEMENT_PROMPT = f"""{_JSON_ONLY_PREAMBLE}
{{
  "interests": ["Classical Performances", "Historical Venues"],
  "countryRecommendations": [
    {{
      "country": "Austria",
      "interests": [
        {{
          "name": "Classical Performances",
          "description": "Experience world-class classical performances in Vienna",
          "coordinates": [16.3738, 48.2082],
          "imageUrl": "https://example.com/vienna-opera.jpg"
        }}
      ]
    }}
  ],
  "summary": "Based on your interests, here are some perfect destinations for you!",
  "nextStep": "Click on any interest to see detailed recommendations."
}}
{_JSON_ONLY_CLOSING}"""

COUNTRY_RECOMMENDATION_PROMPT = f"""{_JSON_ONLY_PREAMBLE}
{{
  "summary": "Discover Europe's finest classical performances in historic venues.",
  "details": [
    {{
      "country": "Austria",
      "highlights": ["Vienna State Opera", "Salzburg Festival"],
      "bestTime": "July-August",
      "tips": ["Book standing room tickets", "Visit during festival season"]
    }}
  ],
  "nextStep": "Would you like to explore more activities?"
}}
{_JSON_ONLY_CLOSING}"""


class StageRule:
    """Prompt, expected reply shape and target stage for one conversation stage."""

    def __init__(self, prompt: str, reply_model: type, next_stage: ConversationStage):
        self.prompt = prompt
        self.reply_model = reply_model
        self.next_stage = next_stage


STAGE_RULES = {
    ConversationStage.INITIAL: StageRule(
        ACTIVITY_IDENTIFICATION_PROMPT,
        ActivityIdentification,
        ConversationStage.ACTIVITY_IDENTIFIED,
    ),
    ConversationStage.ACTIVITY_IDENTIFIED: StageRule(
        INTEREST_REFINEMENT_PROMPT,
        InterestRefinement,
        ConversationStage.INTERESTS_REFINED,
    ),
    ConversationStage.INTERESTS_REFINED: StageRule(
        COUNTRY_RECOMMENDATION_PROMPT,
        CountryRecommendation,
        ConversationStage.INTERESTS_REFINED,
    ),
}


class RecommendationEngine:
    """
    Drives the recommendation conversation.

    The engine holds no session data: every call takes the client's
    ConversationState and returns the next one, so it is a function of
    (state, query) apart from the completion call itself.
    """

    def __init__(self, llm: LLMClient):
        self.llm = llm

    async def advance(
        self,
        state: ConversationState,
        query: str
    ) -> Tuple[ConversationState, AIReply]:
        """
        Run one conversation turn.

        Returns:
            Tuple of (next_state, validated_reply)

        Raises:
            ValidationFailure: reply not JSON or missing a required field;
                the caller keeps its current state
        """
        rule = STAGE_RULES[state.stage]
        messages = [
            {"role": "system", "content": self._system_prompt(rule, state)},
            {"role": "user", "content": self._user_turn(state, query)},
        ]

        raw = await self.llm.chat_json(messages)
        reply = validate_reply(rule.reply_model, raw)
        next_state = transition(state, reply, rule.next_stage)

        logger.info(f"Conversation advanced {state.stage.value} -> {next_state.stage.value}")
        return next_state, reply

    @staticmethod
    def _system_prompt(rule: StageRule, state: ConversationState) -> str:
        if state.stage == ConversationStage.INITIAL:
            return rule.prompt
        context = []
        if state.current_activity:
            context.append(f"The user's chosen activity is: {state.current_activity}.")
        if state.stage == ConversationStage.INTERESTS_REFINED and state.current_interests:
            context.append(f"The user's interests are: {', '.join(state.current_interests)}.")
        if not context:
            return rule.prompt
        return rule.prompt + "\n" + "\n".join(context)

    @staticmethod
    def _user_turn(state: ConversationState, query: str) -> str:
        query = (query or "").strip()
        if query:
            return query
        if state.stage == ConversationStage.INTERESTS_REFINED and state.current_interests:
            return (
                f"Based on the user's interests in {', '.join(state.current_interests)}, "
                "create a structured recommendation."
            )
        return query


def validate_reply(reply_model: type, raw: dict) -> AIReply:
    """Check a parsed reply against the stage's shape."""
    try:
        return reply_model.model_validate(raw)
    except ValidationError as e:
        missing = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
        logger.error(f"Invalid {reply_model.__name__} reply, bad fields: {missing}")
        raise ValidationFailure(
            f"Missing or invalid fields: {', '.join(missing)}", original_error=e
        ) from e


def transition(
    state: ConversationState,
    reply: AIReply,
    target: ConversationStage
) -> ConversationState:
    """Apply a validated reply. Stages only move forward."""
    updates: dict = {}
    if isinstance(reply, ActivityIdentification):
        updates["current_activity"] = reply.activity
    elif isinstance(reply, InterestRefinement):
        updates["current_interests"] = list(reply.interests)

    stage = target if target.order >= state.stage.order else state.stage
    return state.model_copy(update={"stage": stage, **updates})


def reply_payload(reply: AIReply) -> dict:
    """Reply as the camelCase JSON object the front-end expects."""
    return reply.model_dump(by_alias=True)
