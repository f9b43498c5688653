"""
LLM Client - Async wrapper over an OpenAI-compatible chat completion API.
"""
from openai import (
    AsyncOpenAI,
    APIError,
    APIConnectionError,
    APITimeoutError,
    AuthenticationError,
    PermissionDeniedError,
    RateLimitError,
)
from typing import Optional
import json
import logging

from ..config import Settings, get_llm_config
from ..errors import UpstreamDenied, UpstreamTransportFailure, ValidationFailure

logger = logging.getLogger(__name__)

SERVICE_NAME = "OpenAI"


class LLMClient:
    """Async LLM client with OpenAI-compatible API."""

    def __init__(self, settings: Settings, client: Optional[AsyncOpenAI] = None):
        self.settings = settings
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        """Underlying SDK client, created on first use so a missing key fails only here."""
        if self._client is None:
            config = get_llm_config(self.settings)
            self._client = AsyncOpenAI(
                api_key=config["api_key"],
                base_url=config["base_url"],
                timeout=config["timeout"],
                max_retries=0,
            )
        return self._client

    async def aclose(self) -> None:
        """Close the SDK client if one was created."""
        if self._client is not None:
            await self._client.close()

    async def chat(
        self,
        messages: list[dict],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        json_mode: bool = False
    ) -> str:
        """
        Send a chat completion request.

        Args:
            messages: List of message dicts with 'role' and 'content'
            temperature: Override default temperature
            max_tokens: Override default max tokens
            json_mode: If True, request a JSON object response

        Returns:
            The assistant's response content
        """
        kwargs = {
            "model": self.settings.llm_model,
            "messages": messages,
            "temperature": temperature if temperature is not None else self.settings.llm_temperature,
            "max_tokens": max_tokens or self.settings.llm_max_tokens,
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        client = self.client
        try:
            response = await client.chat.completions.create(**kwargs)
        except (AuthenticationError, PermissionDeniedError, RateLimitError) as e:
            logger.error(f"LLM request denied: {e}")
            raise UpstreamDenied(str(e), service_name=SERVICE_NAME, original_error=e) from e
        except (APIConnectionError, APITimeoutError) as e:
            logger.error(f"LLM transport error: {e}")
            raise UpstreamTransportFailure(str(e), service_name=SERVICE_NAME, original_error=e) from e
        except APIError as e:
            logger.error(f"LLM API error: {e}")
            raise UpstreamTransportFailure(str(e), service_name=SERVICE_NAME, original_error=e) from e

        if not response.choices or response.choices[0].message is None:
            logger.error("LLM returned no choices")
            raise UpstreamTransportFailure("Invalid response from AI service", service_name=SERVICE_NAME)
        return response.choices[0].message.content or ""

    async def chat_json(
        self,
        messages: list[dict],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None
    ) -> dict:
        """
        Send a chat request in JSON mode and parse the reply strictly.

        Raises:
            ValidationFailure: reply is not a single JSON object
        """
        response = await self.chat(
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
            json_mode=True
        )
        return parse_json_object(response)


def parse_json_object(text: str) -> dict:
    """Parse a reply that must be exactly one JSON object, no surrounding prose."""
    try:
        parsed = json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        logger.error(f"Error parsing AI response: {e}")
        raise ValidationFailure("AI reply is not valid JSON", original_error=e) from e
    if not isinstance(parsed, dict):
        raise ValidationFailure("AI reply is not a JSON object")
    return parsed
