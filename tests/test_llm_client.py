"""Tests for the LLM client."""
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from travel_atlas.errors import ConfigurationError, UpstreamDenied, UpstreamTransportFailure, ValidationFailure
from travel_atlas.services import build_services
from travel_atlas.services.llm_client import LLMClient, parse_json_object


def fake_openai(content=None, error=None):
    client = MagicMock()
    if error is not None:
        client.chat.completions.create = AsyncMock(side_effect=error)
    else:
        message = SimpleNamespace(content=content)
        client.chat.completions.create = AsyncMock(
            return_value=SimpleNamespace(choices=[SimpleNamespace(message=message)])
        )
    return client


class TestLLMClient:
    """Test completion requests and error mapping."""

    @pytest.mark.asyncio
    async def test_chat_json_requests_json_mode(self, settings):
        """JSON mode sets response_format and parses the reply."""
        sdk = fake_openai('{"activity": "hiking"}')
        llm = LLMClient(settings, client=sdk)

        result = await llm.chat_json([{"role": "user", "content": "hi"}])

        assert result == {"activity": "hiking"}
        kwargs = sdk.chat.completions.create.await_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["model"] == settings.llm_model
        assert kwargs["temperature"] == 0.7

    @pytest.mark.asyncio
    async def test_plain_chat_has_no_response_format(self, settings):
        sdk = fake_openai("# Travel Planning Report")
        llm = LLMClient(settings, client=sdk)
        assert await llm.chat([{"role": "user", "content": "hi"}]) == "# Travel Planning Report"
        assert "response_format" not in sdk.chat.completions.create.await_args.kwargs

    @pytest.mark.asyncio
    async def test_prose_around_json_is_invalid(self, settings):
        """Replies with surrounding prose are rejected, not repaired."""
        llm = LLMClient(settings, client=fake_openai('Sure! {"activity": "hiking"}'))
        with pytest.raises(ValidationFailure):
            await llm.chat_json([{"role": "user", "content": "hi"}])

    @pytest.mark.asyncio
    async def test_connection_error_is_transport_failure(self, settings):
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        llm = LLMClient(settings, client=fake_openai(error=openai.APIConnectionError(request=request)))
        with pytest.raises(UpstreamTransportFailure):
            await llm.chat([{"role": "user", "content": "hi"}])

    @pytest.mark.asyncio
    async def test_auth_error_is_denied(self, settings):
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        response = httpx.Response(401, request=request)
        error = openai.AuthenticationError("Incorrect API key", response=response, body=None)
        llm = LLMClient(settings, client=fake_openai(error=error))
        with pytest.raises(UpstreamDenied) as exc_info:
            await llm.chat([{"role": "user", "content": "hi"}])
        assert exc_info.value.service_name == "OpenAI"

    @pytest.mark.asyncio
    async def test_missing_key_is_configuration_error(self, settings):
        """The SDK client is only built when a key is configured."""
        settings.llm_api_key = ""
        llm = LLMClient(settings)
        with pytest.raises(ConfigurationError):
            await llm.chat([{"role": "user", "content": "hi"}])


class TestShutdown:
    """Test closing of the SDK client."""

    @pytest.mark.asyncio
    async def test_aclose_closes_created_client(self, settings):
        sdk = fake_openai("{}")
        sdk.close = AsyncMock()
        await LLMClient(settings, client=sdk).aclose()
        sdk.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_aclose_without_client_is_noop(self, settings):
        """No SDK client is built just to be closed."""
        settings.llm_api_key = ""
        await LLMClient(settings).aclose()

    @pytest.mark.asyncio
    async def test_services_close_http_and_llm(self, settings, mock_http):
        http = mock_http(lambda r: httpx.Response(200))
        llm = AsyncMock(spec=LLMClient)
        services = build_services(settings, http_client=http, llm=llm)

        await services.aclose()

        assert http.is_closed
        llm.aclose.assert_awaited_once()


class TestParseJsonObject:
    """Test strict JSON parsing."""

    def test_object(self):
        assert parse_json_object('{"a": 1}') == {"a": 1}

    @pytest.mark.parametrize("text", ["", "not json", "[1, 2]", '"text"', '```json\n{"a": 1}\n```'])
    def test_rejects_non_objects(self, text):
        with pytest.raises(ValidationFailure):
            parse_json_object(text)
