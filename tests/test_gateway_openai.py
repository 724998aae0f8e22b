"""Tests for the OpenAI adapter wire contract."""

import httpx
import pytest

from conftest import RecordingTransport, openai_body, openai_config


def _adapter(transport=None, **config_overrides):
    from chat_gateway.gateway.openai import OpenAIAdapter

    return OpenAIAdapter(openai_config(**config_overrides), transport=transport)


class TestOpenAIPayload:
    """Test role-tagged message construction."""

    def test_messages_order(self):
        from chat_gateway.gateway.types import ChatTurn

        adapter = _adapter()
        history = [
            ChatTurn(text="Hi", sender="user"),
            ChatTurn(text="Hello!", sender="assistant"),
        ]

        messages = adapter.build_messages("How are you?", history)

        assert [m["role"] for m in messages] == ["system", "user", "assistant", "user"]
        assert messages[0]["content"].startswith("You are a helpful AI assistant.")
        assert messages[-1] == {"role": "user", "content": "How are you?"}

    def test_flat_generation_parameters(self):
        payload = _adapter().build_payload("Hello", [])

        assert payload["model"] == "gpt-4o-mini"
        assert payload["temperature"] == 0.7
        assert payload["max_tokens"] == 1024
        assert "top_p" not in payload

    def test_bearer_header(self):
        headers = _adapter().build_headers()
        assert headers["Authorization"] == "Bearer sk-openai-test"


class TestOpenAIComplete:
    """Test complete() against a mocked transport."""

    @pytest.mark.asyncio
    async def test_success(self):
        transport = RecordingTransport(lambda r: httpx.Response(200, json=openai_body("Fallback answer ")))
        adapter = _adapter(transport)

        text = await adapter.complete("Hello", [])

        assert text == "Fallback answer"
        request = transport.requests[0]
        assert request.url.host == "api.openai.com"
        assert request.url.path == "/v1/chat/completions"
        assert request.headers["Authorization"] == "Bearer sk-openai-test"
        assert transport.json_bodies()[0]["messages"][-1]["content"] == "Hello"

    @pytest.mark.asyncio
    async def test_auth_error(self):
        from chat_gateway.gateway.errors import AuthenticationError

        body = {"error": {"message": "Incorrect API key provided", "type": "invalid_request_error"}}
        adapter = _adapter(RecordingTransport(lambda r: httpx.Response(401, json=body)))

        with pytest.raises(AuthenticationError) as exc_info:
            await adapter.complete("Hello", [])

        assert str(exc_info.value) == "OpenAI API failed: Incorrect API key provided"
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {"choices": []},
            {"choices": [{"message": {"content": None}}]},
            {"choices": [{"message": {"content": ""}}]},
            {"choices": [{"message": {"content": "\n\t"}}]},
        ],
    )
    async def test_empty_content(self, body):
        from chat_gateway.gateway.errors import EmptyResponseError

        adapter = _adapter(RecordingTransport(lambda r: httpx.Response(200, json=body)))

        with pytest.raises(EmptyResponseError, match="OpenAI returned empty response"):
            await adapter.complete("Hello", [])

    @pytest.mark.asyncio
    async def test_list_models(self):
        body = {"object": "list", "data": [{"id": "gpt-4o-mini"}, {"id": "gpt-4o"}]}
        adapter = _adapter(RecordingTransport(lambda r: httpx.Response(200, json=body)))

        assert await adapter.list_models() == ["gpt-4o-mini", "gpt-4o"]

    @pytest.mark.asyncio
    async def test_list_models_skips_malformed_entries(self):
        body = {"object": "list", "data": ["junk", {"object": "model"}, {"id": 7}, {"id": "gpt-4o"}]}
        adapter = _adapter(RecordingTransport(lambda r: httpx.Response(200, json=body)))

        assert await adapter.list_models() == ["gpt-4o"]
