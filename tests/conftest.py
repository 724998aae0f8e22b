"""Shared test configuration and fixtures."""
import json
from typing import Any, Callable, Dict, List

import httpx
import pytest

from chat_gateway.config import ProviderConfig

# =============================================================================
# Environment Reset
# =============================================================================


@pytest.fixture(autouse=True)
def reset_env(monkeypatch):
    """Clear credential and gateway environment variables before each test."""
    for var in (
        "GOOGLE_AI_API_KEY",
        "OPENAI_API_KEY",
        "CHAT_GATEWAY_CONFIG",
        "CHAT_GATEWAY_HISTORY_LIMIT",
        "CHAT_GATEWAY_PROVIDER_ORDER",
        "CHAT_GATEWAY_TIMEOUT",
        "CHAT_GATEWAY_DEADLINE",
        "CHAT_GATEWAY_LOG_LEVEL",
    ):
        monkeypatch.delenv(var, raising=False)


# =============================================================================
# Provider Configuration
# =============================================================================


def gemini_config(api_key="gemini-test-key", **overrides) -> ProviderConfig:
    data = dict(
        name="gemini",
        kind="gemini",
        model="gemini-2.5-flash",
        credential_env_var="GOOGLE_AI_API_KEY",
        top_p=0.95,
        top_k=40,
        safety_threshold="BLOCK_MEDIUM_AND_ABOVE",
        api_key=api_key,
    )
    data.update(overrides)
    return ProviderConfig(**data)


def openai_config(api_key="sk-openai-test", **overrides) -> ProviderConfig:
    data = dict(
        name="openai",
        kind="openai",
        model="gpt-4o-mini",
        credential_env_var="OPENAI_API_KEY",
        api_key=api_key,
    )
    data.update(overrides)
    return ProviderConfig(**data)


# =============================================================================
# Wire Doubles
# =============================================================================


def gemini_body(text: str) -> Dict[str, Any]:
    return {"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]}


def openai_body(text: str) -> Dict[str, Any]:
    return {"choices": [{"message": {"role": "assistant", "content": text}}]}


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it handled."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.requests: List[httpx.Request] = []

        def recording_handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(recording_handler)

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def json_bodies(self) -> List[Dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests]


def route_by_host(gemini: httpx.Response, openai: httpx.Response):
    """Build a handler answering Google and OpenAI hosts differently."""

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "generativelanguage.googleapis.com":
            return gemini
        return openai

    return handler
