"""Multi-provider completion gateway.

This package turns one chat message plus its conversation history into a
single answer from the first provider in an ordered fallback chain that
can produce one:

- Provider-agnostic request and outcome types
- One adapter per provider wire format (Gemini, OpenAI)
- History windowing to bound per-request payload size
- A sequential fallback orchestrator that records every failed attempt

Example usage:
    from chat_gateway.config import get_config
    from chat_gateway.gateway import CompletionRequest, FallbackOrchestrator

    orchestrator = FallbackOrchestrator.from_config(get_config())
    outcome = await orchestrator.run(CompletionRequest(new_message="Hello"))
"""

from .types import (
    AttemptRecord,
    ChatTurn,
    CompletionOutcome,
    CompletionRequest,
)
from .errors import (
    AuthenticationError,
    EmptyResponseError,
    GatewayError,
    ProviderError,
    ProviderHTTPError,
    RateLimitError,
    RequestValidationError,
    TransportFailure,
)
from .history import truncate
from .base import ProviderAdapter
from .gemini import GeminiAdapter
from .openai import OpenAIAdapter
from .orchestrator import FallbackOrchestrator, build_adapters

__all__ = [
    # Types
    "AttemptRecord",
    "ChatTurn",
    "CompletionOutcome",
    "CompletionRequest",
    # Errors
    "AuthenticationError",
    "EmptyResponseError",
    "GatewayError",
    "ProviderError",
    "ProviderHTTPError",
    "RateLimitError",
    "RequestValidationError",
    "TransportFailure",
    # History
    "truncate",
    # Adapters
    "ProviderAdapter",
    "GeminiAdapter",
    "OpenAIAdapter",
    # Orchestration
    "FallbackOrchestrator",
    "build_adapters",
]
