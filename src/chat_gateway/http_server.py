"""HTTP server for the chat completion gateway.

This module is the request/response boundary in front of the fallback
orchestrator. It validates the inbound payload, runs the orchestrator, and
maps the outcome to a JSON response with status code and timing metadata.

Design principles:
- Stateless: conversation history is read, windowed and forwarded, never stored
- No end-user auth: credentials belong to the providers, not the callers
- Faults never escape: every unexpected error becomes a generic 500

Usage:
    chat-gateway serve

Or programmatically:
    from chat_gateway.http_server import app
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, StrictStr, ValidationError

from chat_gateway import __version__
from chat_gateway.config import GatewayConfig, get_config
from chat_gateway.gateway import (
    ChatTurn,
    CompletionOutcome,
    CompletionRequest,
    FallbackOrchestrator,
    RequestValidationError,
)
from chat_gateway.gateway.orchestrator import NO_PROVIDER_SOURCE

logger = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE = "AI service temporarily unavailable. Please try again in a moment."
UNEXPECTED_MESSAGE = "An unexpected error occurred. Please try again."
INVALID_MESSAGE = "Valid message is required"


class ChatTurnPayload(BaseModel):
    """One entry of ``conversationHistory``."""

    text: StrictStr
    sender: Literal["user", "assistant"]


class ChatPayload(BaseModel):
    """Request body for ``POST /api/chat``."""

    message: StrictStr = Field(..., description="The message to answer")
    conversationHistory: Optional[List[ChatTurnPayload]] = Field(
        default=None, description="Prior turns, oldest first"
    )


class ProviderStatus(BaseModel):
    name: str
    model: str
    available: bool


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str
    version: str


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_chat_request(body: Any) -> CompletionRequest:
    """Validate a decoded JSON body and build the canonical request.

    Raises:
        RequestValidationError: Missing, non-string or blank message, or a
            malformed history entry.
    """
    try:
        payload = ChatPayload.model_validate(body)
    except ValidationError as e:
        raise RequestValidationError(INVALID_MESSAGE) from e

    message = payload.message.strip()
    if not message:
        raise RequestValidationError(INVALID_MESSAGE)

    history = tuple(
        ChatTurn(text=turn.text, sender=turn.sender)
        for turn in payload.conversationHistory or []
    )
    return CompletionRequest(new_message=message, history=history)


def _failure_body(outcome: CompletionOutcome, config: Optional[GatewayConfig]) -> Dict[str, Any]:
    no_provider = (
        len(outcome.attempts) == 1 and outcome.attempts[0].provider_name == NO_PROVIDER_SOURCE
    )
    if no_provider:
        env_vars = " or ".join(config.credential_env_vars()) if config else "a provider API key"
        response_text = f"No AI provider configured. Please set {env_vars} in the environment."
    else:
        response_text = UNAVAILABLE_MESSAGE

    return {
        "response": response_text,
        "provider": "error",
        "error": outcome.error_summary(),
        "attempts": [attempt.to_dict() for attempt in outcome.attempts],
        "timestamp": _timestamp(),
    }


def create_app(
    config: Optional[GatewayConfig] = None,
    orchestrator: Optional[FallbackOrchestrator] = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        config: Configuration snapshot. If None, the process-wide
            configuration is loaded on first use.
        orchestrator: Prebuilt orchestrator. If None, one is built from
            the configuration.
    """
    app = FastAPI(
        title="Chat Gateway",
        description="Multi-provider LLM completion gateway with ordered fallback",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.config = config
    app.state.orchestrator = orchestrator

    def get_orchestrator() -> FallbackOrchestrator:
        if app.state.orchestrator is None:
            if app.state.config is None:
                app.state.config = get_config()
            app.state.orchestrator = FallbackOrchestrator.from_config(app.state.config)
        return app.state.orchestrator

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health() -> HealthResponse:
        """Liveness probe for load balancers and monitoring."""
        return HealthResponse(status="ok", service="chat-gateway", version=__version__)

    @app.get("/api/providers", response_model=List[ProviderStatus], tags=["Chat"])
    async def providers() -> List[ProviderStatus]:
        """Report the fallback chain in order, with availability."""
        return [
            ProviderStatus(name=a.name, model=a.model, available=a.is_available())
            for a in get_orchestrator().adapters
        ]

    @app.post("/api/chat", tags=["Chat"])
    async def chat(request: Request) -> JSONResponse:
        """Answer one chat message through the provider fallback chain.

        Returns 200 with the answer, 400 for an invalid message, 503 when
        no provider could answer, and 500 for anything unexpected.
        """
        start_time = time.time()

        try:
            body = await request.json()
            completion_request = parse_chat_request(body)
        except RequestValidationError as e:
            return JSONResponse(status_code=400, content={"error": str(e)})
        except Exception:
            logger.exception("Unexpected error while reading chat request")
            return _unexpected_error()

        try:
            orchestrator = get_orchestrator()
            message = completion_request.new_message
            preview = message[:50] + ("..." if len(message) > 50 else "")
            logger.info(
                f"New chat request: message={preview!r} "
                f"history={len(completion_request.history)} "
                f"available={orchestrator.availability()}"
            )

            outcome = await orchestrator.run(completion_request)

            if not outcome.ok:
                return JSONResponse(
                    status_code=503, content=_failure_body(outcome, app.state.config)
                )

            duration_ms = int((time.time() - start_time) * 1000)
            logger.info(f"Response generated in {duration_ms}ms via {outcome.provider_name}")
            return JSONResponse(
                status_code=200,
                content={
                    "response": outcome.text,
                    "provider": outcome.provider_name,
                    "model": outcome.model_name,
                    "timestamp": _timestamp(),
                    "responseTime": duration_ms,
                    "messageLength": len(outcome.text),
                },
            )
        except Exception:
            logger.exception("Unexpected error while handling chat request")
            return _unexpected_error()

    return app


def _unexpected_error() -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={
            "response": UNEXPECTED_MESSAGE,
            "provider": "error",
            "error": "Internal server error",
            "timestamp": _timestamp(),
        },
    )


# FastAPI app instance
app = create_app()
