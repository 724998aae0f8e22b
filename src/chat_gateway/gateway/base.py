"""Provider adapter base class.

A provider adapter translates the canonical (message, history) pair into
one provider's wire request and that provider's response back into text.
Subclasses supply the wire shapes; the HTTP round trip and the mapping of
transport outcomes onto ProviderError live here so every provider fails
the same way.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

import httpx

from ..config import DEFAULT_SYSTEM_PROMPT, ProviderConfig
from .errors import (
    AuthenticationError,
    EmptyResponseError,
    ProviderError,
    ProviderHTTPError,
    RateLimitError,
    TransportFailure,
)
from .types import ChatTurn

logger = logging.getLogger(__name__)


class ProviderAdapter(ABC):
    """Shared capability interface for every backend in the fallback chain.

    Adapters hold no per-request state: each ``complete`` call opens its own
    client, performs exactly one request, and either returns trimmed text
    or raises ProviderError. Retrying is the orchestrator's job.
    """

    #: Human-readable provider label used in error messages.
    display_name = "Provider"

    def __init__(
        self,
        config: ProviderConfig,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the adapter.

        Args:
            config: Immutable provider configuration, credential resolved.
            system_prompt: Fixed instruction placed before the conversation.
            transport: Optional httpx transport (tests inject MockTransport).
        """
        self._config = config
        self._system_prompt = system_prompt
        self._transport = transport

    @property
    def name(self) -> str:
        return self._config.name

    @property
    def model(self) -> str:
        return self._config.model

    @property
    def config(self) -> ProviderConfig:
        return self._config

    def is_available(self) -> bool:
        """True iff the provider is enabled and its credential is present."""
        return self._config.enabled and self._config.has_credential

    # ------------------------------------------------------------------
    # Wire contract, implemented per provider
    # ------------------------------------------------------------------

    @abstractmethod
    def build_payload(self, new_message: str, history: Sequence[ChatTurn]) -> Dict[str, Any]:
        """Build the provider-specific JSON body."""

    @abstractmethod
    def extract_text(self, data: Dict[str, Any]) -> Optional[str]:
        """Pull the answer text out of a success body, or None if absent."""

    @abstractmethod
    def build_headers(self) -> Dict[str, str]:
        """Headers for the completion call, including the credential if sent as one."""

    def build_params(self) -> Dict[str, str]:
        """Query parameters for the completion call."""
        return {}

    @abstractmethod
    def extract_model_ids(self, data: Dict[str, Any]) -> List[str]:
        """Pull model identifiers out of a models-listing body."""

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._config.timeout_seconds, transport=self._transport
        )

    def _error(self, cls, message: str, **kwargs) -> ProviderError:
        return cls(f"{self.display_name} API failed: {message}", provider=self.name, **kwargs)

    def _http_error(self, response: httpx.Response) -> ProviderError:
        """Map a non-success response onto the ProviderError hierarchy."""
        status = response.status_code
        message = _reported_error_message(response) or f"HTTP {status}"

        if status == 429:
            retry_after = response.headers.get("Retry-After", "")
            return self._error(
                RateLimitError,
                message,
                status_code=status,
                retry_after=int(retry_after) if retry_after.isdigit() else None,
            )
        if status in (401, 403):
            return self._error(AuthenticationError, message, status_code=status)
        return self._error(ProviderHTTPError, message, status_code=status)

    async def _request_json(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        params: Dict[str, str],
        payload: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        try:
            async with self._client() as client:
                response = await client.request(
                    method, url, headers=headers, params=params, json=payload
                )
        except httpx.TimeoutException:
            raise self._error(
                TransportFailure, f"Timeout after {self._config.timeout_seconds}s"
            )
        except httpx.HTTPError as e:
            raise self._error(TransportFailure, str(e) or type(e).__name__)

        if not response.is_success:
            raise self._http_error(response)

        try:
            data = response.json()
        except ValueError:
            raise self._error(TransportFailure, "invalid JSON in response body")
        if not isinstance(data, dict):
            raise self._error(TransportFailure, "unexpected response body")
        return data

    async def complete(self, new_message: str, history: Sequence[ChatTurn]) -> str:
        """Send one completion request and return the trimmed answer.

        Args:
            new_message: The message to answer.
            history: Already-windowed conversation, oldest first.

        Returns:
            Non-empty, trimmed answer text.

        Raises:
            ProviderError: On any failure, including a success status with
                no usable text.
        """
        payload = self.build_payload(new_message, history)
        logger.info(f"Calling {self.display_name} ({self.model})")
        start_time = time.time()

        data = await self._request_json(
            "POST",
            self._config.endpoint_url(),
            headers=self.build_headers(),
            params=self.build_params(),
            payload=payload,
        )

        text = self.extract_text(data)
        if not isinstance(text, str) or not text.strip():
            logger.debug(f"No response text in {self.display_name} body: {data}")
            raise EmptyResponseError(
                f"{self.display_name} returned empty response", provider=self.name
            )

        latency_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"{self.display_name} response received ({len(text)} chars, {latency_ms}ms)"
        )
        return text.strip()

    async def list_models(self) -> List[str]:
        """List the model identifiers this provider offers for completions.

        Raises:
            ProviderError: If the listing call fails.
        """
        data = await self._request_json(
            "GET",
            self._config.models_endpoint,
            headers=self.build_headers(),
            params=self.build_params(),
        )
        return self.extract_model_ids(data)


def _reported_error_message(response: httpx.Response) -> Optional[str]:
    """Return ``error.message`` from an error body if the provider sent one."""
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, dict):
        message = error.get("message")
        if isinstance(message, str) and message.strip():
            return message.strip()
    return None


def dig(data: Any, *path: Any) -> Any:
    """Traverse nested dicts/lists, returning None at the first missing segment."""
    current = data
    for segment in path:
        if isinstance(segment, int):
            if not isinstance(current, list) or not -len(current) <= segment < len(current):
                return None
        elif not isinstance(current, dict):
            return None
        current = current[segment] if isinstance(segment, int) else current.get(segment)
        if current is None:
            return None
    return current
