"""Fallback orchestrator for the chat completion gateway.

The FallbackOrchestrator walks an ordered list of provider adapters:

- Configuration order is the only priority signal
- Unavailable adapters are skipped without an attempt record
- Attempts are strictly sequential; the first success ends the chain
- Every ProviderError becomes an attempt record, none are dropped
"""

import asyncio
import logging
import time
from typing import Dict, List, Optional, Sequence, Type

import httpx

from ..config import GatewayConfig
from .base import ProviderAdapter
from .errors import ProviderError
from .gemini import GeminiAdapter
from .history import DEFAULT_HISTORY_LIMIT, truncate
from .openai import OpenAIAdapter
from .types import AttemptRecord, CompletionOutcome, CompletionRequest

logger = logging.getLogger(__name__)

NO_PROVIDER_SOURCE = "gateway"
NO_PROVIDER_MESSAGE = "No provider configured"

ADAPTER_TYPES: Dict[str, Type[ProviderAdapter]] = {
    "gemini": GeminiAdapter,
    "openai": OpenAIAdapter,
}


def build_adapters(
    config: GatewayConfig,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> List[ProviderAdapter]:
    """Instantiate one adapter per configured provider, in configured order."""
    return [
        ADAPTER_TYPES[provider.kind](
            provider, system_prompt=config.system_prompt, transport=transport
        )
        for provider in config.providers
    ]


class FallbackOrchestrator:
    """Tries each configured adapter in order until one answers.

    Example:
        orchestrator = FallbackOrchestrator.from_config(get_config())
        outcome = await orchestrator.run(CompletionRequest(new_message="Hello"))
        if outcome.ok:
            print(outcome.provider_name, outcome.text)
    """

    def __init__(
        self,
        adapters: Sequence[ProviderAdapter],
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        deadline_seconds: Optional[float] = None,
    ):
        """Initialize the orchestrator.

        Args:
            adapters: Fallback chain, highest priority first.
            history_limit: Number of most recent turns forwarded to a provider.
            deadline_seconds: Optional budget for the whole chain. When it runs
                out the in-flight attempt is cancelled and the chain stops.
        """
        self._adapters = list(adapters)
        self._history_limit = history_limit
        self._deadline_seconds = deadline_seconds

    @classmethod
    def from_config(
        cls,
        config: GatewayConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "FallbackOrchestrator":
        return cls(
            build_adapters(config, transport=transport),
            history_limit=config.history_limit,
            deadline_seconds=config.deadline_seconds,
        )

    @property
    def adapters(self) -> List[ProviderAdapter]:
        return list(self._adapters)

    def available_adapters(self) -> List[ProviderAdapter]:
        return [adapter for adapter in self._adapters if adapter.is_available()]

    def availability(self) -> Dict[str, bool]:
        """Map provider name to availability, in configured order."""
        return {adapter.name: adapter.is_available() for adapter in self._adapters}

    async def run(self, request: CompletionRequest) -> CompletionOutcome:
        """Run one request through the fallback chain.

        Args:
            request: Canonical request; history may be any length.

        Returns:
            CompletionOutcome holding either the first successful answer or
            one attempt record per adapter that was tried.
        """
        if not self.available_adapters():
            logger.error("No provider configured; skipping fallback chain")
            return CompletionOutcome.failure(
                [AttemptRecord(NO_PROVIDER_SOURCE, NO_PROVIDER_MESSAGE)]
            )

        history = truncate(request.history, self._history_limit)
        attempts: List[AttemptRecord] = []
        start_time = time.monotonic()

        for adapter in self._adapters:
            if not adapter.is_available():
                continue

            timeout = None
            if self._deadline_seconds is not None:
                timeout = self._deadline_seconds - (time.monotonic() - start_time)
                if timeout <= 0:
                    attempts.append(AttemptRecord(adapter.name, "deadline exceeded"))
                    break

            try:
                text = await asyncio.wait_for(
                    adapter.complete(request.new_message, history), timeout=timeout
                )
            except asyncio.TimeoutError:
                logger.warning(f"{adapter.name} cancelled: deadline exceeded")
                attempts.append(AttemptRecord(adapter.name, "deadline exceeded"))
                break
            except ProviderError as e:
                logger.warning(f"{adapter.name} failed: {e}")
                attempts.append(AttemptRecord(adapter.name, str(e)))
                continue

            return CompletionOutcome.success(text, adapter.name, adapter.model)

        logger.error(f"All providers failed ({len(attempts)} attempts)")
        return CompletionOutcome.failure(attempts)
