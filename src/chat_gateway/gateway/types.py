"""Gateway types for the chat completion gateway.

This module defines the canonical request/outcome shapes that every
provider adapter and the fallback orchestrator exchange. Nothing here
knows about any provider's wire format.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

USER = "user"
ASSISTANT = "assistant"


@dataclass(frozen=True)
class ChatTurn:
    """One message in a conversation."""

    text: str
    sender: str  # "user" or "assistant"

    @property
    def is_user(self) -> bool:
        return self.sender == USER


@dataclass(frozen=True)
class CompletionRequest:
    """Canonical input to the orchestrator.

    History is ordered oldest first. It may be arbitrarily long; the
    orchestrator windows it before any adapter sees it.
    """

    new_message: str
    history: Sequence[ChatTurn] = ()


@dataclass(frozen=True)
class AttemptRecord:
    """A failed provider attempt, kept in attempt order."""

    provider_name: str
    error_message: str

    def to_dict(self) -> dict:
        return {"provider": self.provider_name, "error": self.error_message}


@dataclass
class CompletionOutcome:
    """Result of one pass through the fallback chain.

    Exactly one shape is populated: a success carries the answer text and
    the provider/model that produced it, a failure carries every attempt
    record in order. Use the ``success`` / ``failure`` constructors.
    """

    text: Optional[str] = None
    provider_name: Optional[str] = None
    model_name: Optional[str] = None
    attempts: List[AttemptRecord] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.text is not None:
            if not self.text.strip():
                raise ValueError("successful outcome requires non-empty text")
            if self.attempts:
                raise ValueError("successful outcome cannot carry attempt records")
            if not self.provider_name or not self.model_name:
                raise ValueError("successful outcome requires provider and model")
        elif not self.attempts:
            raise ValueError("failed outcome requires at least one attempt record")

    @classmethod
    def success(cls, text: str, provider_name: str, model_name: str) -> "CompletionOutcome":
        return cls(text=text, provider_name=provider_name, model_name=model_name)

    @classmethod
    def failure(cls, attempts: Sequence[AttemptRecord]) -> "CompletionOutcome":
        return cls(attempts=list(attempts))

    @property
    def ok(self) -> bool:
        return self.text is not None

    def error_summary(self) -> str:
        """Join attempt records as ``provider: error; provider: error``."""
        return "; ".join(
            f"{a.provider_name}: {a.error_message}" for a in self.attempts
        )
