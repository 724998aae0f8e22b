"""OpenAI chat-completions adapter (secondary provider)."""

from typing import Any, Dict, List, Optional, Sequence

from .base import ProviderAdapter, dig
from .types import ChatTurn


class OpenAIAdapter(ProviderAdapter):
    """Adapter for the OpenAI ``/v1/chat/completions`` endpoint.

    The conversation is sent as a role-tagged message array: system
    instruction, windowed history, then the new user message.
    """

    display_name = "OpenAI"

    def build_messages(
        self, new_message: str, history: Sequence[ChatTurn]
    ) -> List[Dict[str, str]]:
        messages = [{"role": "system", "content": self._system_prompt}]
        for turn in history:
            messages.append({
                "role": "user" if turn.is_user else "assistant",
                "content": turn.text,
            })
        messages.append({"role": "user", "content": new_message})
        return messages

    def build_payload(self, new_message: str, history: Sequence[ChatTurn]) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self._config.model,
            "messages": self.build_messages(new_message, history),
            "temperature": self._config.temperature,
            "max_tokens": self._config.max_output_tokens,
        }
        if self._config.top_p is not None:
            payload["top_p"] = self._config.top_p
        return payload

    def build_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._config.api_key}",
            "Content-Type": "application/json",
        }

    def extract_text(self, data: Dict[str, Any]) -> Optional[str]:
        return dig(data, "choices", 0, "message", "content")

    def extract_model_ids(self, data: Dict[str, Any]) -> List[str]:
        return [
            m["id"]
            for m in data.get("data") or []
            if isinstance(m, dict) and isinstance(m.get("id"), str)
        ]
