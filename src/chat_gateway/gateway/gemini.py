"""Google Gemini adapter (primary provider).

Gemini receives the whole conversation as a single text blob: the system
instruction, the windowed history as ``User:`` / ``Assistant:`` turns, then
the new message followed by an open ``Assistant:`` cue.
"""

from typing import Any, Dict, List, Optional, Sequence

from .base import ProviderAdapter, dig
from .types import ChatTurn

HARM_CATEGORIES = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)


class GeminiAdapter(ProviderAdapter):
    """Adapter for the Gemini ``generateContent`` endpoint."""

    display_name = "Gemini"

    def render_prompt(self, new_message: str, history: Sequence[ChatTurn]) -> str:
        prompt = f"{self._system_prompt}\n\n"
        for turn in history:
            role = "User" if turn.is_user else "Assistant"
            prompt += f"{role}: {turn.text}\n\n"
        prompt += f"User: {new_message}\n\nAssistant:"
        return prompt

    def build_payload(self, new_message: str, history: Sequence[ChatTurn]) -> Dict[str, Any]:
        config = self._config
        generation_config: Dict[str, Any] = {
            "temperature": config.temperature,
            "maxOutputTokens": config.max_output_tokens,
        }
        if config.top_p is not None:
            generation_config["topP"] = config.top_p
        if config.top_k is not None:
            generation_config["topK"] = config.top_k

        payload: Dict[str, Any] = {
            "contents": [{"parts": [{"text": self.render_prompt(new_message, history)}]}],
            "generationConfig": generation_config,
        }
        if config.safety_threshold:
            payload["safetySettings"] = [
                {"category": category, "threshold": config.safety_threshold}
                for category in HARM_CATEGORIES
            ]
        return payload

    def build_headers(self) -> Dict[str, str]:
        # Credential must never appear in the request URL
        return {
            "Content-Type": "application/json",
            "x-goog-api-key": self._config.api_key or "",
        }

    def extract_text(self, data: Dict[str, Any]) -> Optional[str]:
        return dig(data, "candidates", 0, "content", "parts", 0, "text")

    def extract_model_ids(self, data: Dict[str, Any]) -> List[str]:
        model_ids = []
        for model in data.get("models") or []:
            if not isinstance(model, dict):
                continue
            methods = model.get("supportedGenerationMethods") or []
            name = model.get("name", "")
            if "generateContent" in methods and name:
                model_ids.append(name.split("/", 1)[-1])
        return model_ids
