"""OpenCode Zen LLM Backend"""

import os
import time

from autocommit.llm.base import (
    GenerationResult, HTTPJSONMixin, LLMBackend, ModelInfo,
    parse_chat_completion,
)
from autocommit.prompts import build_prompt


class ZenBackend(HTTPJSONMixin, LLMBackend):
    """OpenCode Zen (OpenAI-compatible). Requires ZEN_API_KEY or a configured key."""

    BASE_URL = "https://opencode.ai/zen/v1"

    def __init__(self, api_key: str | None = None):
        super().__init__(api_key or os.environ.get("ZEN_API_KEY"))

    @property
    def name(self) -> str:
        return "Zen"

    def generate(self, diff: str, instructions: str, model: str,
                 provider: str | None = None, temperature: float | None = None) -> GenerationResult:
        self._require_key("ZEN_API_KEY")
        payload = {
            "model": model,
            "messages": [{"role": "user", "content": build_prompt(instructions, diff)}],
        }
        if temperature is not None and temperature >= 0:
            payload["temperature"] = temperature

        start = time.monotonic()
        data = self._request(f"{self.BASE_URL}/chat/completions", payload)
        return parse_chat_completion(data, int((time.monotonic() - start) * 1000))

    def list_models(self) -> list[ModelInfo]:
        self._require_key("ZEN_API_KEY")
        data = self._request(f"{self.BASE_URL}/models")
        return [ModelInfo(id=item.get("id", ""), name=item.get("id", "")) for item in data.get("data", [])]
