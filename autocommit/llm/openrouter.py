"""OpenRouter LLM Backend"""

import logging
import os
import time
import urllib.parse

from autocommit.llm.base import (
    GenerationResult, HTTPJSONMixin, LLMBackend, LLMError, ModelInfo,
    parse_chat_completion,
)
from autocommit.prompts import build_prompt

logger = logging.getLogger(__name__)


class OpenRouterBackend(HTTPJSONMixin, LLMBackend):
    """OpenRouter chat completions. Requires OPENROUTER_API_KEY or a configured key."""

    BASE_URL = "https://openrouter.ai/api/v1"
    STATS_TIMEOUT = 10

    def __init__(self, api_key: str | None = None):
        super().__init__(api_key or os.environ.get("OPENROUTER_API_KEY"))

    @property
    def name(self) -> str:
        return "OpenRouter"

    def generate(self, diff: str, instructions: str, model: str,
                 provider: str | None = None, temperature: float | None = None) -> GenerationResult:
        self._require_key("OPENROUTER_API_KEY")
        payload = {
            "model": model,
            "messages": [{"role": "user", "content": build_prompt(instructions, diff)}],
        }
        if provider:
            payload["provider"] = {"order": [provider], "allow_fallbacks": False}
        if temperature is not None and temperature >= 0:
            payload["temperature"] = temperature

        start = time.monotonic()
        data = self._request(f"{self.BASE_URL}/chat/completions", payload)
        elapsed_ms = int((time.monotonic() - start) * 1000)
        return parse_chat_completion(data, elapsed_ms)

    def fetch_stats(self, generation_id: str) -> dict | None:
        """Authoritative usage for a finished generation, or None if not ready yet."""
        self._require_key("OPENROUTER_API_KEY")
        query = urllib.parse.urlencode({"id": generation_id})
        data = self._request(f"{self.BASE_URL}/generation?{query}", timeout=self.STATS_TIMEOUT)

        stats = data.get("data") if isinstance(data, dict) else None
        if not isinstance(stats, dict) or "total_cost" not in stats:
            logger.debug("Stats for generation %s not available yet", generation_id)
            return None
        return {
            "input_tokens": stats.get("tokens_prompt"),
            "output_tokens": stats.get("tokens_completion"),
            "total_cost": stats.get("total_cost"),
            "latency": stats.get("latency"),
            "generation_time": stats.get("generation_time"),
        }

    def list_models(self) -> list[ModelInfo]:
        data = self._request(f"{self.BASE_URL}/models")
        models = []
        for item in data.get("data", []):
            pricing = item.get("pricing") or {}
            try:
                prompt = float(pricing.get("prompt", 0)) * 1000
                completion = float(pricing.get("completion", 0)) * 1000
                price = f"${prompt:.4f}/1K input, ${completion:.4f}/1K output"
            except (TypeError, ValueError):
                price = ""
            models.append(ModelInfo(id=item.get("id", ""), name=item.get("name", ""), pricing=price))
        return models

    def get_balance(self) -> str:
        self._require_key("OPENROUTER_API_KEY")
        data = self._request(f"{self.BASE_URL}/credits")
        try:
            credits = data["data"]
            balance = float(credits["total_credits"]) - float(credits["total_usage"])
        except (KeyError, TypeError, ValueError):
            raise LLMError("Unexpected balance response from OpenRouter")
        return f"${balance:.4f}"
