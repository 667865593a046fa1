"""Claude (Anthropic) LLM Backend"""

import os
import time

from autocommit.llm.base import GenerationResult, LLMBackend, LLMError, ModelInfo
from autocommit.prompts import build_prompt


class ClaudeBackend(LLMBackend):
    """Claude API backend. Requires ANTHROPIC_API_KEY or a configured key."""

    MAX_TOKENS = 1000

    def __init__(self, api_key: str | None = None):
        super().__init__(api_key or os.environ.get("ANTHROPIC_API_KEY"))
        self._client = None

    @property
    def name(self) -> str:
        return "Claude"

    def set_api_key(self, key: str) -> None:
        super().set_api_key(key)
        self._client = None

    def _get_client(self):
        self._require_key("ANTHROPIC_API_KEY")
        if self._client is None:
            try:
                from anthropic import Anthropic
            except ImportError:
                raise LLMError(
                    "Anthropic SDK not installed. Run:\n"
                    "  pip install anthropic"
                )
            self._client = Anthropic(api_key=self.api_key)
        return self._client

    def generate(self, diff: str, instructions: str, model: str,
                 provider: str | None = None, temperature: float | None = None) -> GenerationResult:
        client = self._get_client()
        from anthropic import APIError, AuthenticationError

        kwargs = {
            "model": model,
            "max_tokens": self.MAX_TOKENS,
            "messages": [{"role": "user", "content": build_prompt(instructions, diff)}],
        }
        if temperature is not None and temperature >= 0:
            kwargs["temperature"] = temperature

        start = time.monotonic()
        try:
            response = client.messages.create(**kwargs)
        except AuthenticationError:
            raise LLMError("Invalid API key. Check your ANTHROPIC_API_KEY.")
        except APIError as e:
            raise LLMError(f"Claude API error: {e.message}")
        elapsed_ms = int((time.monotonic() - start) * 1000)

        content = ""
        for block in response.content:
            if block.type == "text":
                content = block.text.strip()
                break

        return GenerationResult(
            content=content,
            generation_id=response.id,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
            generation_time=elapsed_ms,
        )

    def list_models(self) -> list[ModelInfo]:
        from anthropic import APIError

        try:
            page = self._get_client().models.list()
        except APIError as e:
            raise LLMError(f"Claude API error: {e.message}")
        return [ModelInfo(id=m.id, name=m.display_name) for m in page.data]
