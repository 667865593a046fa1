"""LLM Backend Package"""

from autocommit.llm.base import (
    GenerationResult, LLMBackend, LLMError, ModelInfo, parse_chat_completion,
)
from autocommit.llm.claude import ClaudeBackend
from autocommit.llm.openrouter import OpenRouterBackend
from autocommit.llm.zen import ZenBackend

BACKENDS = {
    "openrouter": OpenRouterBackend,
    "zen": ZenBackend,
    "claude": ClaudeBackend,
}


def get_backend(name: str, api_key: str | None = None) -> LLMBackend:
    """Construct a backend by name. Falls back to the backend's env var for the key."""
    if name not in BACKENDS:
        raise LLMError(f"Unknown backend: {name}. Use one of: {', '.join(BACKENDS)}.")
    return BACKENDS[name](api_key=api_key or None)


__all__ = [
    "BACKENDS",
    "GenerationResult",
    "LLMBackend",
    "LLMError",
    "ModelInfo",
    "ClaudeBackend",
    "OpenRouterBackend",
    "ZenBackend",
    "get_backend",
    "parse_chat_completion",
]
