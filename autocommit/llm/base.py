"""LLM Base Classes and Shared Code"""

import http.client
import json
import socket
import urllib.error
import urllib.request
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace

from autocommit import UNKNOWN


@dataclass(frozen=True)
class GenerationResult:
    """One LLM call's output plus whatever usage data is known for it.

    Numeric fields stay at UNKNOWN (-1) until confirmed by the backend.
    """
    content: str
    generation_id: str = ""
    input_tokens: int = UNKNOWN
    output_tokens: int = UNKNOWN
    total_cost: float = UNKNOWN
    latency: int = UNKNOWN
    generation_time: int = UNKNOWN

    def merged_with(self, stats: dict) -> 'GenerationResult':
        """Copy with fields overwritten by confirmed values from `stats`."""
        updates = {}
        for key in ("input_tokens", "output_tokens", "latency", "generation_time"):
            value = stats.get(key)
            if isinstance(value, (int, float)) and not isinstance(value, bool) and value >= 0:
                updates[key] = int(value)
        cost = stats.get("total_cost")
        if isinstance(cost, (int, float)) and not isinstance(cost, bool) and cost >= 0:
            updates["total_cost"] = float(cost)
        return replace(self, **updates)


@dataclass(frozen=True)
class ModelInfo:
    id: str
    name: str = ""
    pricing: str = ""


class LLMError(Exception):
    """Raised when LLM operations fail."""
    pass


class LLMBackend(ABC):
    """Abstract base for LLM backends.

    `fetch_stats` is an optional capability: backends with a deferred stats
    endpoint replace it with a method taking a generation id.
    """

    DEFAULT_TIMEOUT = 120
    fetch_stats = None

    def __init__(self, api_key: str | None = None):
        self.api_key = api_key or ""

    def set_api_key(self, key: str) -> None:
        self.api_key = key

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def generate(self, diff: str, instructions: str, model: str,
                 provider: str | None = None, temperature: float | None = None) -> GenerationResult:
        pass

    def list_models(self) -> list[ModelInfo]:
        raise LLMError(f"{self.name} does not support listing models")

    def get_balance(self) -> str:
        raise LLMError(f"{self.name} does not report a balance")

    def _require_key(self, env_var: str) -> None:
        if not self.api_key:
            raise LLMError(
                f"No API key found for {self.name}. Set the {env_var} environment variable:\n"
                f"  export {env_var}='your-key-here'"
            )


class HTTPJSONMixin:
    """Small urllib JSON client shared by the HTTP backends."""

    timeout = LLMBackend.DEFAULT_TIMEOUT

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _request(self, url: str, payload: dict | None = None, timeout: float | None = None) -> dict:
        data = json.dumps(payload).encode('utf-8') if payload is not None else None
        req = urllib.request.Request(url, data=data, headers=self._headers())
        try:
            with urllib.request.urlopen(req, timeout=timeout or self.timeout) as response:
                return json.loads(response.read().decode('utf-8'))
        except urllib.error.HTTPError as e:
            if e.code in (401, 403):
                raise LLMError(f"{self.name}: invalid API key ({e.code})")
            raise LLMError(f"{self.name} error ({e.code}): {e.reason}")
        except urllib.error.URLError as e:
            if isinstance(e.reason, socket.timeout):
                raise LLMError(f"{self.name}: request timed out after {timeout or self.timeout}s")
            raise LLMError(f"{self.name} request failed: {e.reason}")
        except socket.timeout:
            raise LLMError(f"{self.name}: request timed out after {timeout or self.timeout}s")
        except (OSError, http.client.HTTPException) as e:
            # Dropped connections and truncated bodies surface outside URLError
            raise LLMError(f"{self.name} connection failed: {e!r}")
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise LLMError(f"Invalid response from {self.name}")


def parse_chat_completion(data: dict, elapsed_ms: int) -> GenerationResult:
    """Turn an OpenAI-style chat completion body into a GenerationResult."""
    try:
        content = data["choices"][0]["message"]["content"] or ""
    except (KeyError, IndexError, TypeError):
        error = data.get("error") if isinstance(data, dict) else None
        if isinstance(error, dict) and error.get("message"):
            raise LLMError(f"Backend error: {error['message']}")
        raise LLMError("Failed to parse response: no message content")

    usage = data.get("usage") or {}
    return GenerationResult(
        content=content.strip(),
        generation_id=data.get("id") or "",
        input_tokens=usage.get("prompt_tokens", UNKNOWN),
        output_tokens=usage.get("completion_tokens", UNKNOWN),
        generation_time=elapsed_ms,
    )
