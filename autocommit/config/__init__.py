"""Configuration Management Package

Settings cascade, later sources winning:

1. Built-in defaults
2. Global .commitrc ($XDG_CONFIG_HOME/commit/.commitrc, else ~/.config/commit/.commitrc)
3. Local .commitrc in the repository root
4. Environment variables (COMMIT_BACKEND, COMMIT_MODEL, *_API_KEY)
5. Command-line flags, applied by the CLI with Config.with_overrides()

Config files are JSON:
{
    "backend": "openrouter",
    "model": "x-ai/grok-code-fast-1",
    "auto_push": true
}
"""

import json
import os
import sys
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Optional

from autocommit import APP_DIR_NAME
from autocommit.prompts import DEFAULT_INSTRUCTIONS

VALID_BACKENDS = {"openrouter", "zen", "claude"}

CONFIG_FILENAME = ".commitrc"
PROMPT_FILENAME = "prompt.txt"

ENV_OVERRIDES = {
    "COMMIT_BACKEND": "backend",
    "COMMIT_MODEL": "model",
    "OPENROUTER_API_KEY": "openrouter_api_key",
    "ZEN_API_KEY": "zen_api_key",
    "ANTHROPIC_API_KEY": "anthropic_api_key",
}

# backend name -> Config field holding its API key
KEY_FIELDS = {
    "openrouter": "openrouter_api_key",
    "zen": "zen_api_key",
    "claude": "anthropic_api_key",
}

_SECRET_FIELDS = set(KEY_FIELDS.values())


@dataclass(frozen=True)
class Config:
    """Immutable settings snapshot for one run."""
    backend: str = "openrouter"
    model: str = "x-ai/grok-code-fast-1"
    provider: str = ""
    temperature: float = 0.25  # negative means "let the backend decide"
    auto_push: bool = False
    timing_enabled: bool = False
    openrouter_api_key: str = ""
    zen_api_key: str = ""
    anthropic_api_key: str = ""
    instructions: str = DEFAULT_INSTRUCTIONS

    def to_dict(self, include_secrets: bool = True) -> dict:
        data = asdict(self)
        data.pop("instructions")
        for key in _SECRET_FIELDS:
            if not include_secrets or not data[key]:
                del data[key]
        return data

    def api_key_for(self, backend: str | None = None) -> str:
        field = KEY_FIELDS.get(backend or self.backend)
        return getattr(self, field) if field else ""

    def with_overrides(self, **overrides) -> 'Config':
        """Copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self

    @staticmethod
    def validated(data: dict) -> tuple[dict, list[str]]:
        """Drop invalid values from `data`; return (clean data, warnings)."""
        warnings = []
        clean = dict(data)
        defaults = Config()

        if "backend" in clean and clean["backend"] not in VALID_BACKENDS:
            warnings.append(f"Invalid backend '{clean['backend']}', using '{defaults.backend}'")
            del clean["backend"]

        if "temperature" in clean:
            try:
                clean["temperature"] = float(clean["temperature"])
            except (TypeError, ValueError):
                warnings.append(f"Invalid temperature '{clean['temperature']}', using {defaults.temperature}")
                del clean["temperature"]

        for key in ("auto_push", "timing_enabled"):
            if key in clean and not isinstance(clean[key], bool):
                clean[key] = str(clean[key]).strip().lower() in ("1", "true", "yes", "on")

        return clean, warnings

    @classmethod
    def from_dict(cls, data: dict, base: Optional['Config'] = None) -> 'Config':
        valid_keys = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        clean, warnings = cls.validated(filtered)
        for warning in warnings:
            print(f"Config warning: {warning}", file=sys.stderr)
        return replace(base or cls(), **clean)


def global_config_dir() -> Path:
    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else Path.home() / ".config"
    return base / APP_DIR_NAME


class ConfigManager:
    """Loads the cascaded configuration and saves config files."""

    def __init__(self, repo_root: Path | None = None, global_dir: Path | None = None):
        self.repo_root = repo_root
        self.global_dir = global_dir or global_config_dir()
        self._config: Optional[Config] = None
        self._loaded_from: list[Path] = []

    @property
    def global_path(self) -> Path:
        return self.global_dir / CONFIG_FILENAME

    @property
    def local_path(self) -> Path | None:
        return self.repo_root / CONFIG_FILENAME if self.repo_root else None

    def load(self) -> Config:
        if self._config is not None:
            return self._config

        config = Config()
        for path in (self.global_path, self.local_path):
            if path is not None and path.exists():
                config = Config.from_dict(self._read_file(path), base=config)
                self._loaded_from.append(path)

        instructions = self._load_instructions()
        if instructions:
            config = replace(config, instructions=instructions)

        env = {field: os.environ[var] for var, field in ENV_OVERRIDES.items() if os.environ.get(var)}
        if env:
            config = Config.from_dict(env, base=config)

        self._config = config
        return config

    def _read_file(self, path: Path) -> dict:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            print(f"Warning: Could not load {path}: {e}", file=sys.stderr)
            return {}
        if not isinstance(data, dict):
            print(f"Warning: Could not load {path}: expected a JSON object", file=sys.stderr)
            return {}
        return data

    def _load_instructions(self) -> str:
        """Custom prompt text; the repository's prompt.txt wins over the global one."""
        candidates = []
        if self.repo_root:
            candidates.append(self.repo_root / ".commit" / PROMPT_FILENAME)
        candidates.append(self.global_dir / PROMPT_FILENAME)
        for path in candidates:
            try:
                content = path.read_text(encoding='utf-8')
            except OSError:
                continue
            if content.strip():
                return content
        return ""

    def save(self, config: Config, global_config: bool = True) -> Path:
        path = self.global_path if global_config or not self.local_path else self.local_path
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(config.to_dict(), f, indent=2)
        return path

    def loaded_from(self) -> list[Path]:
        return list(self._loaded_from)


def load_config(repo_root: Path | None = None) -> Config:
    return ConfigManager(repo_root).load()


__all__ = [
    "Config",
    "ConfigManager",
    "load_config",
    "global_config_dir",
    "VALID_BACKENDS",
    "CONFIG_FILENAME",
    "ENV_OVERRIDES",
    "KEY_FIELDS",
]
