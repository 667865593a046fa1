"""CLI Commands"""

import os

from autocommit.config import Config, ConfigManager, ENV_OVERRIDES, KEY_FIELDS, VALID_BACKENDS
from autocommit.llm import LLMError, get_backend
from autocommit.output import bold, dim, info, print_error, print_success
from autocommit.telemetry import global_log_path, repo_log_path, summarize


def _mask(secret: str) -> str:
    if not secret:
        return "(not set)"
    return f"{secret[:4]}…{secret[-4:]}" if len(secret) > 12 else "****"


def display_config(manager: ConfigManager) -> int:
    """Display current configuration."""
    config = manager.load()
    sources = manager.loaded_from()

    print(f"\n{bold('Current Configuration')}\n")

    if sources:
        for path in sources:
            print(f"  {dim('Loaded from:')} {path}")
    else:
        print(f"  {dim('Loaded from:')} defaults (no .commitrc found)")

    env_set = [var for var in ENV_OVERRIDES if os.environ.get(var)]
    if env_set:
        print(f"  {dim('Environment overrides:')} {', '.join(env_set)}")

    print()
    print(f"  {bold('Settings:')}")
    print(f"    backend:        {info(config.backend)}")
    print(f"    model:          {info(config.model)}")
    print(f"    provider:       {info(config.provider or 'auto')}")
    print(f"    temperature:    {info(str(config.temperature))}")
    print(f"    auto_push:      {info(str(config.auto_push).lower())}")
    print(f"    timing_enabled: {info(str(config.timing_enabled).lower())}")
    print(f"    api key:        {info(_mask(config.api_key_for()))}")

    print(f"\n  {dim('Config locations:')}")
    print(f"    Global: {manager.global_path}")
    print(f"    Local:  {manager.local_path or '.commitrc (in repository root)'}")
    print(f"\n  {dim('Run')} commit --setup {dim('to configure')}\n")

    return 0


def run_setup(manager: ConfigManager) -> int:
    """Quick setup wizard."""
    current = manager.load()
    print(f"\n{bold('Setup Wizard')}\n")

    backends = sorted(VALID_BACKENDS)
    print("Choose backend:\n")
    for i, name in enumerate(backends, 1):
        print(f"  {i}. {name}")
    print()

    backend = current.backend
    while True:
        choice = input(f"Select [1-{len(backends)}] (Enter for {current.backend}): ").strip()
        if not choice:
            break
        if choice.isdigit() and 1 <= int(choice) <= len(backends):
            backend = backends[int(choice) - 1]
            break

    model = input(f"\nModel (Enter for {current.model}): ").strip() or current.model
    api_key = input(f"API key for {backend} (Enter to keep current): ").strip()

    print("\nPush automatically after committing? [y/N]: ", end='')
    auto_push = input().strip().lower() == 'y'

    updates = {"backend": backend, "model": model, "auto_push": auto_push}
    if api_key:
        updates[KEY_FIELDS[backend]] = api_key
    config = current.with_overrides(**updates)

    path = manager.save(config, global_config=True)
    print_success(f"Saved to {path}")
    return 0


def show_stats(repo_root=None) -> int:
    """Print the stats summary for the global log, or the repository log."""
    path = repo_log_path(repo_root) if repo_root else global_log_path()
    print(summarize(path))
    return 0


def _backend_for(config: Config):
    backend = get_backend(config.backend)
    key = config.api_key_for()
    if key:
        backend.set_api_key(key)
    return backend


def list_models(config: Config) -> int:
    try:
        models = _backend_for(config).list_models()
    except LLMError as e:
        print_error(str(e))
        return 1

    for model in sorted(models, key=lambda m: m.id):
        line = bold(model.id)
        if model.name and model.name != model.id:
            line += f"  {model.name}"
        if model.pricing:
            line += f"  {dim(model.pricing)}"
        print(line)
    return 0


def show_balance(config: Config) -> int:
    try:
        balance = _backend_for(config).get_balance()
    except LLMError as e:
        print_error(str(e))
        return 1
    print(f"{config.backend} balance: {bold(balance)}")
    return 0
