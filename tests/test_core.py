"""
Unit tests for core modules: Config, ConfigManager, prompt building,
clean_commit_message, argument parsing and the LLM backend plumbing.

Run with:
    pytest tests/test_core.py -v
"""

import http.client
import json
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from autocommit.cli.args import parse_args
from autocommit.cli.commands import run_setup
from autocommit.cli.utils import clean_commit_message, select_paths
from autocommit.config import Config, ConfigManager
from autocommit.git import FileChangeSet
from autocommit.llm import (
    ClaudeBackend, GenerationResult, LLMError, OpenRouterBackend, ZenBackend, get_backend,
    parse_chat_completion,
)
from autocommit.prompts import DEFAULT_INSTRUCTIONS, build_prompt


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

class TestConfig:

    def test_defaults(self):
        c = Config()
        assert c.backend == "openrouter"
        assert c.model == "x-ai/grok-code-fast-1"
        assert c.temperature == 0.25
        assert c.auto_push is False
        assert c.instructions == DEFAULT_INSTRUCTIONS

    def test_to_dict_hides_empty_secrets(self):
        d = Config().to_dict()
        assert "openrouter_api_key" not in d
        assert "instructions" not in d
        assert d["backend"] == "openrouter"

    def test_to_dict_without_secrets(self):
        c = Config(openrouter_api_key="sk-or-123")
        assert c.to_dict()["openrouter_api_key"] == "sk-or-123"
        assert "openrouter_api_key" not in c.to_dict(include_secrets=False)

    def test_from_dict_ignores_unknown_keys(self):
        c = Config.from_dict({"model": "m", "unknown_key": "whatever"})
        assert c.model == "m"
        assert not hasattr(c, "unknown_key")

    def test_invalid_backend_falls_back(self, capsys):
        c = Config.from_dict({"backend": "invalid_backend"})
        assert c.backend == "openrouter"
        assert "Invalid backend" in capsys.readouterr().err

    def test_invalid_temperature_falls_back(self, capsys):
        c = Config.from_dict({"temperature": "hot"})
        assert c.temperature == 0.25
        assert "Invalid temperature" in capsys.readouterr().err

    def test_string_booleans(self):
        c = Config.from_dict({"auto_push": "true", "timing_enabled": "no"})
        assert c.auto_push is True
        assert c.timing_enabled is False

    def test_with_overrides_ignores_none(self):
        c = Config(model="a").with_overrides(model=None, backend="zen")
        assert c.model == "a"
        assert c.backend == "zen"

    @pytest.mark.parametrize("backend, field", [
        ("openrouter", "openrouter_api_key"),
        ("zen", "zen_api_key"),
        ("claude", "anthropic_api_key"),
    ])
    def test_api_key_for(self, backend, field):
        c = Config(backend=backend, **{field: "secret"})
        assert c.api_key_for() == "secret"

    def test_api_key_for_other_backend(self):
        c = Config(backend="openrouter", anthropic_api_key="ant")
        assert c.api_key_for("claude") == "ant"
        assert c.api_key_for("nope") == ""


# ---------------------------------------------------------------------------
# ConfigManager
# ---------------------------------------------------------------------------

class TestConfigManager:

    @pytest.fixture
    def dirs(self, tmp_path):
        global_dir = tmp_path / "global"
        repo_root = tmp_path / "repo"
        global_dir.mkdir()
        repo_root.mkdir()
        return global_dir, repo_root

    def test_defaults_when_no_files(self, dirs):
        global_dir, repo_root = dirs
        manager = ConfigManager(repo_root, global_dir)
        assert manager.load() == Config()
        assert manager.loaded_from() == []

    def test_global_config_dir_from_xdg(self, tmp_path):
        manager = ConfigManager()
        assert manager.global_path == tmp_path / "xdg-config" / "commit" / ".commitrc"

    def test_local_overrides_global(self, dirs):
        global_dir, repo_root = dirs
        (global_dir / ".commitrc").write_text(json.dumps({"model": "global-model", "auto_push": True}))
        (repo_root / ".commitrc").write_text(json.dumps({"model": "local-model"}))

        manager = ConfigManager(repo_root, global_dir)
        config = manager.load()

        assert config.model == "local-model"
        assert config.auto_push is True
        assert manager.loaded_from() == [global_dir / ".commitrc", repo_root / ".commitrc"]

    def test_env_overrides_files(self, dirs, monkeypatch):
        global_dir, repo_root = dirs
        (repo_root / ".commitrc").write_text(json.dumps({"backend": "zen", "model": "file-model"}))
        monkeypatch.setenv("COMMIT_MODEL", "env-model")
        monkeypatch.setenv("ZEN_API_KEY", "zen-key")

        config = ConfigManager(repo_root, global_dir).load()

        assert config.backend == "zen"
        assert config.model == "env-model"
        assert config.api_key_for() == "zen-key"

    def test_repo_prompt_wins_over_global(self, dirs):
        global_dir, repo_root = dirs
        (global_dir / "prompt.txt").write_text("Global instructions")
        (repo_root / ".commit").mkdir()
        (repo_root / ".commit" / "prompt.txt").write_text("Repo instructions")

        assert ConfigManager(repo_root, global_dir).load().instructions == "Repo instructions"

    def test_blank_prompt_file_is_ignored(self, dirs):
        global_dir, repo_root = dirs
        (global_dir / "prompt.txt").write_text("   \n")
        assert ConfigManager(repo_root, global_dir).load().instructions == DEFAULT_INSTRUCTIONS

    def test_save_and_load_roundtrip(self, dirs):
        global_dir, repo_root = dirs
        manager = ConfigManager(repo_root, global_dir)
        path = manager.save(Config(backend="claude", model="claude-sonnet-4-5", auto_push=True))

        assert path == global_dir / ".commitrc"
        loaded = ConfigManager(repo_root, global_dir).load()
        assert loaded.backend == "claude"
        assert loaded.model == "claude-sonnet-4-5"
        assert loaded.auto_push is True

    def test_save_local(self, dirs):
        global_dir, repo_root = dirs
        path = ConfigManager(repo_root, global_dir).save(Config(model="m"), global_config=False)
        assert path == repo_root / ".commitrc"
        assert json.loads(path.read_text())["model"] == "m"

    def test_malformed_json_returns_defaults(self, dirs, capsys):
        global_dir, repo_root = dirs
        (repo_root / ".commitrc").write_text("{not valid json")

        config = ConfigManager(repo_root, global_dir).load()

        assert config == Config()
        assert "Could not load" in capsys.readouterr().err


class TestRunSetup:

    @pytest.fixture
    def answer(self, monkeypatch):
        def _answer(*replies):
            queue = list(replies)
            monkeypatch.setattr("builtins.input", lambda prompt="": queue.pop(0))
        return _answer

    def test_claude_key_is_saved_and_used(self, tmp_path, answer, capsys):
        # backends are listed alphabetically: 1. claude
        answer("1", "", "sk-ant-xyz", "n")
        manager = ConfigManager(None, global_dir=tmp_path)

        assert run_setup(manager) == 0

        saved = json.loads((tmp_path / ".commitrc").read_text())
        assert saved["backend"] == "claude"
        assert saved["anthropic_api_key"] == "sk-ant-xyz"
        assert ConfigManager(None, global_dir=tmp_path).load().api_key_for() == "sk-ant-xyz"

    def test_keep_current_key(self, tmp_path, answer, capsys):
        answer("2", "my-model", "", "y")
        assert run_setup(ConfigManager(None, global_dir=tmp_path)) == 0

        saved = json.loads((tmp_path / ".commitrc").read_text())
        assert saved["backend"] == "openrouter"
        assert saved["model"] == "my-model"
        assert saved["auto_push"] is True
        assert "openrouter_api_key" not in saved


# ---------------------------------------------------------------------------
# Prompt building
# ---------------------------------------------------------------------------

class TestBuildPrompt:

    def test_instructions_then_diff(self):
        prompt = build_prompt("Write a message.", "diff --git a/x b/x\n+1\n")
        assert prompt == "Write a message.\n\nDiff:\ndiff --git a/x b/x\n+1\n"

    def test_empty_instructions_use_default(self):
        prompt = build_prompt("", "d")
        assert prompt.startswith(DEFAULT_INSTRUCTIONS.strip())
        assert prompt.endswith("Diff:\nd")


# ---------------------------------------------------------------------------
# clean_commit_message
# ---------------------------------------------------------------------------

class TestCleanCommitMessage:

    def test_strips_triple_backticks(self):
        raw = "```\nfix(api): handle timeout\n```"
        assert clean_commit_message(raw) == "fix(api): handle timeout"

    def test_strips_language_fence(self):
        raw = "```text\nAdd retry to stats fetch\n\n- wait before each attempt\n```"
        assert clean_commit_message(raw) == "Add retry to stats fetch\n\n- wait before each attempt"

    def test_preserves_body_bullets(self):
        raw = "Add login\n\n- add endpoint\n  - validate creds\n- add tests"
        assert clean_commit_message(raw) == raw

    def test_strips_trailing_diff_block(self):
        raw = (
            "Extract query builder\n\n"
            "- new class\n\n"
            "diff --git a/foo.py b/foo.py\n"
            "+some code"
        )
        result = clean_commit_message(raw)
        assert "diff --git" not in result
        assert result == "Extract query builder\n\n- new class"

    def test_strips_trailing_code_block(self):
        raw = "Escape args\n\n- fix quoting\n\n```python\ncode here\n```"
        assert "```" not in clean_commit_message(raw)

    def test_whitespace_only_preamble(self):
        assert clean_commit_message("   \n\nAdd flag") == "Add flag"

    def test_empty_response(self):
        assert clean_commit_message("  \n ") == ""


# ---------------------------------------------------------------------------
# select_paths
# ---------------------------------------------------------------------------

class TestSelectPaths:

    CHANGES = FileChangeSet(
        tracked_modified=("a.py",),
        unstaged_modified=("a.py", "b.py"),
        untracked=("new.py",),
    )

    def test_all(self):
        assert select_paths(self.CHANGES, 'all') == ["a.py", "a.py", "b.py", "new.py"]

    def test_tracked(self):
        assert select_paths(self.CHANGES, 'tracked') == ["a.py", "a.py", "b.py"]

    def test_none(self):
        assert select_paths(self.CHANGES, 'none') == []


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------

class TestParseArgs:

    def test_defaults(self):
        args = parse_args([])
        assert args.stage is None
        assert args.push is None
        assert args.dry_run is False
        assert args.backend is None

    @pytest.mark.parametrize("flag, stage", [("-a", "all"), ("--tracked", "tracked"), ("--no-add", "none")])
    def test_stage_flags(self, flag, stage):
        assert parse_args([flag]).stage == stage

    def test_push_flags(self):
        assert parse_args(["-p"]).push is True
        assert parse_args(["--no-push"]).push is False

    def test_push_flags_are_exclusive(self):
        with pytest.raises(SystemExit):
            parse_args(["--push", "--no-push"])

    def test_llm_options(self):
        args = parse_args(["-b", "zen", "-m", "big-model", "--temperature", "-1", "--provider", "groq"])
        assert (args.backend, args.model, args.temperature, args.provider) == ("zen", "big-model", -1.0, "groq")

    def test_unknown_backend_rejected(self):
        with pytest.raises(SystemExit):
            parse_args(["-b", "ollama"])


# ---------------------------------------------------------------------------
# LLM plumbing
# ---------------------------------------------------------------------------

class TestGenerationResult:

    def test_defaults_are_unknown(self):
        r = GenerationResult(content="x")
        assert (r.input_tokens, r.output_tokens, r.total_cost, r.latency, r.generation_time) == (-1, -1, -1, -1, -1)

    def test_merged_with_ignores_missing_and_invalid(self):
        r = GenerationResult(content="x", input_tokens=10)
        merged = r.merged_with({"input_tokens": None, "output_tokens": 7, "latency": True, "total_cost": 0.002})
        assert merged.input_tokens == 10
        assert merged.output_tokens == 7
        assert merged.latency == -1
        assert merged.total_cost == 0.002
        assert r.output_tokens == -1


class TestParseChatCompletion:

    def test_parses_content_and_usage(self):
        data = {
            "id": "gen-42",
            "choices": [{"message": {"content": "  Add thing\n"}}],
            "usage": {"prompt_tokens": 100, "completion_tokens": 12},
        }
        r = parse_chat_completion(data, 321)
        assert r.content == "Add thing"
        assert r.generation_id == "gen-42"
        assert (r.input_tokens, r.output_tokens) == (100, 12)
        assert r.generation_time == 321
        assert r.total_cost == -1

    def test_error_body(self):
        with pytest.raises(LLMError, match="model not found"):
            parse_chat_completion({"error": {"message": "model not found"}}, 0)

    def test_missing_content(self):
        with pytest.raises(LLMError):
            parse_chat_completion({"choices": []}, 0)


class TestBackends:

    def test_unknown_backend(self):
        with pytest.raises(LLMError, match="Unknown backend"):
            get_backend("ollama")

    def test_key_from_argument(self):
        backend = get_backend("openrouter", "sk-test")
        assert isinstance(backend, OpenRouterBackend)
        assert backend.api_key == "sk-test"

    def test_key_from_environment(self, monkeypatch):
        monkeypatch.setenv("ZEN_API_KEY", "zen-env")
        backend = get_backend("zen")
        assert isinstance(backend, ZenBackend)
        assert backend.api_key == "zen-env"

    def test_missing_key_raises_before_request(self):
        backend = OpenRouterBackend()
        with patch.object(OpenRouterBackend, "_request") as request:
            with pytest.raises(LLMError, match="OPENROUTER_API_KEY"):
                backend.generate("diff", "instr", "model")
        request.assert_not_called()

    def test_only_openrouter_fetches_stats(self):
        assert get_backend("openrouter", "k").fetch_stats is not None
        assert get_backend("zen", "k").fetch_stats is None

    def test_openrouter_payload(self):
        backend = OpenRouterBackend("sk-test")
        response = {"id": "gen-1", "choices": [{"message": {"content": "Msg"}}], "usage": {}}
        with patch.object(OpenRouterBackend, "_request", return_value=response) as request:
            result = backend.generate("the diff", "instr", "m", provider="groq", temperature=0.25)

        url, payload = request.call_args.args
        assert url.endswith("/chat/completions")
        assert payload["model"] == "m"
        assert payload["provider"] == {"order": ["groq"], "allow_fallbacks": False}
        assert payload["temperature"] == 0.25
        assert payload["messages"][0]["content"].endswith("Diff:\nthe diff")
        assert result.generation_id == "gen-1"

    def test_negative_temperature_is_omitted(self):
        backend = OpenRouterBackend("sk-test")
        response = {"choices": [{"message": {"content": "Msg"}}]}
        with patch.object(OpenRouterBackend, "_request", return_value=response) as request:
            backend.generate("d", "i", "m", temperature=-1)
        assert "temperature" not in request.call_args.args[1]

    def test_openrouter_fetch_stats(self):
        backend = OpenRouterBackend("sk-test")
        body = {"data": {
            "tokens_prompt": 90, "tokens_completion": 11, "total_cost": 0.0004,
            "latency": 200, "generation_time": 650,
        }}
        with patch.object(OpenRouterBackend, "_request", return_value=body) as request:
            stats = backend.fetch_stats("gen-9")

        assert "generation?id=gen-9" in request.call_args.args[0]
        assert stats == {
            "input_tokens": 90, "output_tokens": 11, "total_cost": 0.0004,
            "latency": 200, "generation_time": 650,
        }

    def test_openrouter_fetch_stats_not_ready(self):
        backend = OpenRouterBackend("sk-test")
        with patch.object(OpenRouterBackend, "_request", return_value={"data": None}):
            assert backend.fetch_stats("gen-9") is None

    @pytest.mark.parametrize("failure", [
        http.client.RemoteDisconnected("Remote end closed connection"),
        ConnectionResetError(104, "Connection reset by peer"),
        http.client.IncompleteRead(b"{\"data\""),
    ])
    def test_dropped_connection_raises_llm_error(self, failure):
        backend = OpenRouterBackend("sk-test")
        with patch("urllib.request.urlopen", side_effect=failure):
            with pytest.raises(LLMError, match="OpenRouter connection failed"):
                backend.fetch_stats("gen-9")

    def test_claude_generate_uses_sdk_response(self):
        response = SimpleNamespace(
            id="msg_1",
            content=[SimpleNamespace(type="text", text="  Add feature\n")],
            usage=SimpleNamespace(input_tokens=50, output_tokens=8),
        )
        backend = ClaudeBackend("sk-ant-test")
        backend._client = MagicMock()
        backend._client.messages.create.return_value = response

        result = backend.generate("the diff", "instr", "claude-sonnet-4-5", temperature=-1)

        kwargs = backend._client.messages.create.call_args.kwargs
        assert kwargs["model"] == "claude-sonnet-4-5"
        assert "temperature" not in kwargs
        assert (result.content, result.generation_id) == ("Add feature", "msg_1")
        assert (result.input_tokens, result.output_tokens) == (50, 8)
        assert backend.fetch_stats is None
