"""Shared fixtures: throwaway repositories and fake LLM backends."""

from pathlib import Path

import pytest
from git import Repo

from autocommit.llm import GenerationResult, LLMBackend


def configure_identity(repo: Repo) -> None:
    with repo.config_writer() as cw:
        cw.set_value("user", "name", "Test User")
        cw.set_value("user", "email", "test@example.com")
        cw.set_value("commit", "gpgsign", "false")


def write(root: Path, rel_path: str, content) -> Path:
    path = Path(root) / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content, encoding='utf-8', newline='')
    return path


def index_snapshot(repo: Repo) -> dict:
    return {key: entry.binsha for key, entry in repo.index.entries.items()}


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep tests away from the user's config, data dir and API keys."""
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "xdg-data"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg-config"))
    for var in ("COMMIT_BACKEND", "COMMIT_MODEL", "OPENROUTER_API_KEY", "ZEN_API_KEY", "ANTHROPIC_API_KEY"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def unborn_repo(tmp_path):
    """Repository with no commits yet."""
    repo = Repo.init(tmp_path / "repo")
    configure_identity(repo)
    yield repo
    repo.close()


@pytest.fixture
def repo(unborn_repo):
    """Repository with one commit containing a.txt and b.txt."""
    root = Path(unborn_repo.working_tree_dir)
    write(root, "a.txt", "alpha\n")
    write(root, "b.txt", "bravo\n")
    unborn_repo.index.add(["a.txt", "b.txt"])
    unborn_repo.index.commit("Initial commit")
    return unborn_repo


@pytest.fixture
def root(repo):
    return Path(repo.working_tree_dir)


class FakeBackend(LLMBackend):
    """Backend returning a canned result; no network."""

    def __init__(self, content="Add feature\n\n- detail", generation_id="gen-1", stats=None):
        super().__init__(api_key="test")
        self.content = content
        self.generation_id = generation_id
        self.calls = []
        if stats is not None:
            # stats: list of return values / exceptions, one per attempt
            self._stats = list(stats)
            self.stats_calls = []
            self.fetch_stats = self._fetch_stats

    @property
    def name(self) -> str:
        return "Fake"

    def generate(self, diff, instructions, model, provider=None, temperature=None):
        self.calls.append(diff)
        return GenerationResult(
            content=self.content,
            generation_id=self.generation_id,
            input_tokens=120,
            output_tokens=30,
            generation_time=15,
        )

    def _fetch_stats(self, generation_id):
        self.stats_calls.append(generation_id)
        outcome = self._stats.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def fake_backend():
    return FakeBackend()
