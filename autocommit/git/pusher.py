"""Push Orchestrator - Push the current branch to origin with diagnostics."""

import logging
import re
from dataclasses import dataclass
from typing import Callable

from git import GitCommandError, PushInfo, RemoteProgress, Repo

from autocommit.errors import PushError

logger = logging.getLogger(__name__)

REMOTE_NAME = "origin"

# (pattern, suggestion) pairs tried in order against the underlying error text
SUGGESTIONS: list[tuple[re.Pattern, str]] = [
    (
        re.compile(r'non-fast-forward|rejected|fetch first', re.IGNORECASE),
        "The remote has changes you don't have locally. Pull first: git pull --rebase {remote} {branch}",
    ),
    (
        re.compile(r'authentication|could not read username|invalid credentials', re.IGNORECASE),
        "Authentication failed. Check your credentials or SSH key for {remote}.",
    ),
]
GENERIC_SUGGESTION = "Check that you have push permissions and that the remote is reachable."

_STAGE_NAMES = {
    RemoteProgress.COUNTING: "counting",
    RemoteProgress.COMPRESSING: "compressing",
    RemoteProgress.WRITING: "writing",
    RemoteProgress.RECEIVING: "receiving",
    RemoteProgress.RESOLVING: "resolving",
    RemoteProgress.FINDING_SOURCES: "finding sources",
    RemoteProgress.CHECKING_OUT: "checking out",
}

_FAILURE_FLAGS = PushInfo.ERROR | PushInfo.REJECTED | PushInfo.REMOTE_REJECTED | PushInfo.REMOTE_FAILURE


@dataclass(frozen=True)
class PushOutcome:
    success: bool
    message: str


@dataclass(frozen=True)
class PushProgress:
    """One progress report: pack building (counting/compressing) or transfer (writing)."""
    stage: str
    current: int
    total: int | None
    message: str = ""


ProgressObserver = Callable[[PushProgress], None]


class _ProgressRelay(RemoteProgress):
    """Forwards GitPython progress lines to an observer on the calling thread."""

    def __init__(self, observer: ProgressObserver):
        super().__init__()
        self._observer = observer

    def update(self, op_code, cur_count, max_count=None, message=''):
        stage = _STAGE_NAMES.get(op_code & RemoteProgress.OP_MASK, "working")
        total = int(max_count) if max_count else None
        self._observer(PushProgress(stage=stage, current=int(cur_count), total=total, message=message or ""))


def suggest_fix(error_text: str, remote: str = REMOTE_NAME, branch: str = "") -> str:
    """Pick a suggestion for a push failure from its error text."""
    for pattern, suggestion in SUGGESTIONS:
        if pattern.search(error_text):
            return suggestion.format(remote=remote, branch=branch or "<branch>")
    return GENERIC_SUGGESTION


class Pusher:
    """Validates origin/upstream state, then pushes the current branch."""

    def __init__(self, repo: Repo):
        self.repo = repo

    def push(self, progress: ProgressObserver | None = None) -> PushOutcome:
        """Push the current branch. Never raises; failures come back as an outcome."""
        try:
            branch = self._push(progress)
        except PushError as e:
            message = str(e)
            if e.suggestion:
                message = f"{message}\n{e.suggestion}"
            logger.debug("Push failed: %s", message)
            return PushOutcome(success=False, message=message)
        return PushOutcome(success=True, message=f"Pushed {branch} to {REMOTE_NAME}")

    def _remote(self):
        for remote in self.repo.remotes:
            if remote.name == REMOTE_NAME:
                return remote
        raise PushError(
            f"No remote named '{REMOTE_NAME}' configured.",
            f"Add one with: git remote add {REMOTE_NAME} <url>",
        )

    def _branch(self):
        try:
            return self.repo.active_branch
        except TypeError:
            raise PushError("HEAD is detached; check out a branch before pushing.")

    def _push(self, progress: ProgressObserver | None) -> str:
        remote = self._remote()
        branch = self._branch()

        if branch.tracking_branch() is None:
            raise PushError(
                f"Branch '{branch.name}' has no upstream branch.",
                f"Set one with: git push --set-upstream {REMOTE_NAME} {branch.name}",
            )

        url = self._remote_url(remote)
        refspec = f"refs/heads/{branch.name}:refs/heads/{branch.name}"
        relay = _ProgressRelay(progress) if progress else None

        try:
            infos = remote.push(refspec=refspec, progress=relay)
        except GitCommandError as e:
            detail = (e.stderr or str(e)).strip()
            raise self._failure(url, branch.name, detail)

        for info in infos:
            if info.flags & _FAILURE_FLAGS:
                raise self._failure(url, branch.name, info.summary.strip())

        push_error = getattr(infos, "error", None)
        if push_error is not None:
            raise self._failure(url, branch.name, str(push_error))

        return branch.name

    def _remote_url(self, remote) -> str:
        try:
            return remote.url
        except AttributeError:
            # Remote section exists but has no url key
            return "<unknown url>"

    def _failure(self, url: str, branch: str, detail: str) -> PushError:
        message = f"Failed to push branch '{branch}' to {url}"
        if detail:
            message = f"{message}: {detail}"
        return PushError(message, suggest_fix(detail, REMOTE_NAME, branch))
