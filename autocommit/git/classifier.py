"""Change Classifier - Bucket working-tree changes by where they differ."""

import logging
from dataclasses import dataclass, field

from git import GitCommandError, Repo

from autocommit.errors import RepositoryError
from autocommit.git.repository import require_head

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileChangeSet:
    """Snapshot of changed paths, relative to the repository root.

    A path edited in the index and again in the worktree shows up in both
    `tracked_modified` and `unstaged_modified`.
    """
    tracked_modified: tuple[str, ...] = field(default_factory=tuple)
    unstaged_modified: tuple[str, ...] = field(default_factory=tuple)
    untracked: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not (self.tracked_modified or self.unstaged_modified or self.untracked)

    @property
    def total_files(self) -> int:
        return len(set(self.all_paths()))

    def tracked_paths(self) -> list[str]:
        return [*self.tracked_modified, *self.unstaged_modified]

    def all_paths(self) -> list[str]:
        return [*self.tracked_modified, *self.unstaged_modified, *self.untracked]


def _diff_paths(diff_index) -> tuple[str, ...]:
    paths = []
    for item in diff_index:
        path = item.b_path or item.a_path
        if path and path not in paths:
            paths.append(path)
    return tuple(paths)


class ChangeClassifier:
    """Reads repository status without touching the index."""

    def __init__(self, repo: Repo):
        self.repo = repo

    def classify(self) -> FileChangeSet:
        """Classify changes against HEAD. Raises NoHeadError when HEAD is unborn."""
        require_head(self.repo)
        try:
            staged = _diff_paths(self.repo.index.diff("HEAD"))
            unstaged = _diff_paths(self.repo.index.diff(None))
            untracked = self._untracked()
        except GitCommandError as e:
            raise RepositoryError(f"Could not read repository status: {e.stderr.strip() or e}")

        logger.debug(
            "Classified %d staged, %d unstaged, %d untracked",
            len(staged), len(unstaged), len(untracked),
        )
        return FileChangeSet(
            tracked_modified=staged,
            unstaged_modified=unstaged,
            untracked=untracked,
        )

    def classify_initial(self) -> FileChangeSet:
        """Classify changes before the first commit: everything staged is new."""
        try:
            staged = tuple(sorted({path for path, _stage in self.repo.index.entries}))
            unstaged = _diff_paths(self.repo.index.diff(None))
            untracked = self._untracked()
        except GitCommandError as e:
            raise RepositoryError(f"Could not read repository status: {e.stderr.strip() or e}")
        return FileChangeSet(
            tracked_modified=staged,
            unstaged_modified=unstaged,
            untracked=untracked,
        )

    def _untracked(self) -> tuple[str, ...]:
        # ls-files never refreshes the index, unlike `git status`
        output = self.repo.git.ls_files("--others", "--exclude-standard", "-z")
        indexed = {path for path, _stage in self.repo.index.entries}
        return tuple(p for p in output.split('\0') if p and p not in indexed)
