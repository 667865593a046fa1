"""Repository handle - open, inspect and close a git repository."""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from git import InvalidGitRepositoryError, NoSuchPathError, Repo

from autocommit.errors import NoHeadError, RepositoryError

logger = logging.getLogger(__name__)

# Well-known id of the empty tree, used as the diff base before the first commit
EMPTY_TREE_SHA = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"


def _open(path: str | Path | None) -> Repo:
    try:
        return Repo(path or Path.cwd(), search_parent_directories=True)
    except (InvalidGitRepositoryError, NoSuchPathError):
        raise RepositoryError("Not inside a git repository")


@contextmanager
def open_repository(path: str | Path | None = None) -> Iterator[Repo]:
    """Open the repository containing `path` and close it on exit."""
    repo = _open(path)
    logger.debug("Opened repository at %s", repo.working_tree_dir)
    try:
        yield repo
    finally:
        repo.close()


def repo_root(repo: Repo) -> Path:
    """Absolute path of the working tree."""
    if repo.working_tree_dir is None:
        raise RepositoryError("Bare repositories have no working tree")
    return Path(repo.working_tree_dir)


def find_repo_root(path: str | Path | None = None) -> Path | None:
    """Working tree root containing `path`, or None outside a repository."""
    try:
        with open_repository(path) as repo:
            return repo_root(repo)
    except RepositoryError:
        return None


def has_head(repo: Repo) -> bool:
    return repo.head.is_valid()


def require_head(repo: Repo):
    """Return the HEAD commit or raise NoHeadError when it is unborn."""
    if not has_head(repo):
        raise NoHeadError()
    return repo.head.commit
