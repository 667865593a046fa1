"""Commit Writer - Stage paths and write a commit through the object model.

A commit is built in strictly sequential steps: index -> tree -> commit
object -> HEAD. HEAD only moves in the last step, so a failure anywhere
before it leaves the branch where it was. An unreferenced tree or commit
object may be left behind; git's gc collects those.
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum

from git import Actor, Commit, Repo
from git.exc import GitError
from git.refs import Head

from autocommit.errors import CommitWriteError, NoHeadError, StagingError
from autocommit.git.repository import has_head, repo_root

logger = logging.getLogger(__name__)


class CommitState(Enum):
    IDLE = "idle"
    INDEX_BUILT = "index_built"
    TREE_WRITTEN = "tree_written"
    COMMIT_CREATED = "commit_created"
    REF_UPDATED = "ref_updated"
    FAILED = "failed"


@dataclass(frozen=True)
class CommitResult:
    """Outcome of a successful commit."""
    hash: str
    message: str
    output: str

    @property
    def short_hash(self) -> str:
        return self.hash[:7]


@dataclass(frozen=True)
class Identity:
    """Author/committer used for new commits."""
    name: str
    email: str

    @classmethod
    def from_repo(cls, repo: Repo) -> 'Identity':
        """Resolve identity from GIT_AUTHOR_* env vars and user.name/user.email."""
        actor = Actor.author(repo.config_reader())
        return cls(name=actor.name, email=actor.email)

    def to_actor(self) -> Actor:
        return Actor(self.name, self.email)


def format_commit_output(hexsha: str, message: str) -> str:
    summary = message.strip().split('\n', 1)[0]
    return f"[{hexsha[:7]}] {summary}"


class CommitWriter:
    """Stages files and creates single-parent commits on the current branch."""

    def __init__(self, repo: Repo, identity: Identity | None = None):
        self.repo = repo
        self.identity = identity
        self.state = CommitState.IDLE

    def add_files(self, paths) -> None:
        """Stage exactly `paths`. Staging an already-staged path is a no-op."""
        root = repo_root(self.repo)
        index = self.repo.index
        indexed = {path for path, _stage in index.entries}

        to_add, to_remove = [], []
        for path in paths:
            full_path = root / path
            if full_path.is_file() or full_path.is_symlink():
                if not full_path.is_symlink() and not os.access(full_path, os.R_OK):
                    self.state = CommitState.FAILED
                    raise StagingError(path, "permission denied")
                if path not in to_add:
                    to_add.append(path)
            elif not full_path.exists() and path in indexed:
                if path not in to_remove:
                    to_remove.append(path)
            elif not full_path.exists() and self._in_head(path):
                # Deletion already staged (`git rm`)
                continue
            else:
                self.state = CommitState.FAILED
                raise StagingError(path, "no such file")

        try:
            if to_add:
                index.add(to_add)
            if to_remove:
                index.remove(to_remove)
            index.write()
        except OSError as e:
            self.state = CommitState.FAILED
            raise StagingError(getattr(e, 'filename', None) or (to_add or to_remove)[0], str(e))

        logger.debug("Staged %d paths, removed %d", len(to_add), len(to_remove))
        self.state = CommitState.INDEX_BUILT

    def _in_head(self, path: str) -> bool:
        if not has_head(self.repo):
            return False
        try:
            self.repo.head.commit.tree.join(path)
        except KeyError:
            return False
        return True

    def commit(self, message: str) -> CommitResult:
        """Commit the current index with HEAD as sole parent."""
        if not has_head(self.repo):
            self.state = CommitState.FAILED
            raise NoHeadError("Cannot commit on an unborn HEAD; create the initial commit first")
        return self._write(message, [self.repo.head.commit])

    def commit_initial(self, message: str) -> CommitResult:
        """Create the root commit of a repository whose HEAD is unborn."""
        if has_head(self.repo):
            raise CommitWriteError("Repository already has commits")
        return self._write(message, [])

    def _write(self, message: str, parents: list) -> CommitResult:
        try:
            identity = self.identity or Identity.from_repo(self.repo)
            actor = identity.to_actor()
            tree = self.repo.index.write_tree()
            self.state = CommitState.TREE_WRITTEN

            commit = Commit.create_from_tree(
                self.repo, tree, message,
                parent_commits=parents,
                head=False,
                author=actor,
                committer=actor,
            )
            self.state = CommitState.COMMIT_CREATED
        except (GitError, OSError, ValueError) as e:
            self.state = CommitState.FAILED
            raise CommitWriteError(f"Failed to write commit object: {e}")

        summary = message.strip().split('\n', 1)[0]
        try:
            self._move_head(commit, summary, initial=not parents)
        except (GitError, OSError, ValueError) as e:
            self.state = CommitState.FAILED
            raise CommitWriteError(f"Failed to update HEAD: {e}")
        self.state = CommitState.REF_UPDATED

        logger.debug("Created commit %s with %d parent(s)", commit.hexsha, len(parents))
        return CommitResult(
            hash=commit.hexsha,
            message=message,
            output=format_commit_output(commit.hexsha, message),
        )

    def _move_head(self, commit: Commit, summary: str, initial: bool) -> None:
        if not initial:
            self.repo.head.set_commit(commit, logmsg=f"commit: {summary}")
            return

        # HEAD points at a branch that doesn't exist yet
        branch = Head.create(
            self.repo, self.repo.head.ref, commit,
            logmsg=f"commit (initial): {summary}",
        )
        self.repo.head.set_reference(branch)
