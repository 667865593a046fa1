"""Workspace - The git operations the CLI needs, on one open repository."""

from git import Repo

from autocommit.errors import NoHeadError
from autocommit.git.classifier import ChangeClassifier, FileChangeSet
from autocommit.git.commit_writer import CommitResult, CommitWriter, Identity
from autocommit.git.diff_composer import DiffComposer
from autocommit.git.pusher import ProgressObserver, PushOutcome, Pusher
from autocommit.git.repository import has_head, repo_root


class Workspace:
    """Facade over classifier, diff composer, commit writer and pusher.

    The repository handle is borrowed; whoever opened it closes it.
    """

    def __init__(self, repo: Repo, identity: Identity | None = None):
        self.repo = repo
        self.identity = identity

    @property
    def root(self):
        return repo_root(self.repo)

    @property
    def is_initial(self) -> bool:
        return not has_head(self.repo)

    def classify_changes(self) -> FileChangeSet:
        classifier = ChangeClassifier(self.repo)
        try:
            return classifier.classify()
        except NoHeadError:
            return classifier.classify_initial()

    def compose_diff(self, changes: FileChangeSet, include_untracked: bool, staged_only: bool = False) -> str:
        return DiffComposer(self.repo).compose(changes, include_untracked, staged_only=staged_only)

    def stage_and_commit(self, paths, message: str) -> CommitResult:
        writer = CommitWriter(self.repo, self.identity)
        if paths:
            writer.add_files(paths)
        if self.is_initial:
            return writer.commit_initial(message)
        return writer.commit(message)

    def push(self, progress: ProgressObserver | None = None) -> PushOutcome:
        return Pusher(self.repo).push(progress)
