"""Git Operations Package"""

from autocommit.git.repository import open_repository, find_repo_root, repo_root, EMPTY_TREE_SHA
from autocommit.git.classifier import ChangeClassifier, FileChangeSet
from autocommit.git.diff_composer import DiffComposer, synthesize_new_file_hunk
from autocommit.git.commit_writer import CommitWriter, CommitResult, CommitState, Identity
from autocommit.git.pusher import Pusher, PushOutcome, PushProgress, suggest_fix
from autocommit.git.workspace import Workspace

__all__ = [
    "open_repository",
    "find_repo_root",
    "repo_root",
    "EMPTY_TREE_SHA",
    "ChangeClassifier",
    "FileChangeSet",
    "DiffComposer",
    "synthesize_new_file_hunk",
    "CommitWriter",
    "CommitResult",
    "CommitState",
    "Identity",
    "Pusher",
    "PushOutcome",
    "PushProgress",
    "suggest_fix",
    "Workspace",
]
