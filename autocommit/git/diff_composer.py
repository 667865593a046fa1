"""Diff Composer - Build the unified diff sent to the LLM.

The real diff (HEAD vs working tree) comes from git's own diff machinery.
Untracked files have no diff of their own, so an all-add hunk is
synthesized for each of them and appended after the real diff.
"""

import hashlib
import logging
import os
import stat

from git import GitCommandError, Repo

from autocommit.errors import RepositoryError
from autocommit.git.classifier import FileChangeSet
from autocommit.git.repository import EMPTY_TREE_SHA, has_head, repo_root

logger = logging.getLogger(__name__)

NO_NEWLINE_MARKER = "\\ No newline at end of file"


def _blob_id(data: bytes) -> str:
    """Abbreviated git object id of a blob with this content."""
    header = f"blob {len(data)}\0".encode()
    return hashlib.sha1(header + data).hexdigest()[:7]


def synthesize_new_file_hunk(path: str, data: bytes, executable: bool = False) -> str | None:
    """Render `data` as a new-file patch for `path`.

    Returns None for content that can't be shown as text (binary or non-UTF-8).
    """
    if b'\0' in data:
        return None
    try:
        text = data.decode('utf-8')
    except UnicodeDecodeError:
        return None

    mode = "100755" if executable else "100644"
    lines = [
        f"diff --git a/{path} b/{path}",
        f"new file mode {mode}",
        f"index 0000000..{_blob_id(data)}",
    ]
    if not text:
        return '\n'.join(lines) + '\n'

    body = text.split('\n')
    if text.endswith('\n'):
        body.pop()

    lines.append("--- /dev/null")
    lines.append(f"+++ b/{path}")
    lines.append(f"@@ -0,0 +1,{len(body)} @@")
    lines.extend(f"+{line}" for line in body)
    if not text.endswith('\n'):
        lines.append(NO_NEWLINE_MARKER)
    return '\n'.join(lines) + '\n'


class DiffComposer:
    """Combines the tracked diff with synthetic hunks for untracked files."""

    def __init__(self, repo: Repo):
        self.repo = repo

    def compose(self, changes: FileChangeSet, include_untracked: bool, staged_only: bool = False) -> str:
        """Return the unified diff for `changes`; empty when there is nothing to show."""
        parts = [self._tracked_diff(staged_only)]
        if include_untracked:
            parts.extend(self._untracked_hunks(changes.untracked))
        return ''.join(parts)

    def _tracked_diff(self, staged_only: bool) -> str:
        base = "HEAD" if has_head(self.repo) else EMPTY_TREE_SHA
        args = ["--no-color", "--no-ext-diff"]
        if staged_only:
            args.append("--cached")
        try:
            diff = self.repo.git.diff(*args, base)
        except GitCommandError as e:
            raise RepositoryError(f"git diff failed: {e.stderr.strip() or e}")

        # GitPython strips the trailing newline from command output
        if diff and not diff.endswith('\n'):
            diff += '\n'
        return diff

    def _untracked_hunks(self, paths) -> list[str]:
        root = repo_root(self.repo)
        hunks = []
        for path in paths:
            full_path = root / path
            try:
                data = full_path.read_bytes()
                executable = bool(os.stat(full_path).st_mode & stat.S_IXUSR)
            except OSError as e:
                logger.debug("Skipping unreadable untracked file %s: %s", path, e)
                continue

            hunk = synthesize_new_file_hunk(path, data, executable)
            if hunk is None:
                logger.debug("Skipping binary untracked file %s", path)
                continue
            hunks.append(hunk)
        return hunks
