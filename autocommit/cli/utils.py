"""CLI Utility Functions"""

import re

from autocommit.git import FileChangeSet
from autocommit.output import format_file_list

# Where trailing junk begins: echoed diff output or a closing code fence
JUNK_PATTERNS = re.compile(r'^(diff --git |@@\s|[+-]{3}\s[ab]/|index [0-9a-f]|```)')
FENCE_RE = re.compile(r'^```[\w-]*\s*$')


def clean_commit_message(text: str) -> str:
    """Clean up LLM response to extract just the commit message."""
    lines = text.strip().split('\n')

    # Drop an opening code fence (```, ```text, ...)
    if lines and FENCE_RE.match(lines[0].strip()):
        lines = lines[1:]

    end_idx = len(lines)
    for i in range(1, len(lines)):
        if JUNK_PATTERNS.match(lines[i]):
            end_idx = i
            break

    cleaned = '\n'.join(lines[:end_idx]).strip()
    lines = cleaned.split('\n')
    if lines:
        lines[0] = lines[0].strip('`').strip()
    return '\n'.join(lines).strip()


def select_paths(changes: FileChangeSet, stage: str) -> list[str]:
    """Paths to stage for a staging choice ('all', 'tracked' or 'none').

    Tracked paths may repeat across buckets; staging is idempotent.
    """
    if stage == 'all':
        return changes.all_paths()
    if stage == 'tracked':
        return changes.tracked_paths()
    return []


def describe_changes(changes: FileChangeSet, max_shown: int = 8) -> list[str]:
    lines = []
    lines += format_file_list("Staged:", changes.tracked_modified, max_shown)
    lines += format_file_list("Not staged:", changes.unstaged_modified, max_shown)
    lines += format_file_list("Untracked:", changes.untracked, max_shown)
    return lines


def ask_stage_choice() -> str:
    """Interactive staging prompt. Returns 'all', 'tracked' or 'none'."""
    choices = {'a': 'all', 'y': 'all', 't': 'tracked', 'n': 'none', '': 'none'}
    while True:
        try:
            answer = input("Stage changes? [a]ll / [t]racked only / [n]o: ").strip().lower()
        except (KeyboardInterrupt, EOFError):
            print()
            return 'none'
        if answer in choices:
            return choices[answer]
        print("Enter a, t or n")
