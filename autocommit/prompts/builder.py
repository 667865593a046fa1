"""Prompt Builder - Instructions and diff in the shape the backends expect."""

DEFAULT_INSTRUCTIONS = """\
Generate a commit message with a summary on the first line (in grammatical English), then after it a detailed, dense but concise description.
In the detailed description, if there are multiple, unrelated changes, prefer a list to a paragraph.
If each unrelated change is composed of several sub-changes, prefer nested lists to describe them.
Reply with the commit message only, without code fences or commentary.
"""


def build_prompt(instructions: str, diff: str) -> str:
    """Single user message: instructions, a blank line, then the diff."""
    return f"{(instructions or DEFAULT_INSTRUCTIONS).strip()}\n\nDiff:\n{diff}"
