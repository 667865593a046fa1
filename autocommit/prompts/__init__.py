"""Prompt Package"""

from autocommit.prompts.builder import DEFAULT_INSTRUCTIONS, build_prompt

__all__ = ["DEFAULT_INSTRUCTIONS", "build_prompt"]
