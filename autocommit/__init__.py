"""
autocommit

Generate a commit message from the repository's changes with an LLM,
then commit (and optionally push) it.
"""

__version__ = "1.0.0"

# Sentinel for "not yet known" numeric telemetry, distinct from a real zero
UNKNOWN = -1

# Name of the per-user / per-repository data directory
APP_DIR_NAME = "commit"
