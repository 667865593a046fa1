"""Exception hierarchy shared by the git and telemetry layers."""


class AutocommitError(Exception):
    """Base class for errors raised by autocommit."""
    pass


class RepositoryError(AutocommitError):
    """Raised when the path is not a repository or git state can't be read."""
    pass


class NoHeadError(RepositoryError):
    """Raised when HEAD is unborn (the repository has no commits yet)."""

    def __init__(self, message: str = "Repository has no commits yet (HEAD is unborn)"):
        super().__init__(message)


class StagingError(AutocommitError):
    """Raised when a path could not be staged."""

    def __init__(self, path: str, reason: str = ""):
        self.path = path
        self.reason = reason
        detail = f": {reason}" if reason else ""
        super().__init__(f"Could not stage '{path}'{detail}")


class CommitWriteError(AutocommitError):
    """Raised when the tree, commit object or ref update could not be written."""
    pass


class PushError(AutocommitError):
    """Raised when a push precondition or the push itself fails."""

    def __init__(self, message: str, suggestion: str = ""):
        self.suggestion = suggestion
        super().__init__(message)


class StatsFetchTimeout(AutocommitError):
    """Raised when every attempt to fetch generation stats failed."""

    def __init__(self, generation_id: str, attempts: int):
        self.generation_id = generation_id
        self.attempts = attempts
        super().__init__(f"No stats for generation {generation_id} after {attempts} attempts")


class LogWriteError(AutocommitError):
    """Raised when a stats log sink could not be written."""

    def __init__(self, path, cause: Exception):
        self.path = path
        self.cause = cause
        super().__init__(f"Could not write stats log {path}: {cause}")
