"""Exception hierarchy for experiment sessions.

Each error also derives from the closest builtin exception so that generic
handlers (``except KeyError``, ``except IndexError``) keep working.
"""


class ExperimentError(Exception):
    """Base exception for all experiment session errors."""

    pass


class InvalidTransitionError(ExperimentError, RuntimeError):
    """Raised when begin/end is called out of sequence."""

    pass


class NoSuchTrialError(ExperimentError, IndexError):
    """Raised when requesting a trial outside the valid range."""

    pass


class NoSuchBlockError(ExperimentError, IndexError):
    """Raised when requesting a block outside the valid range."""

    pass


class SchemaViolationError(ExperimentError, ValueError):
    """Raised when data does not match its declared columns."""

    pass


class PathNotFoundError(ExperimentError, FileNotFoundError):
    """Raised when a session is started with a base path that doesn't exist."""

    pass


class UninitializedSessionError(ExperimentError, RuntimeError):
    """Raised when session data is used before Session.begin()."""

    pass


class SettingNotFoundError(ExperimentError, KeyError):
    """Raised when a settings key is absent from the whole parent chain."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(key)

    def __str__(self) -> str:
        return f"Setting not found in settings chain: {self.key!r}"
