"""
Exception hierarchy for fortyfive.

Every error the core raises on purpose derives from FortyFiveError so the
CLI can report it with a single handler.
"""


class FortyFiveError(Exception):
    """Base class for all fortyfive errors."""

    pass


class MissingPrerequisiteError(FortyFiveError):
    """Raised when generation is attempted without a profile or equipment."""

    pass


class PersistenceError(FortyFiveError):
    """Raised when a store read or write fails."""

    pass


class SessionStateError(FortyFiveError):
    """Raised when a session operation is invalid in the current phase."""

    pass
