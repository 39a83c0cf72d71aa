"""Exception types raised for invalid debug configuration."""


class DebugConfigError(ValueError):
    """Raised when a debug request carries an invalid option."""
