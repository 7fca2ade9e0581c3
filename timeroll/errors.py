"""Error types raised by the rolling policy, its actions and the writer."""


class RollingError(Exception):
    """Base class for all rotation errors."""


class ConfigurationError(RollingError):
    """Missing or malformed configuration. Fatal at activation."""


class RolloverActionError(RollingError):
    """A mandatory rollover action (the decoupled rename) did not complete."""

    def __init__(self, message: str, action=None):
        super().__init__(message)
        self.action = action


class CompressionError(RollingError):
    """Archive compression failed. Reported, never blocks logging."""

    def __init__(self, message: str, source: str | None = None, target: str | None = None):
        super().__init__(message)
        self.source = source
        self.target = target
