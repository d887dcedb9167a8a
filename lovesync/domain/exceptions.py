"""Error types raised at service boundaries.

The matching core never raises; these are produced by connectors and by
orchestration when configuration is invalid.
"""


class LoveSyncError(Exception):
    """Base class for all lovesync errors."""


class TransientError(LoveSyncError):
    """A failure worth retrying: rate limiting, timeouts, dropped connections.

    Attributes:
        retry_after: Seconds the service asked us to wait, when it said so
    """

    def __init__(self, message: str, retry_after: float | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class FatalError(LoveSyncError):
    """A failure that retrying cannot fix: bad credentials, malformed responses."""


class ConfigurationError(FatalError):
    """Unknown or unconfigured source/destination, or missing options."""
