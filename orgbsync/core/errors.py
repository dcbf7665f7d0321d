"""Domain-specific errors for orgbsync."""

from __future__ import annotations


class OrgbsyncError(Exception):
    """Base error for orgbsync."""


class ConfigLoadError(OrgbsyncError):
    """Raised when a config file cannot be read."""


class ConfigValidationError(OrgbsyncError):
    """Raised when a config file does not conform to schema or semantics."""


class RemoteError(OrgbsyncError):
    """Base error for failed calls against the lighting daemon."""


class ConnectionLostError(RemoteError):
    """Raised when the transport to the daemon is no longer usable."""


class RemoteOperationError(RemoteError):
    """Raised when the daemon rejects or fails a request on a live connection."""


class ControllerCountMismatchError(RemoteOperationError):
    """Raised when the daemon reports a controller count other than expected."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f"Expected {expected} controllers, daemon reports {actual}")
        self.expected = expected
        self.actual = actual


class RemoteDependencyError(OrgbsyncError):
    """Raised when the remote client library is unavailable."""


class RetryExhaustedError(OrgbsyncError):
    """Raised when a logical call used up all of its attempts."""

    def __init__(self, operation: str, attempts: int, last_error: BaseException | None) -> None:
        detail = f": {last_error}" if last_error is not None else ""
        super().__init__(f"Unable to {operation} after {attempts} attempts{detail}")
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error


class EventFeedClosedError(OrgbsyncError):
    """Raised when the power event feed has been lost."""
