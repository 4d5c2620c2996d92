"""
Error taxonomy for the publishing pipeline.

Every failure that reaches a caller is one of these, so the caller can tell
"my input was invalid" apart from "the transfer failed" and "the server
rejected the configure".
"""
from typing import Optional


class PublisherError(Exception):
    """Base class for all publishing errors."""


class InvalidInput(PublisherError, ValueError):
    """Bad local file or bad parameter. Never retried."""


class PolicyViolation(PublisherError):
    """Media resolution/aspect ratio/duration outside platform limits."""


class TransferFailed(PublisherError):
    """An upload request (photo, session or chunk) did not complete."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ConfigureFailed(PublisherError):
    """The server rejected a configure request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
