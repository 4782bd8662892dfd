"""
Error taxonomy for the push / presence layer.

Public operations never let these escape: they are raised by the platform model
and the backend client, and converted to structured results or log lines by the
callers in services/ and workers/.
"""
from typing import Optional


class PushError(Exception):
    """Base class for push-lifecycle errors."""


class NotAllowedError(PushError):
    """Permission not granted, or a subscription that would allow silent pushes."""


class InvalidStateError(PushError):
    """Operation on an object that is no longer usable (e.g. a closed worker)."""


class BackendError(PushError):
    """Backend answered with a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
