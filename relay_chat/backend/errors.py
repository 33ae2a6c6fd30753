"""Exceptions raised while talking to the inference backend."""


class BackendError(Exception):
    """Base class for inference backend failures."""

    pass


class BackendInvocationError(BackendError):
    """Raised when the backend cannot be invoked before streaming starts.

    Attributes:
        status_code: HTTP status returned by the backend, if any.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class BackendStreamError(BackendError):
    """Raised when the backend stream fails after streaming has begun."""

    pass


class MalformedEventError(BackendStreamError):
    """Raised when an event payload is not a valid token object."""

    pass
