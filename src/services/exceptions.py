"""Exceptions raised by the service and controller layers."""


class ApiError(Exception):
    """
    Base class for errors that map onto an HTTP response.

    The error-handling middleware renders status_code and the message as a
    plain-text response.
    """

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class NotFoundError(ApiError):
    """Raised when a requested resource does not exist."""

    status_code = 404


class ConflictError(ApiError):
    """Raised when a write would violate a uniqueness rule."""

    status_code = 409
