"""
Typed errors raised by the store and query services.

The HTTP layer maps each one to a client response using ``status_code``.
"""


class DroughtSystemError(Exception):
    """Base class for store-level errors surfaced to API callers."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DroughtSystemError):
    """A required field is missing or a value is out of range."""

    status_code = 422


class ConflictError(DroughtSystemError):
    """A unique key (e.g. tanker registration number) is already taken."""

    status_code = 409


class NotFoundError(DroughtSystemError):
    """A referenced entity does not exist."""

    status_code = 404
