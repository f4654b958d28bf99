# errors.py
"""Application error taxonomy.

Services raise these; the app maps them to HTTP responses of the form
``{"error": <kind>, "detail": <message>}``.
"""

from typing import Optional


class AppError(Exception):
    """Base class for errors that carry a stable kind and an HTTP status."""

    status_code = 500
    kind = "internal"
    default_message = "Internal error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(AppError):
    """Referenced entity is absent or soft-deleted."""

    status_code = 404
    kind = "not_found"
    default_message = "Not found"


class BadRequest(AppError):
    """Client data violates a business rule."""

    status_code = 400
    kind = "bad_request"
    default_message = "Bad request"


class Unauthorized(AppError):
    status_code = 401
    kind = "unauthorized"
    default_message = "Could not validate credentials"


class Forbidden(AppError):
    """Caller does not meet the role floor for the budget."""

    status_code = 403
    kind = "forbidden"
    default_message = "Access to this budget denied"


class DatabaseError(AppError):
    """A unit of work failed in the storage layer and was rolled back."""

    status_code = 500
    kind = "db"
    default_message = "Database error"


class InternalError(AppError):
    status_code = 500
    kind = "internal"
    default_message = "Internal error"
