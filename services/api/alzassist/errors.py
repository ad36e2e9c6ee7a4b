from __future__ import annotations


class AppError(Exception):
    """Base for errors that map onto an HTTP status and an envelope message."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, status_code: int | None = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid request"


class AuthenticationError(AppError):
    status_code = 401
    default_message = "Unauthorized"


class ForbiddenError(AppError):
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(AppError):
    status_code = 404

    def __init__(self, resource: str = "Resource"):
        super().__init__(f"{resource} not found")


class StorageError(AppError):
    status_code = 500
    default_message = "Storage unavailable"
