# errors.py
"""Application errors. Services raise these; main.py renders them as
``{"success": false, "message": ...}`` with the matching status code."""


class AppError(Exception):
    status_code = 500
    default_message = "Something went wrong. Please try again later."

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(AppError):
    status_code = 404
    default_message = "Resource not found."


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid request."


class UnauthorizedError(AppError):
    status_code = 401
    default_message = "Authentication required."


class ForbiddenError(AppError):
    status_code = 403
    default_message = "Forbidden"


class ConflictError(AppError):
    status_code = 409
    default_message = "The resource was modified concurrently. Please retry."
