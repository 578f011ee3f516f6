"""Domain errors translated to HTTP responses by the handlers in ``main``."""
from typing import Any, List, Optional


class AppError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[Any]] = None, data: Any = None):
        self.message = message or self.default_message
        self.errors = errors
        self.data = data
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Validation errors"


class ConflictError(AppError):
    status_code = 400
    default_message = "Resource already exists"


class AuthError(AppError):
    status_code = 401
    default_message = "Not authorized"


class InvalidTokenError(AuthError):
    default_message = "Not authorized, token failed"


class InvalidCredentialsError(AuthError):
    default_message = "Invalid credentials"


class AccessError(AppError):
    status_code = 403
    default_message = "Access denied"


class ForbiddenError(AccessError):
    default_message = "You are not authorized to access this route"


class CrossDepartmentError(AccessError):
    default_message = "You can only access data from your own department"


class UnauthenticatedError(AccessError):
    status_code = 401
    default_message = "Not authorized, no user found"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Resource not found"


class InternalError(AppError):
    status_code = 500
