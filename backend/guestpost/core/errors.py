# guestpost/core/errors.py
from typing import Any, List, Optional

from fastapi import HTTPException, status


class AppError(HTTPException):
    """Application error carrying the HTTP status it should be answered with."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR):
        super().__init__(status_code=status_code, detail=message)
        self.message = message

    def __str__(self):
        return self.message


class BadRequestError(AppError):
    def __init__(self, message: str = "Bad request"):
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class ValidationError(BadRequestError):
    def __init__(self, message: str = "Validation failed", errors: Optional[List[Any]] = None):
        super().__init__(message)
        self.errors = errors or []


class UnauthorizedError(AppError):
    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, status.HTTP_401_UNAUTHORIZED)


class ForbiddenError(AppError):
    def __init__(self, message: str = "Forbidden"):
        super().__init__(message, status.HTTP_403_FORBIDDEN)


class NotFoundError(AppError):
    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, status.HTTP_404_NOT_FOUND)


class ConflictError(AppError):
    def __init__(self, message: str = "Resource already exists"):
        super().__init__(message, status.HTTP_409_CONFLICT)


class InternalServerError(AppError):
    """Unexpected failure. `message` is safe to show, `cause` is for the logs."""

    def __init__(self, message: str = "Internal server error", cause: Optional[BaseException] = None):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.cause = cause


class PaymentGatewayAuthError(AppError):
    """The payment provider rejected our credentials (bad id/secret or wrong mode)."""

    def __init__(self, message: str):
        super().__init__(message, status.HTTP_401_UNAUTHORIZED)


class ErrorResponses:
    """Ready-made errors shared by the auth flow and the middleware."""

    @staticmethod
    def invalid_credentials():
        return UnauthorizedError("Invalid credentials")

    @staticmethod
    def invalid_token():
        return UnauthorizedError("Invalid token")

    @staticmethod
    def token_expired():
        return UnauthorizedError("Token has expired")

    @staticmethod
    def user_not_found():
        return NotFoundError("User not found")

    @staticmethod
    def user_exists():
        return ConflictError("User with this email already exists")

    @staticmethod
    def inactive_account():
        return UnauthorizedError("Your account is inactive. Please contact support.")

    @staticmethod
    def admin_only():
        return ForbiddenError("Admin access only")
