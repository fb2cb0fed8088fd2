# backend/app/core/errors.py
"""
Application error taxonomy.

Every error that reaches a client is rendered as
``{"error": <code>, "message": <str>, "details": <optional>}``.
"""
from enum import Enum
from typing import Any, Optional

from fastapi import status


class ErrorCode(str, Enum):
    TENANT_ACCESS_DENIED = "TENANT_ACCESS_DENIED"
    INSUFFICIENT_ROLE = "INSUFFICIENT_ROLE"
    LIMIT_EXCEEDED = "LIMIT_EXCEEDED"
    FEATURE_NOT_AVAILABLE = "FEATURE_NOT_AVAILABLE"
    INVALID_REQUEST_BODY = "INVALID_REQUEST_BODY"
    INVALID_PARAMETER_FORMAT = "INVALID_PARAMETER_FORMAT"
    NOT_FOUND = "NOT_FOUND"
    PROVIDER_UNAVAILABLE = "PROVIDER_UNAVAILABLE"
    AUTHENTICATION_REQUIRED = "AUTHENTICATION_REQUIRED"
    TENANT_INACTIVE = "TENANT_INACTIVE"
    CONFLICT = "CONFLICT"
    RATE_LIMITED = "RATE_LIMITED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class AppError(Exception):
    """Base class for errors surfaced to API clients"""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Something went wrong. Please try again later."

    def __init__(self, message: Optional[str] = None, details: Any = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"error": self.code.value, "message": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class TenantAccessDenied(AppError):
    code = ErrorCode.TENANT_ACCESS_DENIED
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You don't have permission to access this organization's data."


class InsufficientRole(AppError):
    code = ErrorCode.INSUFFICIENT_ROLE
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You don't have permission to perform this action."


class LimitExceeded(AppError):
    code = ErrorCode.LIMIT_EXCEEDED
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Your plan limit has been reached. Upgrade your plan to add more."


class FeatureNotAvailable(AppError):
    code = ErrorCode.FEATURE_NOT_AVAILABLE
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "This feature is not included in your plan. Upgrade your plan to unlock it."


class InvalidRequestBody(AppError):
    code = ErrorCode.INVALID_REQUEST_BODY
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request body"


class InvalidParameterFormat(AppError):
    code = ErrorCode.INVALID_PARAMETER_FORMAT
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid parameter format"


class NotFound(AppError):
    code = ErrorCode.NOT_FOUND
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class ProviderUnavailable(AppError):
    code = ErrorCode.PROVIDER_UNAVAILABLE
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "This feature is temporarily unavailable. Please try again later."


class AuthenticationRequired(AppError):
    code = ErrorCode.AUTHENTICATION_REQUIRED
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required"


class TenantInactive(AppError):
    code = ErrorCode.TENANT_INACTIVE
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Your organization's account is inactive. Contact support to reactivate it."


class Conflict(AppError):
    code = ErrorCode.CONFLICT
    status_code = status.HTTP_409_CONFLICT
    default_message = "The request conflicts with existing data"


class RateLimited(AppError):
    code = ErrorCode.RATE_LIMITED
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "Too many requests. Please try again later."


# Guard denial reasons mapped to the exception raised for them
DENIAL_ERRORS = {
    ErrorCode.TENANT_ACCESS_DENIED: TenantAccessDenied,
    ErrorCode.INSUFFICIENT_ROLE: InsufficientRole,
}
