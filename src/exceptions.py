# src/exceptions.py
"""Domain errors raised by services and rendered by the API error handlers.

Every error carries a human message, a stable machine-readable code and
optional details. Subclasses pin the HTTP status they map to.
"""
from typing import Any, Dict, Optional


class AppError(Exception):
    status_code: int = 500
    default_error_code: str = "INTERNAL_ERROR"
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message or self.default_message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        result = {"code": self.error_code, "message": self.message}
        if self.details:
            result["details"] = self.details
        return result


class ValidationError(AppError):
    status_code = 400
    default_error_code = "VALIDATION_ERROR"
    default_message = "Validation failed"


class InvalidContentError(ValidationError):
    default_error_code = "INVALID_CONTENT"
    default_message = "Post content cannot be empty"


class InvalidMediaReferenceError(ValidationError):
    default_error_code = "INVALID_MEDIA_REFERENCE"
    default_message = "One or more media assets not found or not owned by user"


class InvalidScheduleError(ValidationError):
    default_error_code = "INVALID_SCHEDULE"
    default_message = "Scheduled date must be a valid date in the future"


class TooManyFilesError(ValidationError):
    default_error_code = "TOO_MANY_FILES"
    default_message = "Too many files in one upload"


class NotConnectedError(ValidationError):
    default_error_code = "LINKEDIN_NOT_CONNECTED"
    default_message = "LinkedIn not connected"


class UnauthorizedError(AppError):
    status_code = 401
    default_error_code = "UNAUTHORIZED"
    default_message = "Authentication required"


class InvalidCredentialsError(UnauthorizedError):
    default_error_code = "INVALID_CREDENTIALS"
    default_message = "Invalid email or password"


class NotFoundError(AppError):
    status_code = 404
    default_error_code = "NOT_FOUND"
    default_message = "Resource not found"


class ConflictError(AppError):
    status_code = 409
    default_error_code = "CONFLICT"
    default_message = "Resource conflict"


class PayloadTooLargeError(AppError):
    status_code = 413
    default_error_code = "PAYLOAD_TOO_LARGE"
    default_message = "File exceeds the size limit"


class UnsupportedMediaTypeError(AppError):
    status_code = 415
    default_error_code = "UNSUPPORTED_MEDIA_TYPE"
    default_message = "Unsupported file type"


class InternalError(AppError):
    pass


class UpstreamError(AppError):
    status_code = 502
    default_error_code = "UPSTREAM_ERROR"
    default_message = "Upstream service call failed"
