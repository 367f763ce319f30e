"""
Custom Exception Hierarchy

Provides structured exceptions for consistent error handling across the application.
"""
from typing import Any
from enum import Enum


class ErrorCode(str, Enum):
    """Standard error codes for API responses"""

    # General errors (1xxx)
    INTERNAL_ERROR = "ERR_1000"
    VALIDATION_ERROR = "ERR_1001"
    NOT_FOUND = "ERR_1002"
    UNAUTHORIZED = "ERR_1004"
    FORBIDDEN = "ERR_1005"

    # Configuration errors (2xxx)
    CONFIGURATION_ERROR = "ERR_2001"
    STORE_CONFIG_NOT_FOUND = "ERR_2002"

    # Template asset errors (3xxx)
    FILE_MISSING = "ERR_3001"

    # Mail transport errors (4xxx)
    MAIL_SEND_FAILED = "ERR_4001"

    # External service errors (5xxx)
    MAILJET_ERROR = "ERR_5001"
    EXTERNAL_SERVICE_UNAVAILABLE = "ERR_5003"
    EXTERNAL_SERVICE_TIMEOUT = "ERR_5004"


class AppException(Exception):
    """Base exception for all application errors"""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        status_code: int = 500,
        details: dict[str, Any] | None = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API response"""
        return {
            "error": {
                "code": self.error_code.value,
                "message": self.message,
                "details": self.details
            }
        }


class NotFoundException(AppException):
    """Raised when a requested resource is not found"""

    def __init__(
        self,
        resource: str,
        identifier: Any,
        error_code: ErrorCode = ErrorCode.NOT_FOUND
    ):
        super().__init__(
            message=f"{resource} not found: {identifier}",
            error_code=error_code,
            status_code=404,
            details={"resource": resource, "identifier": str(identifier)}
        )


class ConfigurationError(AppException):
    """Raised when local configuration cannot be used (e.g. missing encryption key)"""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            error_code=ErrorCode.CONFIGURATION_ERROR,
            status_code=500,
            details=details
        )


class FileMissingError(AppException):
    """Raised when a template asset file cannot be resolved on disk"""

    def __init__(self, path: str):
        super().__init__(
            message=f"File missing: {path}",
            error_code=ErrorCode.FILE_MISSING,
            status_code=500,
            details={"path": path}
        )


class MailException(AppException):
    """
    Generic mail-failure signal.

    Every failure on the Mailjet SMTP path is converted into this exception;
    the message is the text of the original error.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            error_code=ErrorCode.MAIL_SEND_FAILED,
            status_code=502,
            details=details
        )


class ExternalServiceException(AppException):
    """Base exception for external service errors"""

    def __init__(
        self,
        service_name: str,
        message: str,
        error_code: ErrorCode = ErrorCode.EXTERNAL_SERVICE_UNAVAILABLE,
        details: dict[str, Any] | None = None
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=503,
            details=details
        )
        self.details["service"] = service_name


class MailjetApiError(ExternalServiceException):
    """Raised when the Mailjet REST API fails"""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            service_name="mailjet",
            message=f"Mailjet API error: {message}",
            error_code=ErrorCode.MAILJET_ERROR,
            details=details
        )

    @classmethod
    def from_response(
        cls,
        operation: str,
        response: Any,
        *,
        message: str | None = None,
        max_response_chars: int = 500
    ) -> "MailjetApiError":
        """
        יצירת MailjetApiError מתוך HTTP response בצורה עקבית.

        Args:
            operation: שם הפעולה (לדוגמה: eventcallbackurl, template)
            response: אובייקט response (למשל httpx.Response)
            message: הודעת שגיאה מותאמת (אם לא סופק - נבנית אוטומטית)
            max_response_chars: אורך מקסימלי לשמירת response_text
        """
        status_code = getattr(response, "status_code", None)
        response_text = getattr(response, "text", "") or ""
        return cls(
            message=message or f"{operation} returned status {status_code}",
            details={
                "operation": operation,
                "status_code": status_code,
                "response_text": response_text[:max_response_chars],
            },
        )


class ServiceTimeoutError(ExternalServiceException):
    """Raised when external service times out"""

    def __init__(self, service_name: str, timeout_seconds: float):
        super().__init__(
            service_name=service_name,
            message=f"{service_name} request timed out after {timeout_seconds}s",
            error_code=ErrorCode.EXTERNAL_SERVICE_TIMEOUT,
            details={"timeout_seconds": timeout_seconds}
        )
