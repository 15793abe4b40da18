"""
Custom Exceptions for CallFlow
Provides structured error handling across the application
"""

from typing import Optional, Dict, Any


class CallFlowException(Exception):
    """Base exception for all CallFlow errors"""

    def __init__(
        self,
        message: str,
        error_code: str = "UNKNOWN_ERROR",
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API response"""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details
        }


# Authentication Exceptions
class AuthenticationError(CallFlowException):
    """Raised when authentication fails"""

    def __init__(self, message: str = "Authentication failed", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            error_code="AUTH_FAILED",
            details=details,
            status_code=401
        )


class InvalidAPIKeyError(AuthenticationError):
    """Raised when the admin API key is missing or wrong"""

    def __init__(self, message: str = "Invalid or missing API key"):
        super().__init__(message=message, details={"hint": "Send X-API-Key"})


class AdminAPIDisabledError(CallFlowException):
    """Raised when admin routes are called without an admin key configured"""

    def __init__(self):
        super().__init__(
            message="Admin API is disabled",
            error_code="ADMIN_API_DISABLED",
            details={"hint": "Set ADMIN_API_KEY to enable"},
            status_code=403
        )


# Session Exceptions
class SessionError(CallFlowException):
    """Base exception for call-session errors"""
    pass


class SessionStateError(SessionError):
    """Raised when a mutation would break a call-session invariant"""

    def __init__(self, call_id: str, message: str):
        super().__init__(
            message=message,
            error_code="SESSION_STATE_VIOLATION",
            details={"call_id": call_id},
            status_code=409
        )


class SessionStoreError(SessionError):
    """Raised when the session store cannot complete an operation"""

    def __init__(self, operation: str, key: str, message: Optional[str] = None):
        super().__init__(
            message=message or f"Session store {operation} failed for {key}",
            error_code="SESSION_STORE_ERROR",
            details={"operation": operation, "key": key},
            status_code=503
        )


class SessionCorruptedError(SessionStoreError):
    """Raised when a stored record does not decode into a valid model"""

    def __init__(self, key: str, reason: str):
        super().__init__(
            operation="decode",
            key=key,
            message=f"Stored record at {key} is invalid: {reason}"
        )
        self.error_code = "SESSION_CORRUPTED"


# Webhook Exceptions
class WebhookError(CallFlowException):
    """Base exception for webhook errors"""
    pass


class WebhookValidationError(WebhookError):
    """Raised when webhook signature validation fails"""

    def __init__(self, message: str = "Invalid webhook signature"):
        super().__init__(
            message=message,
            error_code="WEBHOOK_VALIDATION_FAILED",
            status_code=401
        )
