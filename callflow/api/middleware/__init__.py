"""API Middleware"""

from .auth import get_api_key, require_admin

from .webhook_security import public_request_url, validate_twilio_webhook

__all__ = [
    # Auth
    "get_api_key",
    "require_admin",
    # Webhook security
    "public_request_url",
    "validate_twilio_webhook"
]
