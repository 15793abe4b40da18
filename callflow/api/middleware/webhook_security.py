"""
Webhook Security
Validates Twilio webhook signatures
"""

from fastapi import Request

from callflow.core.config import settings
from callflow.core.exceptions import WebhookValidationError
from callflow.core.logging import get_logger
from callflow.services.telephony.twilio_service import TwilioService

logger = get_logger(__name__)


def public_request_url(request: Request) -> str:
    """URL Twilio signed, honouring proxy forwarding headers"""
    url = str(request.url)
    forwarded_proto = request.headers.get("X-Forwarded-Proto")
    forwarded_host = request.headers.get("X-Forwarded-Host")

    if forwarded_proto and forwarded_host:
        url = f"{forwarded_proto}://{forwarded_host}{request.url.path}"
        if request.url.query:
            url += f"?{request.url.query}"

    return url


async def validate_twilio_webhook(request: Request) -> None:
    """
    Dependency rejecting webhook requests with a bad X-Twilio-Signature

    Does nothing unless TWILIO_VALIDATE_SIGNATURES is enabled.
    """
    if not settings.twilio_validate_signatures:
        return

    if not settings.twilio_auth_token:
        logger.error("Twilio signature validation is enabled but TWILIO_AUTH_TOKEN is empty")
        raise WebhookValidationError("Webhook signatures cannot be verified")

    signature = request.headers.get("X-Twilio-Signature")
    form_data = await request.form()
    params = {key: value for key, value in form_data.items() if isinstance(value, str)}

    if not TwilioService().validate_signature(public_request_url(request), params, signature):
        logger.warning(f"Invalid Twilio signature on {request.url.path}")
        raise WebhookValidationError()
