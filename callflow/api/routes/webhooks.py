"""
Webhook routes for Twilio voice callbacks

Every handler answers with a usable response, whatever fails underneath,
so the caller is never left on a silent line.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Form
from fastapi.responses import Response

from callflow.api.middleware.webhook_security import validate_twilio_webhook
from callflow.core.exceptions import CallFlowException
from callflow.core.logging import get_logger
from callflow.models.actions import NextAction
from callflow.services.call_finalizer import CallFinalizer, get_call_finalizer
from callflow.services.conversation import ConversationController, get_conversation_controller
from callflow.services.telephony.twilio_service import TwilioService

logger = get_logger(__name__)

router = APIRouter(
    prefix="/webhooks",
    tags=["webhooks"],
    dependencies=[Depends(validate_twilio_webhook)]
)

APOLOGY_MESSAGE = "We're sorry, we are having technical difficulties. Please call again later."


def get_twilio_service() -> TwilioService:
    """Dependency to get the Twilio adapter"""
    return TwilioService()


def twiml_response(content: str) -> Response:
    return Response(content=content, media_type="application/xml")


@router.post("/incoming-call")
async def handle_incoming_call(
    CallSid: Optional[str] = Form(None),
    To: Optional[str] = Form(None),
    From: Optional[str] = Form(None),
    controller: ConversationController = Depends(get_conversation_controller),
    twilio: TwilioService = Depends(get_twilio_service)
):
    """
    Handle incoming calls from Twilio

    Called when someone dials a tenant number. ``To`` identifies the tenant.
    """
    if not CallSid or not To:
        logger.warning("Incoming-call webhook without CallSid or To, acknowledging only")
        return twiml_response(twilio.render(NextAction.ack_only()))

    try:
        action = await controller.start_call(tenant_id=To, call_id=CallSid, caller_address=From)
    except CallFlowException as e:
        logger.error(f"Could not start call {CallSid}: {e.error_code} - {e.message}")
        action = NextAction.say_and_end(APOLOGY_MESSAGE)
    except Exception as e:
        logger.error(f"Unexpected error starting call {CallSid}: {e}", exc_info=True)
        action = NextAction.say_and_end(APOLOGY_MESSAGE)

    return twiml_response(twilio.render(action))


@router.post("/process-speech")
async def handle_speech_result(
    CallSid: Optional[str] = Form(None),
    To: Optional[str] = Form(None),
    SpeechResult: Optional[str] = Form(None),
    controller: ConversationController = Depends(get_conversation_controller),
    twilio: TwilioService = Depends(get_twilio_service)
):
    """
    Handle a <Gather input="speech"> result

    An empty or missing SpeechResult is a valid, silent turn.
    """
    if not CallSid or not To:
        logger.warning("Speech webhook without CallSid or To, acknowledging only")
        return twiml_response(twilio.render(NextAction.ack_only()))

    try:
        action = await controller.process_speech(
            tenant_id=To,
            call_id=CallSid,
            utterance=SpeechResult or ""
        )
    except CallFlowException as e:
        logger.error(f"Could not process speech for {CallSid}: {e.error_code} - {e.message}")
        action = NextAction.say_and_end(APOLOGY_MESSAGE)
    except Exception as e:
        logger.error(f"Unexpected error processing speech for {CallSid}: {e}", exc_info=True)
        action = NextAction.say_and_end(APOLOGY_MESSAGE)

    return twiml_response(twilio.render(action))


@router.post("/call-ended")
async def handle_call_ended(
    CallSid: Optional[str] = Form(None),
    To: Optional[str] = Form(None),
    CallStatus: Optional[str] = Form(None),
    finalizer: CallFinalizer = Depends(get_call_finalizer)
):
    """
    Handle the status callback sent when a call ends

    Archives the call and updates analytics. Repeated deliveries are no-ops.
    """
    if not CallSid or not To:
        logger.warning("Call-ended webhook without CallSid or To, acknowledging only")
        return {"status": "ignored"}

    logger.info(f"Call {CallSid} ended with status {CallStatus}")

    try:
        call_log = await finalizer.finalize(tenant_id=To, call_id=CallSid)
    except CallFlowException as e:
        logger.error(f"Could not finalize call {CallSid}: {e.error_code} - {e.message}")
        return {"status": "error", "error": e.error_code}
    except Exception as e:
        logger.error(f"Unexpected error finalizing call {CallSid}: {e}", exc_info=True)
        return {"status": "error", "error": "INTERNAL_ERROR"}

    return {
        "status": "received",
        "finalized": call_log is not None
    }
