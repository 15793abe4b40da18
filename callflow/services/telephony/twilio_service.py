"""
Twilio Telephony Service
Renders next-action values as TwiML and validates webhook signatures
"""

from typing import Optional, Dict

from twilio.request_validator import RequestValidator
from twilio.twiml.voice_response import VoiceResponse

from callflow.core.config import settings
from callflow.core.logging import get_logger
from callflow.models.actions import ActionType, NextAction

logger = get_logger(__name__)

TRANSFER_MESSAGE = "Please hold while I connect you."
NO_AGENT_MESSAGE = "Sorry, no one is available to take your call right now. Goodbye."


class TwilioService:
    """Adapter between the call state machine and Twilio call control"""

    def __init__(self):
        self.voice = settings.twilio_voice
        self.gather_timeout = settings.gather_timeout_seconds
        self.speech_action_url = f"{settings.webhook_base_url}/process-speech"
        self.audio_base_url = settings.audio_base_url
        self.validator = (
            RequestValidator(settings.twilio_auth_token) if settings.twilio_auth_token else None
        )

    def render(self, action: NextAction) -> str:
        """
        Render a NextAction as TwiML

        Args:
            action: Action decided by the state machine

        Returns:
            TwiML string
        """
        response = VoiceResponse()

        if action.type == ActionType.PLAY_THEN_GATHER:
            response.play(f"{self.audio_base_url}/{action.audio_ref}")
            self._append_gather(response)

        elif action.type == ActionType.SAY_THEN_GATHER:
            response.say(action.text, voice=self.voice)
            self._append_gather(response)

        elif action.type == ActionType.SAY_AND_END:
            response.say(action.text, voice=self.voice)
            response.hangup()

        elif action.type == ActionType.TRANSFER_TO_HUMAN:
            if action.address:
                response.say(TRANSFER_MESSAGE, voice=self.voice)
                response.dial(action.address)
            else:
                logger.warning("Transfer requested but tenant has no human agent configured")
                response.say(NO_AGENT_MESSAGE, voice=self.voice)
                response.hangup()

        return str(response)

    def validate_signature(self, url: str, params: Dict[str, str], signature: Optional[str]) -> bool:
        """
        Check an X-Twilio-Signature header against the request

        Without an auth token nothing can be verified, so every request fails.
        """
        if self.validator is None:
            logger.error("Cannot validate Twilio signature: TWILIO_AUTH_TOKEN is not set")
            return False
        if not signature:
            return False
        return self.validator.validate(url, params, signature)

    def _append_gather(self, response: VoiceResponse) -> None:
        response.gather(
            input="speech",
            action=self.speech_action_url,
            method="POST",
            timeout=self.gather_timeout
        )
