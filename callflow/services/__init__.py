"""Services for CallFlow"""

from .llm.openai_service import OpenAIService
from .voice.speech_service import SpeechService
from .telephony.twilio_service import TwilioService
from .session_store import CallSessionStore, get_session_store
from .tenant_service import TenantService, get_tenant_service
from .conversation import ConversationController, get_conversation_controller
from .call_finalizer import CallFinalizer, get_call_finalizer

__all__ = [
    "OpenAIService",
    "SpeechService",
    "TwilioService",
    "CallSessionStore",
    "get_session_store",
    "TenantService",
    "get_tenant_service",
    "ConversationController",
    "get_conversation_controller",
    "CallFinalizer",
    "get_call_finalizer"
]
