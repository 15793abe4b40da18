"""
Conversation Turn Controller
Advances a call session by one step per webhook

Each speech event runs the same fixed pipeline: load the session, enforce the
turn and time budgets, record the caller's words, check for a request to
speak to a person, classify intent once, generate a reply and persist. Every
path ends in a NextAction, including provider failures.
"""

from typing import Callable, Optional
from datetime import datetime

from callflow.core.config import settings
from callflow.core.logging import get_logger
from callflow.models.actions import NextAction
from callflow.models.session import CallSession, ResolvedBy, TurnRole, utc_now
from callflow.services.llm.openai_service import OpenAIService
from callflow.services.session_store import CallSessionStore
from callflow.services.tenant_service import TenantService
from callflow.services.voice.speech_service import SpeechService

logger = get_logger(__name__)

HUMAN_KEYWORDS = ("human", "agent", "person", "operator")

MAX_LENGTH_MESSAGE = "This call has reached its maximum length. Thank you."
TIMED_OUT_MESSAGE = "This call has timed out. Thank you."
RETRY_MESSAGE = "Sorry, I had trouble with that. Could you please say it again?"


def wants_human(utterance: str) -> bool:
    """Case-insensitive substring match against HUMAN_KEYWORDS"""
    lowered = utterance.lower()
    return any(keyword in lowered for keyword in HUMAN_KEYWORDS)


class ConversationController:
    """Call-session state machine for inbound calls"""

    def __init__(
        self,
        store: CallSessionStore,
        tenants: TenantService,
        llm: OpenAIService,
        speech: SpeechService,
        max_call_turns: int = 20,
        max_call_duration_sec: int = 900,
        clock: Callable[[], datetime] = utc_now
    ):
        self.store = store
        self.tenants = tenants
        self.llm = llm
        self.speech = speech
        self.max_call_turns = max_call_turns
        self.max_call_duration_sec = max_call_duration_sec
        self.clock = clock

    async def start_call(
        self,
        tenant_id: str,
        call_id: str,
        caller_address: Optional[str]
    ) -> NextAction:
        """
        Handle the initiation event of an inbound call

        Creates (or, on a retried webhook, recreates) the session and greets
        the caller.
        """
        logger.info(f"Incoming call {call_id} from {caller_address} for tenant {tenant_id}")

        tenant = await self.tenants.resolve(tenant_id)
        await self.store.create(
            tenant_id=tenant_id,
            call_id=call_id,
            caller_address=caller_address,
            tenant_config=tenant,
            started_at=self.clock()
        )

        return await self._speak(tenant.get_greeting(), f"{call_id}-welcome")

    async def process_speech(self, tenant_id: str, call_id: str, utterance: str) -> NextAction:
        """
        Advance the session with one recognized caller utterance

        Args:
            tenant_id: Tenant identifier
            call_id: Provider call identifier
            utterance: Speech recognition result, possibly empty

        Returns:
            The next action for the call
        """
        session = await self.store.get(tenant_id, call_id)
        if session is None:
            logger.info(f"No live session for call {call_id} (tenant {tenant_id}), ignoring speech")
            return NextAction.ack_only()

        if session.is_closed:
            logger.info(
                f"Speech for call {call_id} after resolution "
                f"({session.resolved_by.value}), not recording it"
            )
            tenant = await self.tenants.resolve(tenant_id)
            return NextAction.say_and_end(tenant.get_farewell())

        now = self.clock()

        if session.exchange_count > self.max_call_turns:
            return await self._terminate(session, ResolvedBy.LIMIT, MAX_LENGTH_MESSAGE)

        if session.elapsed_seconds(now) > self.max_call_duration_sec:
            return await self._terminate(session, ResolvedBy.TIME_LIMIT, TIMED_OUT_MESSAGE)

        tenant = await self.tenants.resolve(tenant_id)
        session.append_turn(TurnRole.USER, utterance)

        if tenant.enable_human_transfer and wants_human(utterance):
            session.resolve(ResolvedBy.HUMAN)
            await self.store.save(session)
            logger.info(f"Transferring call {call_id} to a human agent")
            return NextAction.transfer_to_human(tenant.human_agent)

        if session.intent is None:
            await self._classify(session, utterance)

        reply = await self.llm.generate_reply(session.to_chat_messages())
        if not reply["success"]:
            # Nothing is saved, so the stored session is unchanged for the retry
            logger.warning(f"Reply generation failed for call {call_id}: {reply.get('error')}")
            return NextAction.say_then_gather(RETRY_MESSAGE)

        text = reply["content"]
        session.append_turn(TurnRole.ASSISTANT, text)
        await self.store.save(session)

        return await self._speak(text, f"{call_id}-{int(now.timestamp() * 1000)}")

    async def _classify(self, session: CallSession, utterance: str) -> None:
        result = await self.llm.classify_intent(utterance)
        if not result["success"]:
            logger.warning(
                f"Intent classification failed for call {session.call_id}, "
                f"will retry next turn: {result.get('error')}"
            )
            return
        session.set_intent(result["intent"])
        logger.info(f"Intent for call {session.call_id}: {session.intent}")

    async def _terminate(self, session: CallSession, outcome: ResolvedBy, message: str) -> NextAction:
        session.resolve(outcome)
        await self.store.save(session)
        logger.info(f"Call {session.call_id} ended by {outcome.value}")
        return NextAction.say_and_end(message)

    async def _speak(self, text: str, name: str) -> NextAction:
        """Play synthesized audio, or let Twilio read the text if synthesis fails"""
        result = await self.speech.synthesize(text, name)
        if result["success"]:
            return NextAction.play_then_gather(result["audio_ref"])
        logger.warning(f"Falling back to <Say> for {name}: {result.get('error')}")
        return NextAction.say_then_gather(text)


# Singleton instance
_conversation_controller: Optional[ConversationController] = None


def initialize_conversation_controller(
    store: CallSessionStore,
    tenants: TenantService,
    llm: OpenAIService,
    speech: SpeechService
) -> ConversationController:
    """Create the ConversationController singleton from shared collaborators"""
    global _conversation_controller
    _conversation_controller = ConversationController(
        store=store,
        tenants=tenants,
        llm=llm,
        speech=speech,
        max_call_turns=settings.max_call_turns,
        max_call_duration_sec=settings.max_call_duration_sec
    )
    return _conversation_controller


def get_conversation_controller() -> ConversationController:
    """Get the ConversationController singleton instance"""
    if _conversation_controller is None:
        raise RuntimeError("ConversationController is not initialized")
    return _conversation_controller
