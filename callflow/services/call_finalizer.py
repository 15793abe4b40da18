"""
Call Finalizer
Archives a finished call, updates daily analytics and removes the live session
"""

from typing import Awaitable, Callable, Optional
from datetime import datetime

from callflow.core.exceptions import SessionStoreError
from callflow.core.logging import get_logger
from callflow.models.session import CallLog, utc_now
from callflow.services.session_store import CallSessionStore
from callflow.services.voice.speech_service import SpeechService

logger = get_logger(__name__)

TOTAL_CALLS_COUNTER = "total_calls"


def resolution_counter(resolved_by: str) -> str:
    return f"resolved_{resolved_by}"


class CallFinalizer:
    """Handles the termination event of a call"""

    def __init__(
        self,
        store: CallSessionStore,
        clock: Callable[[], datetime] = utc_now,
        speech: Optional[SpeechService] = None
    ):
        self.store = store
        self.clock = clock
        self.speech = speech

    async def finalize(self, tenant_id: str, call_id: str) -> Optional[CallLog]:
        """
        Finalize a call

        Once the session has been loaded, log, counter and delete steps are
        each attempted independently; their failures are logged and never
        raised. The session delete is always attempted, so a repeated call
        finds nothing and does not count the call twice. Audio synthesized
        for the call is removed last.

        Args:
            tenant_id: Tenant identifier
            call_id: Provider call identifier

        Returns:
            The archived CallLog, or None if there was no live session
        """
        session = await self.store.get(tenant_id, call_id)
        if session is None:
            logger.info(f"No live session for call {call_id} (tenant {tenant_id}), nothing to finalize")
            return None

        call_log = CallLog.from_session(session, ended_at=self.clock())
        day = call_log.ended_at.date()

        try:
            await self._best_effort("write call log", call_id, self.store.write_log(call_log))
            for counter in (TOTAL_CALLS_COUNTER, resolution_counter(session.resolved_by.value)):
                await self._best_effort(
                    f"increment {counter}",
                    call_id,
                    self.store.increment_counter(tenant_id, day, counter)
                )
        finally:
            await self._best_effort(
                "delete session",
                call_id,
                self.store.delete(tenant_id, call_id)
            )
            if self.speech is not None:
                removed = await self.speech.remove_call_audio(call_id)
                logger.debug(f"Removed {removed} audio files for call {call_id}")

        logger.info(
            f"Finalized call {call_id}: {call_log.duration_sec}s, "
            f"resolved by {call_log.resolved_by.value}, intent {call_log.intent}"
        )
        return call_log

    @staticmethod
    async def _best_effort(step: str, call_id: str, operation: Awaitable) -> None:
        try:
            await operation
        except SessionStoreError as e:
            logger.error(f"Finalizing call {call_id}: could not {step}: {e.message}")


# Singleton instance
_call_finalizer: Optional[CallFinalizer] = None


def initialize_call_finalizer(
    store: CallSessionStore,
    speech: Optional[SpeechService] = None
) -> CallFinalizer:
    """Create the CallFinalizer singleton around the shared session store"""
    global _call_finalizer
    _call_finalizer = CallFinalizer(store, speech=speech)
    return _call_finalizer


def get_call_finalizer() -> CallFinalizer:
    """Get the CallFinalizer singleton instance"""
    if _call_finalizer is None:
        raise RuntimeError("CallFinalizer is not initialized")
    return _call_finalizer
