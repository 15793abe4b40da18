"""
Call session models

A CallSession is the whole state of one live phone call. It is rebuilt from
the store on every webhook, advanced by one step and written back, so every
invariant is checked both when it is mutated and when it is decoded.
"""

import math
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, List, Dict
from pydantic import BaseModel, Field, model_validator

from callflow.core.exceptions import SessionStateError


class ResolvedBy(str, Enum):
    """How a call was resolved"""
    UNSET = "UNSET"
    AI = "AI"
    HUMAN = "HUMAN"
    LIMIT = "LIMIT"
    TIME_LIMIT = "TIME_LIMIT"


class TurnRole(str, Enum):
    """Author of a conversation turn"""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class Turn(BaseModel):
    """One message in the conversation history"""
    role: TurnRole
    content: str


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CallSession(BaseModel):
    """Live state of a call, addressed by (tenant_id, call_id)"""

    call_id: str = Field(..., min_length=1)
    tenant_id: str = Field(..., min_length=1)
    caller_address: Optional[str] = None
    intent: Optional[str] = None
    started_at: datetime = Field(default_factory=utc_now)
    resolved_by: ResolvedBy = Field(default=ResolvedBy.UNSET)
    turns: List[Turn] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_system_turn(self) -> "CallSession":
        if not self.turns or self.turns[0].role != TurnRole.SYSTEM:
            raise ValueError("first turn must be the system turn")
        if any(turn.role == TurnRole.SYSTEM for turn in self.turns[1:]):
            raise ValueError("only one system turn is allowed")
        return self

    @classmethod
    def start(
        cls,
        tenant_id: str,
        call_id: str,
        caller_address: Optional[str],
        system_prompt: str,
        started_at: Optional[datetime] = None
    ) -> "CallSession":
        """Build a fresh, unresolved session seeded with its system turn"""
        return cls(
            call_id=call_id,
            tenant_id=tenant_id,
            caller_address=caller_address,
            started_at=started_at or utc_now(),
            turns=[Turn(role=TurnRole.SYSTEM, content=system_prompt)]
        )

    @property
    def is_closed(self) -> bool:
        return self.resolved_by != ResolvedBy.UNSET

    @property
    def exchange_count(self) -> float:
        """Turn pairs recorded so far, counting the system turn as half a pair"""
        return len(self.turns) / 2

    def elapsed_seconds(self, now: Optional[datetime] = None) -> float:
        return ((now or utc_now()) - self.started_at).total_seconds()

    def append_turn(self, role: TurnRole, content: str) -> Turn:
        """
        Append a user or assistant turn

        Raises:
            SessionStateError: if the session is closed or role is system
        """
        if self.is_closed:
            raise SessionStateError(self.call_id, "Session is closed to new turns")
        if role == TurnRole.SYSTEM:
            raise SessionStateError(self.call_id, "System turn can only be seeded at start")
        turn = Turn(role=role, content=content)
        self.turns.append(turn)
        return turn

    def set_intent(self, intent: str) -> None:
        if self.intent is not None:
            raise SessionStateError(self.call_id, f"Intent already set to {self.intent}")
        self.intent = intent

    def resolve(self, outcome: ResolvedBy) -> None:
        """Move the session to a terminal outcome, exactly once"""
        if outcome == ResolvedBy.UNSET:
            raise SessionStateError(self.call_id, "UNSET is not a terminal outcome")
        if self.is_closed:
            raise SessionStateError(
                self.call_id,
                f"Session already resolved by {self.resolved_by.value}"
            )
        self.resolved_by = outcome

    def to_chat_messages(self) -> List[Dict[str, str]]:
        """Turn history in the shape chat-completion APIs expect"""
        return [{"role": turn.role.value, "content": turn.content} for turn in self.turns]


class CallLog(CallSession):
    """Archived snapshot of a finished call"""

    duration_sec: int = Field(..., ge=0)
    ended_at: datetime

    @classmethod
    def from_session(cls, session: CallSession, ended_at: Optional[datetime] = None) -> "CallLog":
        ended_at = ended_at or utc_now()
        duration = max(0, math.floor((ended_at - session.started_at).total_seconds()))
        return cls(
            **session.model_dump(),
            duration_sec=duration,
            ended_at=ended_at
        )
