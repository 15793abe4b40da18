"""
Next-action values returned by the call state machine

The services decide *what* the call does next; the telephony adapter turns
a NextAction into provider markup.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel


class ActionType(str, Enum):
    PLAY_THEN_GATHER = "play_then_gather"
    SAY_THEN_GATHER = "say_then_gather"
    SAY_AND_END = "say_and_end"
    TRANSFER_TO_HUMAN = "transfer_to_human"
    ACK_ONLY = "ack_only"


class NextAction(BaseModel):
    """What the call-control layer should do next"""
    type: ActionType
    audio_ref: Optional[str] = None
    text: Optional[str] = None
    address: Optional[str] = None

    @classmethod
    def play_then_gather(cls, audio_ref: str) -> "NextAction":
        return cls(type=ActionType.PLAY_THEN_GATHER, audio_ref=audio_ref)

    @classmethod
    def say_then_gather(cls, text: str) -> "NextAction":
        return cls(type=ActionType.SAY_THEN_GATHER, text=text)

    @classmethod
    def say_and_end(cls, text: str) -> "NextAction":
        return cls(type=ActionType.SAY_AND_END, text=text)

    @classmethod
    def transfer_to_human(cls, address: Optional[str]) -> "NextAction":
        return cls(type=ActionType.TRANSFER_TO_HUMAN, address=address)

    @classmethod
    def ack_only(cls) -> "NextAction":
        return cls(type=ActionType.ACK_ONLY)
