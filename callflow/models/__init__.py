"""Data models for CallFlow"""

from .session import (
    ResolvedBy,
    TurnRole,
    Turn,
    CallSession,
    CallLog
)

from .tenant import TenantConfig

from .actions import ActionType, NextAction

__all__ = [
    # Session models
    "ResolvedBy",
    "TurnRole",
    "Turn",
    "CallSession",
    "CallLog",
    # Tenant models
    "TenantConfig",
    # Actions
    "ActionType",
    "NextAction"
]
