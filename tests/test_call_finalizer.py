"""
Tests for call finalization and daily analytics
"""

import json
import pytest
from unittest.mock import AsyncMock

from callflow.core.exceptions import SessionStoreError
from callflow.models.actions import ActionType
from callflow.models.session import ResolvedBy
from callflow.services.call_finalizer import CallFinalizer

from conftest import CALL_ID, CALLER, TENANT_ID, DEFAULT_AGENT

SESSION_KEY = f"tenant:{TENANT_ID}:call:session:{CALL_ID}"
LOG_KEY = f"tenant:{TENANT_ID}:call:log:{CALL_ID}"
ANALYTICS_KEY = f"tenant:{TENANT_ID}:analytics:daily:2026-03-14"


@pytest.mark.asyncio
async def test_human_transfer_call_lifecycle(controller, finalizer, fake_redis, clock):
    """Initiate, ask for a human, hang up"""
    await controller.start_call(TENANT_ID, CALL_ID, CALLER)
    session = json.loads(fake_redis.data[SESSION_KEY])
    assert len(session["turns"]) == 1
    assert session["resolved_by"] == "UNSET"

    action = await controller.process_speech(TENANT_ID, CALL_ID, "I want to talk to a human")
    assert action.type == ActionType.TRANSFER_TO_HUMAN
    assert action.address == DEFAULT_AGENT

    clock.advance(95)
    call_log = await finalizer.finalize(TENANT_ID, CALL_ID)

    assert call_log.resolved_by == ResolvedBy.HUMAN
    assert call_log.duration_sec == 95
    stored_log = json.loads(fake_redis.data[LOG_KEY])
    assert stored_log["resolved_by"] == "HUMAN"
    assert stored_log["duration_sec"] == 95
    assert LOG_KEY not in fake_redis.ttls
    assert fake_redis.hashes[ANALYTICS_KEY] == {"total_calls": 1, "resolved_HUMAN": 1}
    assert SESSION_KEY not in fake_redis.data


@pytest.mark.asyncio
async def test_finalize_is_idempotent(controller, finalizer, fake_redis):
    await controller.start_call(TENANT_ID, CALL_ID, CALLER)

    first = await finalizer.finalize(TENANT_ID, CALL_ID)
    second = await finalizer.finalize(TENANT_ID, CALL_ID)

    assert first is not None
    assert second is None
    assert fake_redis.hashes[ANALYTICS_KEY] == {"total_calls": 1, "resolved_UNSET": 1}


@pytest.mark.asyncio
async def test_unresolved_call_counts_as_unset(controller, finalizer, fake_redis):
    await controller.start_call(TENANT_ID, CALL_ID, CALLER)
    await controller.process_speech(TENANT_ID, CALL_ID, "what are your hours")

    call_log = await finalizer.finalize(TENANT_ID, CALL_ID)

    assert call_log.resolved_by == ResolvedBy.UNSET
    assert call_log.intent == "sales"
    assert len(call_log.turns) == 3
    assert fake_redis.hashes[ANALYTICS_KEY]["resolved_UNSET"] == 1


@pytest.mark.asyncio
async def test_unknown_call_is_a_no_op(finalizer, fake_redis):
    assert await finalizer.finalize(TENANT_ID, "CA-never-seen") is None
    assert fake_redis.hashes == {}
    assert fake_redis.data == {}


@pytest.mark.asyncio
async def test_counter_failure_still_deletes_session(controller, finalizer, fake_redis):
    await controller.start_call(TENANT_ID, CALL_ID, CALLER)
    fake_redis.fail_on.add("hincrby")

    call_log = await finalizer.finalize(TENANT_ID, CALL_ID)

    assert call_log is not None
    assert LOG_KEY in fake_redis.data
    assert SESSION_KEY not in fake_redis.data


@pytest.mark.asyncio
async def test_log_failure_still_counts_and_deletes(controller, finalizer, fake_redis):
    await controller.start_call(TENANT_ID, CALL_ID, CALLER)
    fake_redis.fail_on.add("set")

    await finalizer.finalize(TENANT_ID, CALL_ID)

    assert LOG_KEY not in fake_redis.data
    assert fake_redis.hashes[ANALYTICS_KEY]["total_calls"] == 1
    assert SESSION_KEY not in fake_redis.data


@pytest.mark.asyncio
async def test_delete_failure_is_not_raised(controller, finalizer, fake_redis):
    await controller.start_call(TENANT_ID, CALL_ID, CALLER)
    fake_redis.fail_on.add("delete")

    call_log = await finalizer.finalize(TENANT_ID, CALL_ID)

    assert call_log is not None
    assert SESSION_KEY in fake_redis.data


@pytest.mark.asyncio
async def test_load_failure_is_raised(finalizer, fake_redis):
    fake_redis.fail_on.add("get")

    with pytest.raises(SessionStoreError):
        await finalizer.finalize(TENANT_ID, CALL_ID)


@pytest.mark.asyncio
async def test_finalize_removes_call_audio(controller, store, clock, fake_redis, mock_speech):
    mock_speech.remove_call_audio = AsyncMock(return_value=2)
    finalizer = CallFinalizer(store, clock=clock, speech=mock_speech)
    await controller.start_call(TENANT_ID, CALL_ID, CALLER)

    await finalizer.finalize(TENANT_ID, CALL_ID)
    await finalizer.finalize(TENANT_ID, CALL_ID)

    mock_speech.remove_call_audio.assert_awaited_once_with(CALL_ID)
    assert SESSION_KEY not in fake_redis.data
