"""
Tests for the Redis-backed call session store
"""

import json
import pytest
from datetime import timedelta

from callflow.core.exceptions import SessionCorruptedError, SessionStoreError
from callflow.models.session import CallLog, ResolvedBy, TurnRole

from conftest import CALL_ID, CALLER, TENANT_ID, OTHER_TENANT_ID, START

SESSION_KEY = f"tenant:{TENANT_ID}:call:session:{CALL_ID}"


class TestCreate:
    """Tests for session creation"""

    @pytest.mark.asyncio
    async def test_create_persists_with_ttl(self, store, fake_redis, default_tenant):
        session = await store.create(TENANT_ID, CALL_ID, CALLER, default_tenant, started_at=START)

        assert SESSION_KEY in fake_redis.data
        assert fake_redis.ttls[SESSION_KEY] == 3600
        assert session.started_at == START
        assert session.resolved_by == ResolvedBy.UNSET
        assert session.turns[0].role == TurnRole.SYSTEM
        assert default_tenant.business_name in session.turns[0].content

    @pytest.mark.asyncio
    async def test_repeated_create_overwrites(self, store, default_tenant):
        first = await store.create(TENANT_ID, CALL_ID, CALLER, default_tenant)
        first.append_turn(TurnRole.USER, "hello")
        await store.save(first)

        await store.create(TENANT_ID, CALL_ID, CALLER, default_tenant)
        loaded = await store.get(TENANT_ID, CALL_ID)

        assert len(loaded.turns) == 1
        assert loaded.resolved_by == ResolvedBy.UNSET


class TestGetSaveDelete:
    """Tests for reading and writing sessions"""

    @pytest.mark.asyncio
    async def test_get_unknown_returns_none(self, store):
        assert await store.get(TENANT_ID, "CA-missing") is None

    @pytest.mark.asyncio
    async def test_round_trip(self, store, default_tenant):
        session = await store.create(TENANT_ID, CALL_ID, CALLER, default_tenant, started_at=START)
        session.append_turn(TurnRole.USER, "do you open on Sundays?")
        session.set_intent("info")
        await store.save(session)

        loaded = await store.get(TENANT_ID, CALL_ID)

        assert loaded == session

    @pytest.mark.asyncio
    async def test_tenants_do_not_collide(self, store, default_tenant):
        await store.create(TENANT_ID, CALL_ID, "+1111", default_tenant)
        await store.create(OTHER_TENANT_ID, CALL_ID, "+2222", default_tenant)

        first = await store.get(TENANT_ID, CALL_ID)
        second = await store.get(OTHER_TENANT_ID, CALL_ID)

        assert first.caller_address == "+1111"
        assert second.caller_address == "+2222"

    @pytest.mark.asyncio
    async def test_save_refreshes_ttl(self, store, fake_redis, default_tenant):
        session = await store.create(TENANT_ID, CALL_ID, CALLER, default_tenant)
        fake_redis.ttls[SESSION_KEY] = 12

        await store.save(session)

        assert fake_redis.ttls[SESSION_KEY] == 3600

    @pytest.mark.asyncio
    async def test_delete(self, store, default_tenant):
        await store.create(TENANT_ID, CALL_ID, CALLER, default_tenant)

        await store.delete(TENANT_ID, CALL_ID)

        assert await store.get(TENANT_ID, CALL_ID) is None

    @pytest.mark.asyncio
    async def test_unknown_resolution_rejected(self, store, fake_redis, default_tenant):
        await store.create(TENANT_ID, CALL_ID, CALLER, default_tenant)
        payload = json.loads(fake_redis.data[SESSION_KEY])
        payload["resolved_by"] = "SOMETHING_ELSE"
        fake_redis.data[SESSION_KEY] = json.dumps(payload)

        with pytest.raises(SessionCorruptedError):
            await store.get(TENANT_ID, CALL_ID)

    @pytest.mark.asyncio
    async def test_garbage_payload_rejected(self, store, fake_redis):
        fake_redis.data[SESSION_KEY] = "not json"

        with pytest.raises(SessionCorruptedError):
            await store.get(TENANT_ID, CALL_ID)

    @pytest.mark.asyncio
    async def test_redis_failure_is_wrapped(self, store, fake_redis):
        fake_redis.fail_on.add("get")

        with pytest.raises(SessionStoreError) as exc_info:
            await store.get(TENANT_ID, CALL_ID)

        assert exc_info.value.details["operation"] == "get"


class TestLogsAndCounters:
    """Tests for archival and analytics writes"""

    @pytest.mark.asyncio
    async def test_call_log_has_no_expiry(self, store, fake_redis, default_tenant):
        session = await store.create(TENANT_ID, CALL_ID, CALLER, default_tenant, started_at=START)
        call_log = CallLog.from_session(session, ended_at=START + timedelta(seconds=30))

        await store.write_log(call_log)

        log_key = f"tenant:{TENANT_ID}:call:log:{CALL_ID}"
        assert log_key in fake_redis.data
        assert log_key not in fake_redis.ttls
        assert await store.get_log(TENANT_ID, CALL_ID) == call_log

    @pytest.mark.asyncio
    async def test_increment_counter(self, store, fake_redis):
        day = START.date()

        await store.increment_counter(TENANT_ID, day, "total_calls")
        count = await store.increment_counter(TENANT_ID, day, "total_calls")

        assert count == 2
        assert fake_redis.hashes[f"tenant:{TENANT_ID}:analytics:daily:2026-03-14"] == {"total_calls": 2}
