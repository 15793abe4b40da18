"""
Pytest configuration and fixtures
"""

import os
import tempfile
from datetime import datetime, timedelta, timezone

import pytest
from unittest.mock import AsyncMock, MagicMock

# Set test environment variables before importing callflow modules
os.environ.setdefault("OPENAI_API_KEY", "test-openai-key")
os.environ.setdefault("TWILIO_AUTH_TOKEN", "")
os.environ.setdefault("API_BASE_URL", "https://callflow.example.com")
os.environ.setdefault("AUDIO_DIR", tempfile.mkdtemp(prefix="callflow-audio-"))
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DEBUG", "false")

from redis.exceptions import ConnectionError as RedisConnectionError
from fastapi.testclient import TestClient

from callflow.models.session import CallSession, TurnRole
from callflow.models.tenant import TenantConfig
from callflow.services.session_store import CallSessionStore
from callflow.services.tenant_service import TenantService
from callflow.services.conversation import ConversationController
from callflow.services.call_finalizer import CallFinalizer

TENANT_ID = "+15550001000"
OTHER_TENANT_ID = "+15550002000"
CALL_ID = "CA0000000000000000000000000000001"
CALLER = "+14155551234"
DEFAULT_AGENT = "+15559998888"
START = datetime(2026, 3, 14, 9, 30, tzinfo=timezone.utc)


class FakeRedis:
    """In-memory stand-in for the subset of redis.asyncio.Redis the app uses"""

    def __init__(self):
        self.data = {}
        self.hashes = {}
        self.ttls = {}
        self.fail_on = set()

    def _check(self, operation: str):
        if operation in self.fail_on:
            raise RedisConnectionError(f"{operation} unavailable")

    async def get(self, key):
        self._check("get")
        return self.data.get(key)

    async def set(self, key, value, ex=None):
        self._check("set")
        self.data[key] = value
        if ex is not None:
            self.ttls[key] = ex
        else:
            self.ttls.pop(key, None)
        return True

    async def delete(self, *keys):
        self._check("delete")
        removed = 0
        for key in keys:
            if key in self.data:
                del self.data[key]
                self.ttls.pop(key, None)
                removed += 1
        return removed

    async def hincrby(self, name, key, amount=1):
        self._check("hincrby")
        fields = self.hashes.setdefault(name, {})
        fields[key] = fields.get(key, 0) + amount
        return fields[key]

    async def ping(self):
        self._check("ping")
        return True


class FrozenClock:
    """Controllable clock for the state machine"""

    def __init__(self, start: datetime = START):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float):
        self.now = self.now + timedelta(seconds=seconds)


def add_exchanges(session: CallSession, count: int) -> CallSession:
    """Append ``count`` user/assistant pairs to a session"""
    for i in range(count):
        session.append_turn(TurnRole.USER, f"question {i}")
        session.append_turn(TurnRole.ASSISTANT, f"answer {i}")
    return session


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def store(fake_redis):
    return CallSessionStore(fake_redis, ttl_seconds=3600)


@pytest.fixture
def tenant_service(fake_redis):
    return TenantService(fake_redis, default_human_agent=DEFAULT_AGENT)


@pytest.fixture
def default_tenant():
    return TenantConfig(human_agent=DEFAULT_AGENT)


@pytest.fixture
def mock_llm():
    """Fixture for mocked OpenAI service"""
    llm = MagicMock()
    llm.classify_intent = AsyncMock(return_value={
        "success": True,
        "content": " sales\n",
        "intent": "sales"
    })
    llm.generate_reply = AsyncMock(return_value={
        "success": True,
        "content": "I can help you with that."
    })
    return llm


@pytest.fixture
def mock_speech():
    """Fixture for mocked speech service"""
    speech = MagicMock()
    speech.synthesize = AsyncMock(
        side_effect=lambda text, name: {"success": True, "audio_ref": f"{name}.mp3"}
    )
    return speech


@pytest.fixture
def controller(store, tenant_service, mock_llm, mock_speech, clock):
    return ConversationController(
        store=store,
        tenants=tenant_service,
        llm=mock_llm,
        speech=mock_speech,
        max_call_turns=20,
        max_call_duration_sec=900,
        clock=clock
    )


@pytest.fixture
def finalizer(store, clock):
    return CallFinalizer(store, clock=clock)


@pytest.fixture
def test_client(controller, finalizer, store, tenant_service):
    """Fixture for test client wired to in-memory collaborators"""
    from callflow.main import app
    from callflow.services.conversation import get_conversation_controller
    from callflow.services.call_finalizer import get_call_finalizer
    from callflow.services.session_store import get_session_store
    from callflow.services.tenant_service import get_tenant_service

    app.dependency_overrides[get_conversation_controller] = lambda: controller
    app.dependency_overrides[get_call_finalizer] = lambda: finalizer
    app.dependency_overrides[get_session_store] = lambda: store
    app.dependency_overrides[get_tenant_service] = lambda: tenant_service

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
