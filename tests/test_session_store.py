"""
Tests for the session stores
"""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from oncolife.engine.constants import ConversationPhase
from oncolife.engine.models import SessionState
from oncolife.engine.session_store import InMemorySessionStore, RedisSessionStore
from oncolife.exceptions import SessionStoreError


def make_session(conversation_id="conv-1") -> SessionState:
    return SessionState(conversation_id=conversation_id, patient_id="patient-1")


class TestInMemorySessionStore:
    """Test the process-local store."""

    @pytest.mark.asyncio
    async def test_put_and_get(self):
        store = InMemorySessionStore()
        await store.put(make_session())

        session = await store.get("conv-1")

        assert session.patient_id == "patient-1"
        assert len(store) == 1
        assert await store.get("missing") is None

    @pytest.mark.asyncio
    async def test_get_returns_a_copy(self):
        store = InMemorySessionStore()
        await store.put(make_session())

        session = await store.get("conv-1")
        session.phase = ConversationPhase.SCREENING
        session.answers["NAU-203:duration"] = "24 hours"

        stored = await store.get("conv-1")
        assert stored.phase == ConversationPhase.DISCLAIMER
        assert stored.answers == {}

    @pytest.mark.asyncio
    async def test_idle_session_expires(self):
        store = InMemorySessionStore(ttl_seconds=60)
        await store.put(make_session())
        store._sessions["conv-1"].updated_at -= timedelta(seconds=120)

        assert await store.get("conv-1") is None
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_delete(self):
        store = InMemorySessionStore()
        await store.put(make_session())
        await store.delete("conv-1")
        assert await store.get("conv-1") is None

    @pytest.mark.asyncio
    async def test_lock_is_per_conversation(self):
        store = InMemorySessionStore()
        assert store.lock("conv-1") is store.lock("conv-1")
        assert store.lock("conv-1") is not store.lock("conv-2")

        async with store.lock("conv-1"):
            assert store.lock("conv-1").locked()

    @pytest.mark.asyncio
    async def test_expired_session_drops_its_lock(self):
        store = InMemorySessionStore(ttl_seconds=60)
        async with store.lock("conv-1"):
            await store.put(make_session())
        store._sessions["conv-1"].updated_at -= timedelta(seconds=120)

        assert await store.get("conv-1") is None
        assert store._locks == {}

    @pytest.mark.asyncio
    async def test_sweep_evicts_terminal_sessions_sooner(self):
        store = InMemorySessionStore(ttl_seconds=3600, terminal_ttl_seconds=60)
        for cid, phase in [
            ("conv-1", ConversationPhase.COMPLETED),
            ("conv-2", ConversationPhase.EMERGENCY),
            ("conv-3", ConversationPhase.SCREENING),
        ]:
            session = make_session(cid)
            session.phase = phase
            async with store.lock(cid):
                await store.put(session)
        for session in store._sessions.values():
            session.updated_at -= timedelta(seconds=120)

        assert store.sweep() == 2
        assert list(store._sessions) == ["conv-3"]
        assert list(store._locks) == ["conv-3"]

    @pytest.mark.asyncio
    async def test_put_sweeps_other_expired_sessions(self):
        store = InMemorySessionStore(ttl_seconds=60)
        await store.put(make_session("conv-1"))
        store._sessions["conv-1"].updated_at -= timedelta(seconds=120)

        await store.put(make_session("conv-2"))

        assert len(store) == 1
        assert await store.get("conv-2") is not None

    @pytest.mark.asyncio
    async def test_sweep_keeps_held_locks(self):
        store = InMemorySessionStore()
        store.lock("orphan")
        async with store.lock("conv-1"):
            store.sweep()
            assert list(store._locks) == ["conv-1"]
        store.sweep()
        assert store._locks == {}

    @pytest.mark.asyncio
    async def test_delete_drops_lock(self):
        store = InMemorySessionStore()
        async with store.lock("conv-1"):
            await store.put(make_session())
        await store.delete("conv-1")
        assert len(store) == 0
        assert store._locks == {}


class TestRedisSessionStore:
    """Test the Redis-backed store."""

    @pytest.fixture
    def redis_client(self):
        client = AsyncMock()
        client.lock = MagicMock()
        return client

    @pytest.mark.asyncio
    async def test_put_writes_json_with_ttl(self, redis_client):
        store = RedisSessionStore(redis_client, key_prefix="test:", ttl_seconds=300)

        await store.put(make_session())

        redis_client.setex.assert_awaited_once()
        key, ttl, payload = redis_client.setex.await_args.args
        assert key == "test:conv-1"
        assert ttl == 300
        assert SessionState.model_validate_json(payload).conversation_id == "conv-1"

    @pytest.mark.asyncio
    async def test_terminal_session_gets_short_ttl(self, redis_client):
        store = RedisSessionStore(redis_client, ttl_seconds=300, terminal_ttl_seconds=30)
        session = make_session()
        session.phase = ConversationPhase.COMPLETED

        await store.put(session)

        _, ttl, _ = redis_client.setex.await_args.args
        assert ttl == 30

    @pytest.mark.asyncio
    async def test_get_round_trips_state(self, redis_client):
        session = make_session()
        session.answers["FEV-202:temp"] = 101.5
        session.reported_symptoms.add("FEV-202")
        redis_client.get.return_value = session.model_dump_json()
        store = RedisSessionStore(redis_client)

        loaded = await store.get("conv-1")

        redis_client.get.assert_awaited_once_with("oncolife:session:conv-1")
        assert loaded.answers["FEV-202:temp"] == 101.5
        assert loaded.reported_symptoms == {"FEV-202"}

    @pytest.mark.asyncio
    async def test_missing_session(self, redis_client):
        redis_client.get.return_value = None
        store = RedisSessionStore(redis_client)
        assert await store.get("conv-1") is None

    @pytest.mark.asyncio
    async def test_backend_errors_raise_store_error(self, redis_client):
        redis_client.get.side_effect = ConnectionError("connection refused")
        redis_client.setex.side_effect = ConnectionError("connection refused")
        store = RedisSessionStore(redis_client)

        with pytest.raises(SessionStoreError):
            await store.get("conv-1")
        with pytest.raises(SessionStoreError):
            await store.put(make_session())

    def test_lock_uses_redis_lock(self, redis_client):
        store = RedisSessionStore(redis_client, lock_timeout=5.0)
        store.lock("conv-1")
        redis_client.lock.assert_called_once_with(
            "oncolife:session:conv-1:lock", timeout=5.0, blocking_timeout=5.0
        )
