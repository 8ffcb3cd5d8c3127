# tests/test_session_manager.py

"""Unit tests for SessionManager"""

import asyncio
import threading

import pytest

from index_mcp.services.session_manager import SessionManager


@pytest.fixture
def manager():
    return SessionManager()


class TestSessionManager:
    """Session registry and outbound delivery"""

    @pytest.mark.asyncio
    async def test_create_assigns_unique_ids(self, manager):
        first = manager.create()
        second = manager.create()
        assert first.session_id != second.session_id
        assert manager.count == 2
        assert manager.get(first.session_id) is first

    @pytest.mark.asyncio
    async def test_send_delivers_in_order(self, manager):
        session = manager.create()
        assert manager.send(session.session_id, {"id": 1})
        assert manager.send(session.session_id, {"id": 2})
        assert await session.next_message(1) == {"id": 1}
        assert await session.next_message(1) == {"id": 2}

    @pytest.mark.asyncio
    async def test_send_from_another_thread(self, manager):
        session = manager.create()
        worker = threading.Thread(target=manager.send, args=(session.session_id, {"id": 3}))
        worker.start()
        worker.join()
        assert await session.next_message(1) == {"id": 3}

    @pytest.mark.asyncio
    async def test_send_to_unknown_session_is_dropped(self, manager):
        assert not manager.send("missing", {"id": 1})

    @pytest.mark.asyncio
    async def test_close_session_ends_stream(self, manager):
        session = manager.create()
        manager.close_session(session.session_id)
        assert await session.next_message(1) is None
        assert manager.get(session.session_id) is None
        assert not session.send({"id": 1})

    @pytest.mark.asyncio
    async def test_idle_session_times_out(self, manager):
        session = manager.create()
        with pytest.raises(asyncio.TimeoutError):
            await session.next_message(0.05)

    @pytest.mark.asyncio
    async def test_close_all(self, manager):
        sessions = [manager.create() for _ in range(3)]
        assert manager.close_all() == 3
        assert manager.count == 0
        for session in sessions:
            assert session.closed
            assert await session.next_message(1) is None

    @pytest.mark.asyncio
    async def test_list_sessions(self, manager):
        session = manager.create()
        infos = manager.list_sessions()
        assert [info.sessionId for info in infos] == [session.session_id]
