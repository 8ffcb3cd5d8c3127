# index_mcp/services/session_manager.py

"""SSE Session Manager

One Session per open event stream. Responses are pushed onto the session's
outbound queue from any thread; the stream generator drains it on the
server's event loop. A None item closes the stream.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import asyncio
import logging
import threading
import uuid

from index_mcp.models.server import SessionInfo

logger = logging.getLogger(__name__)


class Session:
    """Outbound side of one SSE connection"""

    def __init__(self, session_id: str, loop: asyncio.AbstractEventLoop):
        self.session_id = session_id
        self.created_at = datetime.now(timezone.utc)
        self.closed = False
        self._loop = loop
        self._queue: "asyncio.Queue[Optional[Dict[str, Any]]]" = asyncio.Queue()

    def send(self, message: Dict[str, Any]) -> bool:
        """
        Queue a JSON-RPC message for delivery

        Returns:
            False if the session is closed or its loop is gone
        """
        if self.closed:
            return False
        try:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, message)
        except RuntimeError:
            # Event loop already closed
            return False
        return True

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, None)
        except RuntimeError:
            pass

    async def next_message(self, timeout: float) -> Optional[Dict[str, Any]]:
        """
        Wait for the next outbound message

        Returns:
            The message, or None once the session is closed

        Raises:
            asyncio.TimeoutError: nothing arrived within timeout
        """
        return await asyncio.wait_for(self._queue.get(), timeout)

    def info(self) -> SessionInfo:
        return SessionInfo(sessionId=self.session_id, createdAt=self.created_at)


class SessionManager:
    """Registry of live sessions keyed by session id"""

    def __init__(self):
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    def create(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> Session:
        session = Session(str(uuid.uuid4()), loop or asyncio.get_running_loop())
        with self._lock:
            self._sessions[session.session_id] = session
        logger.info(f"SSE session opened: {session.session_id}", extra={"session_id": session.session_id})
        return session

    def get(self, session_id: str) -> Optional[Session]:
        return self._sessions.get(session_id)

    def send(self, session_id: str, message: Dict[str, Any]) -> bool:
        """
        Route a message to a session

        Returns:
            False if the session no longer exists; the message is dropped
        """
        session = self.get(session_id)
        if session is None:
            logger.debug(f"Dropping message for closed session {session_id}")
            return False
        return session.send(message)

    def close_session(self, session_id: str) -> None:
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is not None:
            session.close()
            logger.info(f"SSE session closed: {session_id}", extra={"session_id": session_id})

    def close_all(self) -> int:
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.close()
        if sessions:
            logger.info(f"Closed {len(sessions)} SSE session(s)")
        return len(sessions)

    def list_sessions(self) -> List[SessionInfo]:
        with self._lock:
            return [session.info() for session in self._sessions.values()]

    @property
    def count(self) -> int:
        return len(self._sessions)
