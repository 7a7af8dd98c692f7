"""
In-memory store for editor sessions.

Provides a thread-safe TTL cache keyed by session id. Sessions expire after
``SESSION_TTL_SECONDS`` of inactivity; nothing is persisted.
"""

import uuid
from dataclasses import dataclass, field
from threading import Lock
from typing import Optional

from cachetools import TTLCache

from config.settings import settings
from models.editor import EditorState


@dataclass
class EditorSession:
    """Mutable holder for one browser's editor state.

    ``revision`` is bumped on every action that supersedes an in-flight
    generation, so a late provider answer can be recognised and dropped.
    """
    id: str
    state: EditorState = field(default_factory=EditorState)
    revision: int = 0


class SessionStore:
    def __init__(self, max_size: Optional[int] = None, ttl_seconds: Optional[int] = None):
        self.max_size = max_size or settings.SESSION_MAX_COUNT
        self.ttl_seconds = ttl_seconds or settings.SESSION_TTL_SECONDS
        self._sessions: TTLCache = TTLCache(maxsize=self.max_size, ttl=self.ttl_seconds)
        self._lock = Lock()

    def create(self) -> EditorSession:
        """
        Create and register an empty session.

        Returns:
            The new session, in the idle state
        """
        session = EditorSession(id=str(uuid.uuid4()))
        with self._lock:
            self._sessions[session.id] = session
        return session

    def get(self, session_id: str) -> Optional[EditorSession]:
        """
        Retrieve a session by id.

        Args:
            session_id: The session id

        Returns:
            The session if present and not expired, None otherwise
        """
        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None:
                # Touch the entry so active sessions do not expire
                self._sessions[session_id] = session
            return session

    def delete(self, session_id: str) -> bool:
        """
        Remove a session.

        Returns:
            True if the session was found and removed, False otherwise
        """
        with self._lock:
            if session_id in self._sessions:
                del self._sessions[session_id]
                return True
            return False


_default_store: Optional[SessionStore] = None


def get_session_store() -> SessionStore:
    global _default_store
    if _default_store is None:
        _default_store = SessionStore()
    return _default_store
