"""
Name: In-Memory Session Repository

Responsibilities:
  - Store visualization sessions in process memory
  - Provide lookup by session ID

Notes:
  - Sessions are shared objects: a use case mutates the instance it got
    and saves it back; the generation counter guards stale commits
"""

from threading import Lock
from typing import Dict, Optional
from uuid import uuid4

from ...domain.entities import VisualizationSession


class InMemorySessionRepository:
    """
    R: Thread-safe in-memory session repository.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._sessions: Dict[str, VisualizationSession] = {}

    def create_session(self) -> VisualizationSession:
        session = VisualizationSession(id=str(uuid4()))
        with self._lock:
            self._sessions[session.id] = session
        return session

    def get_session(self, session_id: str) -> Optional[VisualizationSession]:
        with self._lock:
            return self._sessions.get(session_id)

    def save_session(self, session: VisualizationSession) -> None:
        session.touch()
        with self._lock:
            self._sessions[session.id] = session
