"""
Name: Repository Interfaces

Responsibilities:
  - Define the contract for storing visualization sessions

Collaborators:
  - infrastructure.repositories.InMemorySessionRepository

Notes:
  - There is no persistence: sessions live for the process lifetime
"""

from typing import Optional, Protocol

from .entities import VisualizationSession


class SessionRepository(Protocol):
    """R: Interface for visualization session storage."""

    def create_session(self) -> VisualizationSession:
        ...

    def get_session(self, session_id: str) -> Optional[VisualizationSession]:
        ...

    def save_session(self, session: VisualizationSession) -> None:
        ...
