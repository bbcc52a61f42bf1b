"""
Name: Reset Session Use Case ("new visualization")

Responsibilities:
  - Destroy all visualization state of a session and return it to input
  - Invalidate in-flight runs (generation bump)
"""

from ...domain.entities import VisualizationSession
from ...domain.repositories import SessionRepository
from ...logger import logger
from .session_access import load_session


class ResetSessionUseCase:
    """R: Start over with an empty session."""

    def __init__(self, repository: SessionRepository):
        self.repository = repository

    def execute(self, session_id: str) -> VisualizationSession:
        session = load_session(self.repository, session_id)
        generation = session.reset()
        self.repository.save_session(session)
        logger.info(
            "Session reset",
            extra={"session_id": session.id, "generation": generation},
        )
        return session
