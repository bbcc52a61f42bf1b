"""
Name: Refresh Formatting Use Case

Responsibilities:
  - Re-run the formatting orchestrator for a session's text and concepts
    (e.g. after formatting degraded or failed during visualize)
"""

from dataclasses import dataclass, field
from typing import Dict

from ...domain.entities import SessionPhase, VisualizationSession
from ...domain.repositories import SessionRepository
from ...exceptions import InvalidInputError
from ...logger import logger
from ...timing import StageTimings
from ..formatting import FormattingOrchestrator
from .session_access import load_session


@dataclass
class RefreshFormattingOutput:
    session: VisualizationSession
    timings: Dict[str, float] = field(default_factory=dict)


class RefreshFormattingUseCase:
    """R: Regenerate the annotated HTML of a session."""

    def __init__(self, repository: SessionRepository, orchestrator: FormattingOrchestrator):
        self.repository = repository
        self.orchestrator = orchestrator

    async def execute(self, session_id: str) -> RefreshFormattingOutput:
        """
        Raises:
            SessionNotFoundError: Unknown session
            InvalidInputError: Session has no visualization yet
        """
        session = load_session(self.repository, session_id)
        if session.phase != SessionPhase.VISUALIZATION:
            raise InvalidInputError("Session has no visualization to format")

        generation = session.generation
        timings = StageTimings()
        html = await self.orchestrator.format_text(
            session.source_text, session.concepts, timings
        )

        if session.is_current(generation):
            session.formatted_html = html
            self.repository.save_session(session)
        else:
            logger.info(
                "Discarded stale formatting refresh", extra={"session_id": session.id}
            )
        return RefreshFormattingOutput(session=session, timings=timings.to_dict())
