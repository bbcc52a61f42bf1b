"""
Name: Regenerate Visualization Use Case

Responsibilities:
  - Re-render one result of a session with the chosen renderer, or the
    renderer the session was visualized with when none is given
  - Replace only that slot; keep the previous SVG when rendering fails

Collaborators:
  - domain.services.VisualizationRenderer
  - domain.repositories.SessionRepository
"""

from dataclasses import dataclass, replace
from typing import Mapping, Optional

from ...domain.entities import RendererName, VisualizationResult, VisualizationSession
from ...domain.repositories import SessionRepository
from ...domain.services import VisualizationRenderer
from ...exceptions import InvalidInputError
from ...logger import logger
from .session_access import load_session, resolve_renderer


@dataclass
class RegenerateVisualizationInput:
    """
    R: Input data for RegenerateVisualization use case.

    Attributes:
        session_id: Session holding the result
        index: Position in session.results
        renderer: Renderer to use for this slot (None: the session's own)
    """

    session_id: str
    index: int
    renderer: Optional[RendererName] = None


@dataclass
class RegenerateVisualizationOutput:
    session: VisualizationSession
    result: VisualizationResult


class RegenerateVisualizationUseCase:
    """R: Re-render a single concept visualization."""

    def __init__(
        self,
        repository: SessionRepository,
        renderers: Mapping[str, VisualizationRenderer],
    ):
        self.repository = repository
        self.renderers = renderers

    async def execute(
        self, input_data: RegenerateVisualizationInput
    ) -> RegenerateVisualizationOutput:
        """
        Raises:
            SessionNotFoundError: Unknown session
            InvalidInputError: Index out of range or unknown renderer
            RenderError: The renderer failed (previous SVG kept)
        """
        session = load_session(self.repository, input_data.session_id)
        renderer = resolve_renderer(
            self.renderers, input_data.renderer or session.renderer
        )
        if not 0 <= input_data.index < len(session.results):
            raise InvalidInputError(
                f"Concept index {input_data.index} is out of range "
                f"(session has {len(session.results)} visualizations)"
            )

        generation = session.generation
        current = session.results[input_data.index]
        svg = await renderer.render(current.concept_title, current.concept_description)

        if not session.is_current(generation):
            logger.info(
                "Discarded stale regeneration",
                extra={"session_id": session.id, "index": input_data.index},
            )
            return RegenerateVisualizationOutput(session=session, result=current)

        updated = replace(current, svg=svg)
        session.results[input_data.index] = updated
        self.repository.save_session(session)
        logger.info(
            "Visualization regenerated",
            extra={
                "session_id": session.id,
                "index": input_data.index,
                "renderer": renderer.name,
            },
        )
        return RegenerateVisualizationOutput(session=session, result=updated)
