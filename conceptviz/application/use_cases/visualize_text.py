"""
Name: Visualize Text Use Case

Responsibilities:
  - Run the whole pipeline for one text: extract -> prepare concepts ->
    format -> render every concept concurrently
  - Own the session lifecycle of a visualize operation (reset, rollback on
    failure, commit)
  - Measure stage timings (extract, chunk, format, render)

Collaborators:
  - domain.services: ConceptExtractor, VisualizationRenderer
  - domain.repositories.SessionRepository
  - application.concept_ranges.prepare_concepts
  - application.formatting.FormattingOrchestrator
  - application.active_concept: loads results into the reader state

Constraints:
  - The session is reset before the first await
  - Render results are written back in concept order, failures dropped
  - A run whose session generation changed meanwhile never commits

Notes:
  - Formatting failure is tolerated (formatted_html stays None and the
    reader shows plain text); extraction failure is not
  - results[i].concept_index keeps the marker index even when failed renders
    compact the list; the reader maps markers to positions through it
"""

import asyncio
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional

from ...domain.entities import (
    IndexedConcept,
    RendererName,
    SessionPhase,
    VisualizationResult,
    VisualizationSession,
)
from ...domain.repositories import SessionRepository
from ...domain.services import ConceptExtractor, VisualizationRenderer
from ...domain.value_objects import ReaderState
from ...exceptions import ExtractionError
from ...logger import logger
from ...metrics import record_stage_metrics
from ...timing import StageTimings
from ..active_concept import ActiveConceptSynchronizer, ResultsLoaded
from ..concept_ranges import prepare_concepts
from ..formatting import FormattingOrchestrator
from .session_access import load_session, resolve_renderer, validate_source_text

NO_RESULTS_MESSAGE = "No concepts could be visualized successfully"
FAILURE_PREFIX = "Failed to generate visualizations"


@dataclass
class VisualizeTextInput:
    """
    R: Input data for VisualizeText use case.

    Attributes:
        text: Source text
        session_id: Existing session to re-run (None creates one)
        renderer: Renderer for every concept ("gemini" or "claude")
    """

    text: str
    session_id: Optional[str] = None
    renderer: RendererName = "gemini"


@dataclass
class VisualizeTextOutput:
    session: VisualizationSession
    committed: bool = True
    timings: Dict[str, float] = field(default_factory=dict)


async def render_concepts(
    renderer: VisualizationRenderer, concepts: List[IndexedConcept]
) -> List[VisualizationResult]:
    """
    R: Render all concepts concurrently, keep successes in concept order.
    """
    outcomes = await asyncio.gather(
        *(renderer.render(c.title, c.description) for c in concepts),
        return_exceptions=True,
    )

    results: List[VisualizationResult] = []
    for concept, outcome in zip(concepts, outcomes):
        if isinstance(outcome, Exception):
            logger.warning(
                "Concept visualization failed",
                extra={
                    "concept_index": concept.index,
                    "renderer": renderer.name,
                    "error_type": type(outcome).__name__,
                },
            )
            continue
        if isinstance(outcome, BaseException):
            raise outcome
        results.append(VisualizationResult.for_concept(concept, outcome))
    return results


class VisualizeTextUseCase:
    """R: Use case for the visualize operation."""

    def __init__(
        self,
        repository: SessionRepository,
        extractor: ConceptExtractor,
        orchestrator: FormattingOrchestrator,
        renderers: Mapping[str, VisualizationRenderer],
        synchronizer_factory: Callable[[ReaderState], ActiveConceptSynchronizer],
        max_text_chars: Optional[int] = None,
    ):
        self.repository = repository
        self.extractor = extractor
        self.orchestrator = orchestrator
        self.renderers = renderers
        self.synchronizer_factory = synchronizer_factory
        self.max_text_chars = max_text_chars

    async def execute(self, input_data: VisualizeTextInput) -> VisualizeTextOutput:
        """
        R: Visualize a text into a session.

        Raises:
            InvalidInputError: Blank/oversized text or unknown renderer
            SessionNotFoundError: session_id given but unknown
            ExtractionError: No concepts, or no concept could be rendered
        """
        validate_source_text(input_data.text, self.max_text_chars)
        renderer = resolve_renderer(self.renderers, input_data.renderer)
        session = (
            load_session(self.repository, input_data.session_id)
            if input_data.session_id
            else self.repository.create_session()
        )

        # R: Reset before the first await so no stale state is ever visible
        generation = session.reset(input_data.text, phase=SessionPhase.VISUALIZING)
        session.renderer = input_data.renderer
        self.repository.save_session(session)

        text = input_data.text
        timings = StageTimings()
        try:
            with timings.measure("extract"):
                raw_concepts = await self.extractor.extract(text)
            concepts = prepare_concepts(raw_concepts, text)
            if not concepts:
                raise ExtractionError("No valid concepts found in the text")

            formatted_html = await self._format(text, concepts, timings)

            with timings.measure("render"):
                results = await render_concepts(renderer, concepts)
            if not results:
                raise ExtractionError(NO_RESULTS_MESSAGE)
        except ExtractionError as e:
            self._record(timings)
            message = f"{FAILURE_PREFIX}: {e.message}"
            if session.is_current(generation):
                session.phase = SessionPhase.INPUT
                session.error = message
                self.repository.save_session(session)
            logger.warning(
                "Visualization failed",
                extra={"session_id": session.id, "error_id": e.error_id},
            )
            raise ExtractionError(message, error_id=e.error_id, original_error=e) from e

        self._record(timings)
        if not session.is_current(generation):
            logger.info(
                "Discarded stale visualization run",
                extra={"session_id": session.id, "generation": generation},
            )
            return VisualizeTextOutput(
                session=session, committed=False, timings=timings.to_dict()
            )

        rendered = {result.concept_index for result in results}
        session.concepts = [c for c in concepts if c.index in rendered]
        session.results = results
        session.formatted_html = formatted_html
        session.phase = SessionPhase.VISUALIZATION
        session.reader = (
            self.synchronizer_factory(session.reader)
            .dispatch(
                ResultsLoaded(
                    concept_indices=tuple(r.concept_index for r in results),
                    start_offsets=tuple(r.start_offset for r in results),
                )
            )
            .state
        )
        self.repository.save_session(session)

        logger.info(
            "Visualization completed",
            extra={
                "session_id": session.id,
                "concepts": len(concepts),
                "results": len(results),
                "renderer": renderer.name,
                **timings.to_dict(),
            },
        )
        return VisualizeTextOutput(session=session, timings=timings.to_dict())

    async def _format(
        self, text: str, concepts: List[IndexedConcept], timings: StageTimings
    ) -> Optional[str]:
        try:
            return await self.orchestrator.format_text(text, concepts, timings)
        except Exception as e:
            logger.error(
                "Formatting failed, reader falls back to plain text",
                exc_info=e,
                extra={"error_type": type(e).__name__},
            )
            return None

    @staticmethod
    def _record(timings: StageTimings) -> None:
        record_stage_metrics(
            extract_seconds=timings.seconds("extract"),
            render_seconds=timings.seconds("render"),
        )
