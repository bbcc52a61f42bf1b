"""
Name: Format Text Use Case

Responsibilities:
  - Stateless formatting: text (+ optional raw concepts) -> annotated HTML
  - Prepare caller-supplied concepts with the same range pipeline as
    extraction output (validate, resolve, dedup, index)
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ...domain.entities import Concept, IndexedConcept
from ...timing import StageTimings
from ..concept_ranges import prepare_concepts
from ..formatting import FormattingOrchestrator
from .session_access import validate_source_text


@dataclass
class FormatTextInput:
    text: str
    concepts: List[Concept] = field(default_factory=list)


@dataclass
class FormatTextOutput:
    html: str
    concepts: List[IndexedConcept]
    timings: Dict[str, float] = field(default_factory=dict)


class FormatTextUseCase:
    """R: Format a text without a session."""

    def __init__(
        self, orchestrator: FormattingOrchestrator, max_text_chars: Optional[int] = None
    ):
        self.orchestrator = orchestrator
        self.max_text_chars = max_text_chars

    async def execute(self, input_data: FormatTextInput) -> FormatTextOutput:
        validate_source_text(input_data.text, self.max_text_chars)
        concepts = prepare_concepts(input_data.concepts, input_data.text)
        timings = StageTimings()
        html = await self.orchestrator.format_text(input_data.text, concepts, timings)
        return FormatTextOutput(html=html, concepts=concepts, timings=timings.to_dict())
