"""
Name: Extract Concepts Use Case

Responsibilities:
  - Stateless extraction: raw text -> prepared, indexed concepts
  - Measure the extraction stage
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ...domain.entities import IndexedConcept
from ...domain.services import ConceptExtractor
from ...metrics import record_stage_metrics
from ...timing import StageTimings
from ..concept_ranges import prepare_concepts
from .session_access import validate_source_text


@dataclass
class ExtractConceptsInput:
    text: str


@dataclass
class ExtractConceptsOutput:
    concepts: List[IndexedConcept]
    timings: Dict[str, float] = field(default_factory=dict)


class ExtractConceptsUseCase:
    """R: Extract and prepare concepts without touching any session."""

    def __init__(self, extractor: ConceptExtractor, max_text_chars: Optional[int] = None):
        self.extractor = extractor
        self.max_text_chars = max_text_chars

    async def execute(self, input_data: ExtractConceptsInput) -> ExtractConceptsOutput:
        validate_source_text(input_data.text, self.max_text_chars)
        timings = StageTimings()
        with timings.measure("extract"):
            raw_concepts = await self.extractor.extract(input_data.text)
        record_stage_metrics(extract_seconds=timings.seconds("extract"))
        return ExtractConceptsOutput(
            concepts=prepare_concepts(raw_concepts, input_data.text),
            timings=timings.to_dict(),
        )
