"""
Name: Concept Extractors

Responsibilities:
  - Ask the model for the important concepts of a text with their offsets
  - Parse the JSON array out of free-form model output
  - Validate every item at the boundary (pydantic), clamp offsets into the
    text, drop malformed or empty ranges
  - Provide a deterministic, model-free extractor for tests/CI

Collaborators:
  - domain.services.LLMService: text generation
  - infrastructure.prompts.PromptLoader: "extract_concepts" template
  - domain.entities.Concept: raw extraction output

Constraints:
  - Output is RAW: offsets may still be mid-word or overlapping; the
    application range pipeline fixes them
  - ExtractionError when there is no parseable list or nothing survives

Notes:
  - Model wording varies; the first "[" to the last "]" is taken as the array
"""

import json
import re
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ...domain.entities import Concept
from ...domain.services import LLMService
from ...exceptions import ExtractionError, LLMError, OffsetIntegrityError
from ...logger import logger
from ..prompts import PromptLoader, get_prompt_loader

_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")

# R: Default concept cap for long text
MAX_CONCEPTS = 7


class ExtractedConceptItem(BaseModel):
    """R: One concept as the model reports it."""

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(min_length=1)
    description: str = ""
    start_offset: int = Field(alias="startOffset")
    end_offset: int = Field(alias="endOffset")


def parse_concepts(raw_output: str, text: str) -> List[Concept]:
    """
    R: Turn raw model output into Concepts.

    Args:
        raw_output: Model reply (may wrap the JSON in prose or fences)
        text: Source text the offsets refer to

    Returns:
        Concepts with offsets clamped to [0, len(text)]

    Raises:
        ExtractionError: No JSON array, invalid JSON, or no valid item
    """
    match = _JSON_ARRAY.search(raw_output)
    if not match:
        raise ExtractionError("Could not parse concepts from the model response")

    try:
        items = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise ExtractionError(
            "Could not parse concepts from the model response", original_error=e
        ) from e
    if not isinstance(items, list):
        raise ExtractionError("Could not parse concepts from the model response")

    concepts: List[Concept] = []
    for position, item in enumerate(items):
        try:
            parsed = ExtractedConceptItem.model_validate(item)
        except ValidationError as e:
            logger.warning(
                "Dropped malformed concept item",
                extra={"position": position, "errors": e.error_count()},
            )
            continue

        start = min(max(parsed.start_offset, 0), len(text))
        end = min(max(parsed.end_offset, 0), len(text))
        if start >= end:
            error = OffsetIntegrityError(
                f"Concept '{parsed.title}' has empty range [{start}, {end})"
            )
            logger.warning(
                "Offset integrity violation",
                extra={"error_id": error.error_id, "error_message": error.message},
            )
            continue

        concepts.append(
            Concept(
                title=parsed.title.strip(),
                description=parsed.description.strip(),
                start_offset=start,
                end_offset=end,
            )
        )

    if not concepts:
        raise ExtractionError("No valid concepts found in the text")
    return concepts


class LLMConceptExtractor:
    """R: ConceptExtractor backed by an LLMService."""

    def __init__(
        self,
        llm_service: LLMService,
        prompt_loader: Optional[PromptLoader] = None,
        max_concepts: int = MAX_CONCEPTS,
    ):
        self.llm_service = llm_service
        self.prompt_loader = prompt_loader or get_prompt_loader()
        self.max_concepts = max_concepts

    async def extract(self, text: str) -> List[Concept]:
        """
        R: Extract raw concepts from text.

        Raises:
            ExtractionError: Model failure or unusable output
        """
        prompt = self.prompt_loader.format(
            "extract_concepts", text=text, max_concepts=str(self.max_concepts)
        )
        try:
            raw_output = await self.llm_service.generate_text(prompt)
        except LLMError as e:
            raise ExtractionError(e.message, original_error=e) from e

        concepts = parse_concepts(raw_output, text)
        logger.info(
            "Concepts extracted",
            extra={"count": len(concepts), "model_id": self.llm_service.model_id},
        )
        return concepts


# R: Candidate terms for the fake extractor (words of 6+ characters)
_CANDIDATE_TERM = re.compile(r"\b[A-Za-z][A-Za-z0-9-]{5,}\b")


class FakeConceptExtractor:
    """
    R: Deterministic ConceptExtractor for tests/CI.

    Picks the first occurrence of each distinct word of six or more
    characters, up to max_concepts. Raises ExtractionError when none exist.
    """

    def __init__(self, max_concepts: int = MAX_CONCEPTS):
        self.max_concepts = max_concepts
        logger.info("FakeConceptExtractor initialized")

    async def extract(self, text: str) -> List[Concept]:
        seen: set[str] = set()
        concepts: List[Concept] = []
        for match in _CANDIDATE_TERM.finditer(text):
            word = match.group(0)
            if word.lower() in seen:
                continue
            seen.add(word.lower())
            concepts.append(
                Concept(
                    title=word.capitalize(),
                    description=f"Simulated description of {word}.",
                    start_offset=match.start(),
                    end_offset=match.end(),
                )
            )
            if len(concepts) >= self.max_concepts:
                break

        if not concepts:
            raise ExtractionError("No valid concepts found in the text")
        return concepts
