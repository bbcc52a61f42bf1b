"""
Name: Chunk Formatter

Responsibilities:
  - Turn one chunk of plain text into annotated HTML via the model
  - Give the model only the concepts whose text occurs in the chunk
  - Clean prompt echoes / fences / preambles out of the model output
  - Repair highlight markers (fragments, wrong text, duplicates)
  - Degrade to a plain escaped paragraph on any failure

Collaborators:
  - domain.services.LLMService: formatting model
  - infrastructure.prompts.PromptLoader: format_chunk templates
  - application.span_repair: marker repair
  - metrics: degraded chunk counter

Constraints:
  - Never raises: a FormattingError is logged and the chunk falls back
  - Relevance is plain substring containment of the concept text
  - Markers in a chunk without relevant concepts are unwrapped

Notes:
  - The concept block and the highlight rules are separate templates so a
    chunk without concepts gets a prompt that never mentions markers
"""

import html as html_lib
import json
import re
from typing import List, Optional

from ..domain.entities import Chunk, IndexedConcept
from ..domain.services import LLMService
from ..exceptions import FormattingError
from ..infrastructure.prompts import PromptLoader, get_prompt_loader
from ..logger import logger
from ..metrics import record_degraded_chunk
from .span_repair import repair_concept_spans

_TAG_SPAN = re.compile(r"<[\s\S]*>")
_CODE_FENCES = re.compile(r"```html\s+|```\s*$")
_PROMPT_MARKERS = re.compile(
    r"#INPUT_TEXT|#END_INPUT_TEXT|#CONCEPTS_TO_HIGHLIGHT|#END_CONCEPTS_TO_HIGHLIGHT"
)
_ECHOED_REQUIREMENTS = re.compile(r"Requirements:[\s\S]*?(-|•)[\s\S]*?\n\n")


def relevant_concepts(chunk: Chunk, concepts: List[IndexedConcept]) -> List[IndexedConcept]:
    """R: Concepts whose verbatim text occurs somewhere in the chunk."""
    return [c for c in concepts if c.text and c.text in chunk.text]


def clean_model_html(raw_output: str) -> str:
    """
    R: Strip everything that is not the HTML fragment itself.

    Raises:
        FormattingError: If the output contains no tag at all
    """
    match = _TAG_SPAN.search(raw_output)
    if not match:
        raise FormattingError("Formatting model returned no HTML")

    cleaned = match.group(0)
    cleaned = _CODE_FENCES.sub("", cleaned)
    cleaned = _PROMPT_MARKERS.sub("", cleaned)
    cleaned = _ECHOED_REQUIREMENTS.sub("", cleaned)
    return cleaned.strip()


def fallback_html(chunk: Chunk) -> str:
    return f"<p>{html_lib.escape(chunk.text)}</p>"


class ChunkFormatter:
    """R: Formats one chunk; one instance serves concurrent chunks."""

    def __init__(self, llm_service: LLMService, prompt_loader: Optional[PromptLoader] = None):
        self.llm_service = llm_service
        self.prompt_loader = prompt_loader or get_prompt_loader()

    def build_prompt(self, chunk: Chunk, concepts: List[IndexedConcept]) -> str:
        if concepts:
            concepts_json = json.dumps(
                [
                    {
                        "index": c.index,
                        "title": c.title,
                        "description": c.description,
                        "text": c.text,
                    }
                    for c in concepts
                ],
                indent=2,
                ensure_ascii=False,
            )
            concepts_block = self.prompt_loader.format(
                "format_chunk_concepts", concepts_json=concepts_json
            )
            concept_rules = self.prompt_loader.get_template("format_chunk_rules")
        else:
            concepts_block = "\n"
            concept_rules = ""

        return self.prompt_loader.format(
            "format_chunk",
            input_text=chunk.text,
            concepts_block=concepts_block,
            concept_rules=concept_rules,
        )

    async def format(self, chunk: Chunk, concepts: List[IndexedConcept]) -> str:
        """
        R: Format a chunk into HTML with concept markers.

        Args:
            chunk: Chunk to format
            concepts: All indexed concepts of the text

        Returns:
            HTML fragment (never raises)
        """
        relevant = relevant_concepts(chunk, concepts)
        try:
            raw_output = await self.llm_service.generate_text(
                self.build_prompt(chunk, relevant)
            )
            cleaned = clean_model_html(raw_output)
            return repair_concept_spans(cleaned, relevant)
        except Exception as e:
            error = e if isinstance(e, FormattingError) else FormattingError(
                f"Chunk formatting failed: {e}", original_error=e
            )
            record_degraded_chunk()
            logger.warning(
                "Chunk formatting failed, using plain paragraph",
                extra={
                    "error_id": error.error_id,
                    "error_type": type(e).__name__,
                    "chunk_range": [chunk.start_offset, chunk.end_offset],
                    "is_rescue": chunk.is_rescue,
                },
            )
            return fallback_html(chunk)
