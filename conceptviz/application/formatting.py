"""
Name: Formatting Orchestrator

Responsibilities:
  - Chunk the source text around its concepts
  - Format every chunk concurrently and join them in chunk order
  - Wrap the document and prepend the highlight stylesheet

Collaborators:
  - domain.services.TextChunker: concept-aware chunking
  - application.chunk_formatting.ChunkFormatter: per-chunk model call
  - timing.StageTimings / metrics: chunk and format durations

Constraints:
  - Output order is chunk order (rescue chunks last), never completion order
  - One chunk failing degrades only that chunk (ChunkFormatter never raises)
  - At most one marker per concept text in the whole document
"""

import asyncio
from typing import List, Optional

from ..domain.entities import IndexedConcept
from ..domain.services import TextChunker
from ..logger import logger
from ..metrics import record_stage_metrics
from ..timing import StageTimings
from .chunk_formatting import ChunkFormatter
from .span_repair import suppress_duplicate_markers

HIGHLIGHT_STYLES = """<style>
.highlighted-concept {
  border-bottom: 2px solid #38BDF8;
  cursor: pointer;
  padding: 0 2px;
  transition: border-color 0.3s ease;
}
.highlighted-concept:hover {
  border-bottom-color: #64D3FF;
}
.highlighted-concept.active {
  border-bottom-color: #8DEBFF;
  font-weight: 500;
}
</style>"""


def wrap_document(html: str, with_styles: bool) -> str:
    """R: Wrap in a <div> unless already a block container; add styles."""
    if not (html.startswith("<div") or html.startswith("<section")):
        html = f"<div>{html}</div>"
    if with_styles:
        html = f"{HIGHLIGHT_STYLES}\n{html}"
    return html


class FormattingOrchestrator:
    """R: Produces the annotated HTML of a whole text."""

    def __init__(self, chunker: TextChunker, chunk_formatter: ChunkFormatter):
        self.chunker = chunker
        self.chunk_formatter = chunk_formatter

    async def format_text(
        self,
        text: str,
        concepts: List[IndexedConcept],
        timings: Optional[StageTimings] = None,
    ) -> str:
        """
        R: Format a text into one HTML document with concept markers.

        Args:
            text: Original source text
            concepts: Final indexed concepts (may be empty)
            timings: Optional collector for chunk/format durations

        Returns:
            Complete HTML (styles + wrapped chunks)
        """
        timings = timings or StageTimings()

        with timings.measure("chunk"):
            chunks = self.chunker.chunk(text, concepts)

        with timings.measure("format"):
            outputs = await asyncio.gather(
                *(self.chunk_formatter.format(chunk, concepts) for chunk in chunks)
            )

        record_stage_metrics(format_seconds=timings.seconds("format"))
        logger.info(
            "Text formatted",
            extra={
                "chunks": len(chunks),
                "concepts": len(concepts),
                "chunk_ms": timings.to_dict().get("chunk_ms"),
                "format_ms": timings.to_dict().get("format_ms"),
            },
        )
        # R: Chunks are repaired independently; a concept text repeated in a
        # later chunk is only highlighted at its first occurrence
        document = suppress_duplicate_markers("".join(outputs))
        return wrap_document(document, with_styles=bool(concepts))
