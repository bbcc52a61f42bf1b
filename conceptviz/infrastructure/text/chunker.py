"""
Name: Concept-Aware Paragraph Chunker

Responsibilities:
  - Split source text into ordered groups of paragraphs (target: 3)
  - Never close a chunk where an unassigned concept crosses the boundary
  - Guarantee every concept is fully contained in at least one chunk by
    appending synthetic "rescue" chunks when paragraph grouping cannot

Collaborators:
  - domain.entities: Chunk, IndexedConcept
  - metrics: rescue chunk counter

Constraints:
  - Paragraph offsets are located by monotonic forward search, so repeated
    paragraph text never maps back to an earlier occurrence
  - Chunk text is the exact source slice [start_offset, end_offset), original
    separators included, so a concept crossing paragraphs stays a substring
  - Rescue chunks may overlap normal chunks

Notes:
  - Paragraph boundary = two or more consecutive line breaks
  - A chunk is allowed to grow to max_paragraphs (5) to keep a concept whole;
    a concept spanning even more paragraphs gets a rescue chunk
  - Rescue chunk output is formatted and appended after the normal chunks,
    so its text can appear twice in the final HTML

Performance:
  - O(p * c) for p paragraphs and c concepts (c is small, <= ~10)
"""

import re
from typing import List

from ...domain.entities import Chunk, IndexedConcept
from ...logger import logger
from ...metrics import record_rescue_chunks

# R: Blank-line paragraph separators (LF, CRLF or mixed)
PARAGRAPH_SEPARATOR = re.compile(r"\n{2,}|\r\n{2,}|(?:\r\n|\n){2,}")

def _locate_paragraphs(text: str) -> List[tuple[str, int, int]]:
    """
    R: Split text into non-empty paragraphs with their true offsets.

    Returns:
        (paragraph, start, end) tuples in text order
    """
    located: List[tuple[str, int, int]] = []
    cursor = 0
    for paragraph in PARAGRAPH_SEPARATOR.split(text):
        if not paragraph.strip():
            continue
        start = text.find(paragraph, cursor)
        if start == -1:
            continue
        end = start + len(paragraph)
        cursor = end
        located.append((paragraph, start, end))
    return located


def split_into_chunks(
    text: str,
    concepts: List[IndexedConcept],
    paragraphs_per_chunk: int = 3,
    max_paragraphs_per_chunk: int = 5,
    rescue_context_chars: int = 300,
) -> List[Chunk]:
    """
    R: Group paragraphs into chunks without bisecting any concept.

    Args:
        text: Original source text
        concepts: Final indexed concepts (offsets into text)
        paragraphs_per_chunk: Paragraph count at which a chunk wants to close
        max_paragraphs_per_chunk: Paragraph count at which the concept veto
            stops applying
        rescue_context_chars: Context on each side of a rescued concept

    Returns:
        Normal chunks in text order, then rescue chunks (one per concept no
        normal chunk fully contains)
    """
    paragraphs = _locate_paragraphs(text)
    ordered_concepts = sorted(concepts, key=lambda c: c.start_offset)
    assigned: set[int] = set()
    chunks: List[Chunk] = []

    current: List[str] = []
    chunk_start = 0
    last_position = len(paragraphs) - 1

    for position, (paragraph, paragraph_start, paragraph_end) in enumerate(paragraphs):
        if not current:
            chunk_start = paragraph_start
        current.append(paragraph)

        is_last = position == last_position
        should_close = len(current) >= paragraphs_per_chunk or is_last

        if should_close and not is_last:
            # R: Boundary P = end of this paragraph
            boundary = paragraph_end
            spans_boundary = any(
                c.start_offset <= boundary < c.end_offset and c.index not in assigned
                for c in ordered_concepts
            )
            if spans_boundary and len(current) < max_paragraphs_per_chunk:
                continue

        if should_close:
            chunk = Chunk(
                text=text[chunk_start:paragraph_end],
                start_offset=chunk_start,
                end_offset=paragraph_end,
            )
            assigned.update(c.index for c in ordered_concepts if chunk.contains(c))
            chunks.append(chunk)
            current = []

    rescued = 0
    for concept in ordered_concepts:
        if concept.index in assigned:
            continue
        context_start = max(0, concept.start_offset - rescue_context_chars)
        context_end = min(len(text), concept.end_offset + rescue_context_chars)
        chunks.append(
            Chunk(
                text=text[context_start:context_end],
                start_offset=context_start,
                end_offset=context_end,
                is_rescue=True,
            )
        )
        assigned.add(concept.index)
        rescued += 1
        logger.warning(
            "Concept not contained in any paragraph chunk, added rescue chunk",
            extra={
                "concept_index": concept.index,
                "concept_range": [concept.start_offset, concept.end_offset],
                "chunk_range": [context_start, context_end],
            },
        )

    record_rescue_chunks(rescued)
    logger.info(
        "Text split into chunks",
        extra={
            "paragraphs": len(paragraphs),
            "chunks": len(chunks),
            "rescue_chunks": rescued,
        },
    )
    return chunks


class ConceptAwareChunker:
    """
    R: TextChunker implementation backed by split_into_chunks.

    Validates parameters on initialization to fail fast.
    """

    def __init__(
        self,
        paragraphs_per_chunk: int = 3,
        max_paragraphs_per_chunk: int = 5,
        rescue_context_chars: int = 300,
    ):
        """
        Initialize chunker with validated parameters.

        Raises:
            ValueError: If parameters are invalid
        """
        if paragraphs_per_chunk < 1:
            raise ValueError(
                f"paragraphs_per_chunk must be >= 1, got {paragraphs_per_chunk}"
            )
        if max_paragraphs_per_chunk < paragraphs_per_chunk:
            raise ValueError(
                f"max_paragraphs_per_chunk ({max_paragraphs_per_chunk}) must be >= "
                f"paragraphs_per_chunk ({paragraphs_per_chunk})"
            )
        if rescue_context_chars < 0:
            raise ValueError(
                f"rescue_context_chars must be >= 0, got {rescue_context_chars}"
            )

        self.paragraphs_per_chunk = paragraphs_per_chunk
        self.max_paragraphs_per_chunk = max_paragraphs_per_chunk
        self.rescue_context_chars = rescue_context_chars

    def chunk(self, text: str, concepts: List[IndexedConcept]) -> List[Chunk]:
        return split_into_chunks(
            text,
            concepts,
            paragraphs_per_chunk=self.paragraphs_per_chunk,
            max_paragraphs_per_chunk=self.max_paragraphs_per_chunk,
            rescue_context_chars=self.rescue_context_chars,
        )
