"""
Name: Domain Entities

Responsibilities:
  - Define the core data of the visualization pipeline (Concept,
    IndexedConcept, Chunk, VisualizationResult)
  - Define the session aggregate that owns one visualize lifecycle
  - Define conversation messages for the assistant

Collaborators:
  - domain.value_objects: ReaderState held by the session

Constraints:
  - No dependencies on infrastructure or frameworks
  - Offsets are half-open [start, end) character ranges into the ORIGINAL
    source text

Notes:
  - IndexedConcept.index is assigned once (after sort by offset) and is the
    only identifier HTML markers and the reader may use
  - VisualizationResult.concept_index keeps that identifier even when failed
    renders compact the results list
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import List, Literal, Optional

from .value_objects import ReaderState


@dataclass
class Concept:
    """
    R: A titled, described unit of meaning located by offsets in source text.

    Attributes:
        title: Short label (max ~5 words)
        description: 1-2 sentence explanation
        start_offset: Inclusive start character position
        end_offset: Exclusive end character position
    """

    title: str
    description: str
    start_offset: int
    end_offset: int

    def text_in(self, source: str) -> str:
        """R: Verbatim text this concept covers in source."""
        return source[self.start_offset : self.end_offset]

    def with_range(self, start_offset: int, end_offset: int) -> "Concept":
        return replace(self, start_offset=start_offset, end_offset=end_offset)


@dataclass(frozen=True)
class IndexedConcept:
    """
    R: A concept with its final stable index and verbatim text.

    Attributes:
        index: Position in the deduplicated, offset-sorted concept list
        title: Short label
        description: 1-2 sentence explanation
        start_offset: Inclusive start in source
        end_offset: Exclusive end in source
        text: source[start_offset:end_offset]
    """

    index: int
    title: str
    description: str
    start_offset: int
    end_offset: int
    text: str


@dataclass(frozen=True)
class Chunk:
    """
    R: Contiguous, paragraph-aligned slice of the source text.

    Attributes:
        text: Chunk text (paragraphs joined by a blank line)
        start_offset: Start of the first paragraph in source
        end_offset: End of the last paragraph in source
        is_rescue: True for synthetic context chunks built around a concept
            that no paragraph chunk could contain
    """

    text: str
    start_offset: int
    end_offset: int
    is_rescue: bool = False

    def contains(self, concept: IndexedConcept) -> bool:
        return (
            concept.start_offset >= self.start_offset
            and concept.end_offset <= self.end_offset
        )


@dataclass
class VisualizationResult:
    """
    R: A concept paired with its rendered SVG.

    Attributes:
        concept_index: IndexedConcept.index this result was rendered for
        concept_title: Concept title
        concept_description: Concept description
        start_offset: Concept start in source
        end_offset: Concept end in source
        svg: Rendered SVG markup
    """

    concept_index: int
    concept_title: str
    concept_description: str
    start_offset: int
    end_offset: int
    svg: str

    @classmethod
    def for_concept(cls, concept: IndexedConcept, svg: str) -> "VisualizationResult":
        return cls(
            concept_index=concept.index,
            concept_title=concept.title,
            concept_description=concept.description,
            start_offset=concept.start_offset,
            end_offset=concept.end_offset,
            svg=svg,
        )


@dataclass
class ConversationMessage:
    """
    R: A single message in the assistant conversation.

    Attributes:
        role: "user" or "assistant"
        content: Question text or answer HTML
        created_at: Timestamp when the message was created
    """

    role: Literal["user", "assistant"]
    content: str
    created_at: Optional[datetime] = None


class SessionPhase(str, Enum):
    """R: Which view the session is in."""

    INPUT = "input"
    VISUALIZING = "visualizing"
    VISUALIZATION = "visualization"


RendererName = Literal["gemini", "claude"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class VisualizationSession:
    """
    R: In-memory owner of one visualize lifecycle.

    A session is owned by at most one in-flight visualize operation. Starting
    a new one (or a "new visualization") resets it wholesale and bumps
    `generation`; an operation whose generation no longer matches must not
    commit.
    """

    id: str
    source_text: str = ""
    renderer: RendererName = "gemini"
    phase: SessionPhase = SessionPhase.INPUT
    concepts: List[IndexedConcept] = field(default_factory=list)
    results: List[VisualizationResult] = field(default_factory=list)
    formatted_html: Optional[str] = None
    error: Optional[str] = None
    generation: int = 0
    reader: ReaderState = field(default_factory=ReaderState)
    conversation: List[ConversationMessage] = field(default_factory=list)
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def reset(self, source_text: str = "", phase: SessionPhase = SessionPhase.INPUT) -> int:
        """
        R: Destroy all visualization state and start a new generation.

        Returns:
            The new generation number
        """
        self.generation += 1
        self.source_text = source_text
        self.phase = phase
        self.concepts = []
        self.results = []
        self.formatted_html = None
        self.error = None
        self.reader = ReaderState()
        self.conversation = []
        self.touch()
        return self.generation

    def touch(self) -> None:
        self.updated_at = _utcnow()

    def is_current(self, generation: int) -> bool:
        return self.generation == generation
