"""
Name: API Schemas

Responsibilities:
  - Pydantic request/response models for the HTTP and WebSocket surface
  - Map domain objects (sessions, concepts, results, reader state) to
    response models

Constraints:
  - snake_case JSON fields
  - No business logic beyond field validation
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ..application.active_concept import ScrollIntoView, SyncUpdate
from ..domain.entities import (
    Concept,
    ConversationMessage,
    IndexedConcept,
    VisualizationResult,
    VisualizationSession,
)
from ..domain.value_objects import ReaderState

RendererField = Literal["gemini", "claude"]


# R: Requests ---------------------------------------------------------------


class ConceptIn(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = ""
    start_offset: int = Field(..., ge=0)
    end_offset: int = Field(..., ge=0)

    def to_domain(self) -> Concept:
        return Concept(
            title=self.title,
            description=self.description,
            start_offset=self.start_offset,
            end_offset=self.end_offset,
        )


class TextReq(BaseModel):
    text: str = Field(..., description="Source text")


class VisualizeReq(TextReq):
    renderer: RendererField = "gemini"


class FormatReq(TextReq):
    concepts: list[ConceptIn] = Field(default_factory=list)


class RegenerateReq(BaseModel):
    renderer: Optional[RendererField] = None


class NavigationReq(BaseModel):
    action: Literal["previous", "next", "jump", "click"]
    index: Optional[int] = Field(
        default=None,
        description="Results position for jump, marker concept index for click",
    )


class AskReq(BaseModel):
    question: str = Field(..., min_length=1)

    @field_validator("question")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        return v.strip()


class UrlReq(BaseModel):
    url: str = Field(..., min_length=1, max_length=2048)


# R: Responses --------------------------------------------------------------


class ConceptRes(BaseModel):
    index: int
    title: str
    description: str
    start_offset: int
    end_offset: int
    text: str

    @classmethod
    def from_domain(cls, concept: IndexedConcept) -> "ConceptRes":
        return cls(
            index=concept.index,
            title=concept.title,
            description=concept.description,
            start_offset=concept.start_offset,
            end_offset=concept.end_offset,
            text=concept.text,
        )


class ResultRes(BaseModel):
    concept_index: int
    concept_title: str
    concept_description: str
    start_offset: int
    end_offset: int
    svg: str

    @classmethod
    def from_domain(cls, result: VisualizationResult) -> "ResultRes":
        return cls(
            concept_index=result.concept_index,
            concept_title=result.concept_title,
            concept_description=result.concept_description,
            start_offset=result.start_offset,
            end_offset=result.end_offset,
            svg=result.svg,
        )


class ReaderStateRes(BaseModel):
    phase: str
    active_index: Optional[int]
    active_concept_index: Optional[int]
    requested_index: Optional[int]
    result_count: int

    @classmethod
    def from_domain(cls, state: ReaderState) -> "ReaderStateRes":
        active_concept_index = (
            state.concept_indices[state.active_index]
            if state.active_index is not None and state.is_valid_position(state.active_index)
            else None
        )
        return cls(
            phase=state.phase.value,
            active_index=state.active_index,
            active_concept_index=active_concept_index,
            requested_index=state.requested_index,
            result_count=state.result_count,
        )


class EffectRes(BaseModel):
    type: Literal["scroll_into_view"] = "scroll_into_view"
    index: int
    concept_index: int

    @classmethod
    def from_domain(cls, effect: ScrollIntoView) -> "EffectRes":
        return cls(index=effect.index, concept_index=effect.concept_index)


class MessageRes(BaseModel):
    role: str
    content: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, message: ConversationMessage) -> "MessageRes":
        return cls(
            role=message.role, content=message.content, created_at=message.created_at
        )


class SessionRes(BaseModel):
    id: str
    phase: str
    renderer: str
    source_text: str
    concepts: list[ConceptRes]
    results: list[ResultRes]
    formatted_html: Optional[str]
    error: Optional[str]
    reader: ReaderStateRes
    conversation: list[MessageRes]
    generation: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, session: VisualizationSession) -> "SessionRes":
        return cls(
            id=session.id,
            phase=session.phase.value,
            renderer=session.renderer,
            source_text=session.source_text,
            concepts=[ConceptRes.from_domain(c) for c in session.concepts],
            results=[ResultRes.from_domain(r) for r in session.results],
            formatted_html=session.formatted_html,
            error=session.error,
            reader=ReaderStateRes.from_domain(session.reader),
            conversation=[MessageRes.from_domain(m) for m in session.conversation],
            generation=session.generation,
            created_at=session.created_at,
            updated_at=session.updated_at,
        )


class VisualizeRes(BaseModel):
    session: SessionRes
    committed: bool
    timings: dict[str, float]


class ConceptsRes(BaseModel):
    concepts: list[ConceptRes]
    timings: dict[str, float]


class FormatRes(BaseModel):
    html: str
    concepts: list[ConceptRes]
    timings: dict[str, float]


class RegenerateRes(BaseModel):
    session_id: str
    index: int
    result: ResultRes


class SyncRes(BaseModel):
    state: ReaderStateRes
    effects: list[EffectRes]

    @classmethod
    def from_update(cls, update: SyncUpdate) -> "SyncRes":
        return cls(
            state=ReaderStateRes.from_domain(update.state),
            effects=[EffectRes.from_domain(e) for e in update.effects],
        )


class FormattingRes(BaseModel):
    session: SessionRes
    timings: dict[str, float]


class AskRes(BaseModel):
    answer_html: str
    conversation: list[MessageRes]
    timings: dict[str, float]


class SourceTextRes(BaseModel):
    source: str
    text: str
    chars: int
    truncated: bool
