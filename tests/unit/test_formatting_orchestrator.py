"""
Name: Formatting Orchestrator Tests

Responsibilities:
  - End-to-end formatting of a short text with the deterministic model
  - Chunk-order join regardless of completion order
  - Document wrapping and stylesheet rules
"""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from conceptviz.application.chunk_formatting import ChunkFormatter
from conceptviz.application.concept_ranges import prepare_concepts
from conceptviz.application.formatting import (
    HIGHLIGHT_STYLES,
    FormattingOrchestrator,
    wrap_document,
)
from conceptviz.application.span_repair import MARKER_PATTERN, marker_indices
from conceptviz.domain.entities import Chunk
from conceptviz.infrastructure.services import FakeLLMService
from conceptviz.infrastructure.text import ConceptAwareChunker
from conceptviz.timing import StageTimings

pytestmark = pytest.mark.unit


@pytest.mark.asyncio
async def test_two_sentence_text_gets_one_chunk_and_ordered_markers(
    photosynthesis_text, sentence_concepts, prompt_loader
):
    concepts = prepare_concepts(sentence_concepts, photosynthesis_text)
    chunker = ConceptAwareChunker()
    orchestrator = FormattingOrchestrator(
        chunker, ChunkFormatter(FakeLLMService(), prompt_loader)
    )
    timings = StageTimings()

    html = await orchestrator.format_text(photosynthesis_text, concepts, timings)

    assert len(chunker.chunk(photosynthesis_text, concepts)) == 1
    assert html.startswith(HIGHLIGHT_STYLES)
    assert marker_indices(html) == [0, 1]
    inner = [m.group("inner") for m in MARKER_PATTERN.finditer(html)]
    assert inner == [c.text for c in concepts]
    assert {"chunk_ms", "format_ms"} <= set(timings.to_dict())


@pytest.mark.asyncio
async def test_join_follows_chunk_order_not_completion_order():
    chunks = [
        Chunk(text=f"chunk {i}", start_offset=i * 10, end_offset=i * 10 + 7)
        for i in range(4)
    ]
    chunker = Mock()
    chunker.chunk.return_value = chunks

    async def slow_first(chunk, concepts):
        # R: Earlier chunks finish later
        await asyncio.sleep(0.01 * (4 - chunk.start_offset // 10))
        return f"<p>{chunk.text}</p>"

    formatter = Mock()
    formatter.format = AsyncMock(side_effect=slow_first)
    orchestrator = FormattingOrchestrator(chunker, formatter)

    html = await orchestrator.format_text("irrelevant", [])

    assert html == "<div><p>chunk 0</p><p>chunk 1</p><p>chunk 2</p><p>chunk 3</p></div>"
    assert formatter.format.await_count == 4


@pytest.mark.asyncio
async def test_degraded_chunk_does_not_affect_others(mock_llm_service, prompt_loader):
    text = "First paragraph.\n\nSecond paragraph."
    mock_llm_service.generate_text = AsyncMock(
        side_effect=lambda prompt: "no html here" if "First paragraph" in prompt else "<p>Second</p>"
    )
    chunker = ConceptAwareChunker(paragraphs_per_chunk=1, max_paragraphs_per_chunk=1)
    orchestrator = FormattingOrchestrator(
        chunker, ChunkFormatter(mock_llm_service, prompt_loader)
    )

    html = await orchestrator.format_text(text, [])

    assert html == "<div><p>First paragraph.</p><p>Second</p></div>"


@pytest.mark.asyncio
async def test_concept_repeated_in_later_chunk_is_highlighted_once(
    make_concepts, prompt_loader
):
    text = "Solar energy powers cells.\n\nP2.\n\nP3.\n\nMore Solar energy later."
    concepts = make_concepts(text, [("Solar energy", "Solar energy")])
    chunker = ConceptAwareChunker()
    orchestrator = FormattingOrchestrator(
        chunker, ChunkFormatter(FakeLLMService(), prompt_loader)
    )

    html = await orchestrator.format_text(text, concepts)

    assert len(chunker.chunk(text, concepts)) == 2
    assert marker_indices(html) == [0]
    assert "More Solar energy later." in html


@pytest.mark.asyncio
async def test_concept_across_crlf_paragraphs_is_highlighted(make_concepts, prompt_loader):
    text = "Alpha beta.\r\n\r\nGamma delta."
    concepts = make_concepts(text, [("Beta gamma", "beta.\r\n\r\nGamma")])
    chunker = ConceptAwareChunker(paragraphs_per_chunk=1, max_paragraphs_per_chunk=3)
    orchestrator = FormattingOrchestrator(
        chunker, ChunkFormatter(FakeLLMService(), prompt_loader)
    )

    html = await orchestrator.format_text(text, concepts)

    assert marker_indices(html) == [0]


class TestWrapDocument:
    def test_wraps_fragment_in_div(self):
        assert wrap_document("<p>x</p>", with_styles=False) == "<div><p>x</p></div>"

    def test_keeps_existing_block_container(self):
        assert wrap_document("<section>x</section>", with_styles=False) == "<section>x</section>"

    def test_prepends_styles_when_requested(self):
        assert wrap_document("<div>x</div>", with_styles=True) == (
            f"{HIGHLIGHT_STYLES}\n<div>x</div>"
        )
