"""
Name: Stateless Use Case Tests

Responsibilities:
  - ExtractConceptsUseCase: raw extraction is prepared and timed
  - FormatTextUseCase: caller concepts go through the range pipeline
"""

from unittest.mock import AsyncMock, Mock

import pytest

from conceptviz.application.chunk_formatting import ChunkFormatter
from conceptviz.application.formatting import FormattingOrchestrator
from conceptviz.application.span_repair import marker_indices
from conceptviz.application.use_cases import (
    ExtractConceptsInput,
    ExtractConceptsUseCase,
    FormatTextInput,
    FormatTextUseCase,
)
from conceptviz.domain.entities import Concept
from conceptviz.exceptions import ExtractionError, InvalidInputError
from conceptviz.infrastructure.services import FakeLLMService
from conceptviz.infrastructure.text import ConceptAwareChunker

pytestmark = pytest.mark.unit


def _extractor(concepts=None, error=None) -> Mock:
    extractor = Mock()
    extractor.extract = AsyncMock(return_value=concepts, side_effect=error)
    return extractor


class TestExtractConceptsUseCase:
    @pytest.mark.asyncio
    async def test_raw_concepts_are_prepared(self):
        text = "See a catsdog jumped high"
        extractor = _extractor(
            [Concept(title="Cats", description="Pets.", start_offset=8, end_offset=11)]
        )

        output = await ExtractConceptsUseCase(extractor).execute(ExtractConceptsInput(text=text))

        assert [(c.index, c.text, c.start_offset, c.end_offset) for c in output.concepts] == [
            (0, "catsdog", 6, 13)
        ]
        assert "extract_ms" in output.timings
        extractor.extract.assert_awaited_once_with(text)

    @pytest.mark.asyncio
    async def test_text_validation(self):
        extractor = _extractor([])
        use_case = ExtractConceptsUseCase(extractor, max_text_chars=5)

        with pytest.raises(InvalidInputError):
            await use_case.execute(ExtractConceptsInput(text="   "))
        with pytest.raises(InvalidInputError, match="too long"):
            await use_case.execute(ExtractConceptsInput(text="far too long"))
        extractor.extract.assert_not_called()

    @pytest.mark.asyncio
    async def test_extraction_errors_propagate(self):
        use_case = ExtractConceptsUseCase(_extractor(error=ExtractionError("nothing")))

        with pytest.raises(ExtractionError):
            await use_case.execute(ExtractConceptsInput(text="Some text."))


class TestFormatTextUseCase:
    @pytest.mark.asyncio
    async def test_formats_with_prepared_concepts(
        self, photosynthesis_text, sentence_concepts, prompt_loader
    ):
        orchestrator = FormattingOrchestrator(
            ConceptAwareChunker(), ChunkFormatter(FakeLLMService(), prompt_loader)
        )

        output = await FormatTextUseCase(orchestrator).execute(
            FormatTextInput(text=photosynthesis_text, concepts=list(reversed(sentence_concepts)))
        )

        assert [c.title for c in output.concepts] == ["Photosynthesis", "Respiration"]
        assert marker_indices(output.html) == [0, 1]
        assert "format_ms" in output.timings

    @pytest.mark.asyncio
    async def test_formats_without_concepts(self, prompt_loader):
        orchestrator = FormattingOrchestrator(
            ConceptAwareChunker(), ChunkFormatter(FakeLLMService(), prompt_loader)
        )

        output = await FormatTextUseCase(orchestrator).execute(
            FormatTextInput(text="First paragraph.\n\nSecond paragraph.")
        )

        assert output.concepts == []
        assert "<p>First paragraph.</p>" in output.html
        assert marker_indices(output.html) == []

    @pytest.mark.asyncio
    async def test_blank_text_is_rejected(self):
        orchestrator = Mock()
        orchestrator.format_text = AsyncMock()

        with pytest.raises(InvalidInputError):
            await FormatTextUseCase(orchestrator).execute(FormatTextInput(text=""))
        orchestrator.format_text.assert_not_called()
