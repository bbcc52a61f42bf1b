"""
Name: Concept-Aware Chunker Tests

Responsibilities:
  - Paragraph grouping and true source offsets
  - Concept veto at chunk boundaries
  - Rescue chunks for concepts no paragraph group can contain
"""

import random

import pytest

from conceptviz.application.concept_ranges import prepare_concepts
from conceptviz.domain.entities import Concept, IndexedConcept
from conceptviz.infrastructure.text import ConceptAwareChunker
from conceptviz.infrastructure.text.chunker import split_into_chunks

pytestmark = pytest.mark.unit

PARAGRAPHS = [f"Paragraph {i} talks about topic{i} in some detail." for i in range(7)]
TEXT = "\n\n".join(PARAGRAPHS)


def _paragraph_start(i: int) -> int:
    return TEXT.index(PARAGRAPHS[i])


def _indexed(index: int, start: int, end: int) -> IndexedConcept:
    return IndexedConcept(
        index=index,
        title=f"Concept {index}",
        description="",
        start_offset=start,
        end_offset=end,
        text=TEXT[start:end],
    )


def test_groups_paragraphs_by_three_with_true_offsets():
    chunks = split_into_chunks(TEXT, [])

    assert [c.text.count("Paragraph") for c in chunks] == [3, 3, 1]
    for chunk in chunks:
        assert TEXT[chunk.start_offset : chunk.end_offset] == chunk.text
        assert not chunk.is_rescue


def test_concept_crossing_boundary_extends_chunk():
    start = _paragraph_start(2) + len("Paragraph 2 talks about ")
    end = _paragraph_start(3) + len("Paragraph")
    concept = _indexed(0, start, end)

    chunks = split_into_chunks(TEXT, [concept])

    assert len(chunks) == 2
    assert chunks[0].text.count("Paragraph") == 4
    assert chunks[0].contains(concept)
    assert not any(c.is_rescue for c in chunks)


def test_concept_longer_than_max_paragraphs_gets_rescue_chunk():
    start = _paragraph_start(1)
    end = _paragraph_start(6) + len("Paragraph 6")
    concept = _indexed(0, start, end)

    chunks = split_into_chunks(TEXT, [concept], rescue_context_chars=10)

    normal = [c for c in chunks if not c.is_rescue]
    rescue = [c for c in chunks if c.is_rescue]
    assert normal[0].text.count("Paragraph") == 5
    assert len(rescue) == 1
    assert chunks[-1] is rescue[0]
    assert rescue[0].contains(concept)
    assert rescue[0].start_offset == start - 10
    assert rescue[0].text == TEXT[rescue[0].start_offset : rescue[0].end_offset]


def test_empty_paragraphs_are_ignored():
    chunks = split_into_chunks("first\n\n\n\nsecond\n\n", [])

    assert len(chunks) == 1
    assert chunks[0].text == "first\n\n\n\nsecond"
    assert (chunks[0].start_offset, chunks[0].end_offset) == (0, 15)


def test_crlf_chunk_keeps_source_separators(make_concepts):
    text = "Alpha beta.\r\n\r\nGamma delta."
    concepts = make_concepts(text, [("Beta gamma", "beta.\r\n\r\nGamma")])

    chunks = split_into_chunks(
        text, concepts, paragraphs_per_chunk=1, max_paragraphs_per_chunk=3
    )

    assert len(chunks) == 1
    assert chunks[0].text == text
    assert concepts[0].text in chunks[0].text
    assert not chunks[0].is_rescue


def test_repeated_paragraphs_map_to_increasing_offsets():
    text = "same\n\nsame\n\nsame\n\nsame"
    chunks = split_into_chunks(text, [], paragraphs_per_chunk=2, max_paragraphs_per_chunk=2)

    assert [(c.start_offset, c.end_offset) for c in chunks] == [(0, 10), (12, 22)]


def test_every_concept_is_contained_in_some_chunk():
    rng = random.Random(5)
    for _ in range(100):
        raw = []
        for n in range(rng.randint(1, 6)):
            start = rng.randrange(0, len(TEXT) - 1)
            end = rng.randrange(start + 1, min(len(TEXT), start + 250) + 1)
            raw.append(Concept(f"c{n}", "", start, end))
        concepts = prepare_concepts(raw, TEXT)

        chunks = split_into_chunks(TEXT, concepts)

        for concept in concepts:
            assert any(chunk.contains(concept) for chunk in chunks)


def test_chunker_validates_parameters():
    with pytest.raises(ValueError):
        ConceptAwareChunker(paragraphs_per_chunk=0)
    with pytest.raises(ValueError):
        ConceptAwareChunker(paragraphs_per_chunk=4, max_paragraphs_per_chunk=3)
    with pytest.raises(ValueError):
        ConceptAwareChunker(rescue_context_chars=-1)


def test_chunker_delegates_with_its_settings():
    chunker = ConceptAwareChunker(paragraphs_per_chunk=2, max_paragraphs_per_chunk=2)
    chunks = chunker.chunk(TEXT, [])
    assert [c.text.count("Paragraph") for c in chunks] == [2, 2, 2, 1]
