"""
Name: Concept Range Pipeline Tests

Responsibilities:
  - Word-boundary extension of raw ranges
  - Overlap resolution (containment drop, partial-overlap truncation)
  - Duplicate collapse and index assignment
"""

import random

import pytest

from conceptviz.application.concept_ranges import (
    assign_concept_indices,
    check_range_integrity,
    prepare_concepts,
    remove_duplicate_concepts,
    resolve_overlapping_concepts,
    validate_concept_range,
)
from conceptviz.domain.entities import Concept

pytestmark = pytest.mark.unit

LOREM = (
    "Mitochondria produce ATP through oxidative phosphorylation, while "
    "chloroplasts capture light. Both organelles carry their own DNA, a "
    "remnant of ancient endosymbiosis 2 billion years ago."
)


def _concept(start: int, end: int, title: str = "c", description: str = "") -> Concept:
    return Concept(title=title, description=description, start_offset=start, end_offset=end)


class TestValidateConceptRange:
    def test_extends_mid_word_range_to_full_word(self):
        text = "See a catsdog jumped high"
        result = validate_concept_range(text, _concept(8, 11))

        assert (result.start_offset, result.end_offset) == (6, 13)
        assert result.text_in(text) == "catsdog"

    def test_leaves_aligned_range_untouched(self):
        text = "See a catsdog jumped high"
        original = _concept(6, 13)
        result = validate_concept_range(text, original)

        assert (result.start_offset, result.end_offset) == (6, 13)
        assert result is not original

    def test_punctuation_neighbours_do_not_extend(self):
        text = "(energy), more"
        result = validate_concept_range(text, _concept(1, 7))
        assert result.text_in(text) == "energy"

    def test_range_at_text_edges(self):
        text = "photosynthesis"
        result = validate_concept_range(text, _concept(3, 5))
        assert (result.start_offset, result.end_offset) == (0, len(text))

    def test_word_boundary_holds_for_random_ranges(self):
        rng = random.Random(7)
        for _ in range(300):
            start = rng.randrange(0, len(LOREM) - 1)
            end = rng.randrange(start + 1, len(LOREM) + 1)
            result = validate_concept_range(LOREM, _concept(start, end))

            assert result.start_offset <= start
            assert result.end_offset >= end
            if result.start_offset > 0:
                assert not LOREM[result.start_offset - 1].isalnum()
            if result.end_offset < len(LOREM):
                assert not LOREM[result.end_offset].isalnum()


class TestResolveOverlappingConcepts:
    def test_drops_concept_contained_in_earlier_one(self):
        text = "Energy flows through the food chain."
        outer = _concept(0, len(text) - 1, "Energy flow")
        inner = _concept(text.index("food"), text.index("chain") + 5, "Food chain")

        resolved = resolve_overlapping_concepts([inner, outer], text)

        assert [c.title for c in resolved] == ["Energy flow"]

    def test_drops_earlier_concept_contained_in_later_one(self):
        text = "the food chain matters"
        earlier = _concept(4, 8, "Food")
        later = _concept(4, 14, "Food chain")

        resolved = resolve_overlapping_concepts([earlier, later], text)

        assert [c.title for c in resolved] == ["Food chain"]

    def test_truncates_earlier_concept_after_last_break_before_overlap(self):
        text = "alpha beta gamma delta"
        first = _concept(0, 10, "First")
        second = _concept(6, 16, "Second")

        resolved = resolve_overlapping_concepts([first, second], text)

        assert [(c.start_offset, c.end_offset) for c in resolved] == [(0, 6), (6, 16)]

    def test_truncates_at_overlap_start_without_break(self):
        text = "abcdefghij"
        first = _concept(0, 6, "First")
        second = _concept(4, 10, "Second")

        resolved = resolve_overlapping_concepts([first, second], text)

        assert resolved[0].end_offset == 4
        assert (resolved[1].start_offset, resolved[1].end_offset) == (4, 10)

    def test_inputs_are_not_mutated(self):
        text = "alpha beta gamma delta"
        first = _concept(0, 10)
        resolve_overlapping_concepts([first, _concept(6, 16)], text)
        assert first.end_offset == 10

    def test_no_overlap_for_random_concept_sets(self):
        rng = random.Random(11)
        for _ in range(200):
            concepts = []
            for _ in range(rng.randint(2, 8)):
                start = rng.randrange(0, len(LOREM) - 1)
                end = rng.randrange(start + 1, min(len(LOREM), start + 40) + 1)
                concepts.append(_concept(start, end))

            resolved = resolve_overlapping_concepts(concepts, LOREM)

            ordered = sorted(resolved, key=lambda c: c.start_offset)
            for a, b in zip(ordered, ordered[1:]):
                assert a.end_offset <= b.start_offset


class TestDeduplicationAndIndexing:
    def test_longer_description_wins_within_identical_text(self):
        text = "energy is energy"
        short = _concept(0, 6, "Energy", "short")
        longer = _concept(10, 16, "Energy again", "a much longer description")

        result = remove_duplicate_concepts([short, longer], text)

        assert len(result) == 1
        assert result[0].title == "Energy again"

    def test_tie_keeps_first_seen(self):
        text = "energy is energy"
        result = remove_duplicate_concepts(
            [_concept(10, 16, "Second", "same"), _concept(0, 6, "First", "same")], text
        )
        assert [c.title for c in result] == ["Second"]

    def test_indices_follow_offset_order(self):
        text = "one two three"
        indexed = assign_concept_indices(
            [_concept(8, 13, "Three"), _concept(0, 3, "One"), _concept(4, 7, "Two")], text
        )

        assert [(c.index, c.title, c.text) for c in indexed] == [
            (0, "One", "one"),
            (1, "Two", "two"),
            (2, "Three", "three"),
        ]


class TestPrepareConcepts:
    def test_mid_word_offsets_are_extended_before_indexing(self):
        text = "See a catsdog jumped high"
        concepts = prepare_concepts([_concept(8, 11, "Catsdog")], text)

        assert concepts[0].text == "catsdog"
        assert concepts[0].index == 0

    def test_contained_concept_is_dropped(self):
        text = "Energy flows through the food chain."
        concepts = prepare_concepts(
            [
                _concept(0, len(text) - 1, "Energy flow"),
                _concept(text.index("food"), text.index("chain") + 5, "Food chain"),
            ],
            text,
        )
        assert len(concepts) == 1
        assert concepts[0].title == "Energy flow"

    def test_out_of_range_concept_is_dropped(self):
        text = "short text"
        concepts = prepare_concepts(
            [_concept(0, 5, "Short"), _concept(4, 200, "Broken")], text
        )
        assert [c.title for c in concepts] == ["Short"]

    def test_check_range_integrity(self):
        assert check_range_integrity("abc", _concept(0, 3))
        assert not check_range_integrity("abc", _concept(2, 2))
        assert not check_range_integrity("abc", _concept(1, 4))

    def test_prepared_concepts_are_sorted_and_disjoint(self):
        rng = random.Random(3)
        for _ in range(100):
            raw = []
            for _ in range(rng.randint(1, 7)):
                start = rng.randrange(0, len(LOREM) - 1)
                end = rng.randrange(start + 1, min(len(LOREM), start + 30) + 1)
                raw.append(_concept(start, end))

            prepared = prepare_concepts(raw, LOREM)

            assert [c.index for c in prepared] == list(range(len(prepared)))
            for a, b in zip(prepared, prepared[1:]):
                assert a.start_offset <= b.start_offset
                assert a.end_offset <= b.start_offset
            for c in prepared:
                assert c.text == LOREM[c.start_offset : c.end_offset]
            assert len({c.text for c in prepared}) == len(prepared)
