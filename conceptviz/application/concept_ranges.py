"""
Name: Concept Range Pipeline

Responsibilities:
  - Snap raw concept ranges outward to word boundaries (validator)
  - Remove overlaps by containment-merge or boundary-split (resolver)
  - Collapse concepts with identical verbatim text (deduplicator)
  - Sort by offset and assign the final, stable concept indices

Collaborators:
  - domain.entities: Concept, IndexedConcept
  - logger: reports dropped / truncated concepts

Constraints:
  - Pure functions over (text, concepts); inputs are never mutated
  - Index assignment happens exactly once per visualize operation

Notes:
  - Resolver tie-breaks (containing concept wins, earlier concept yields its
    tail on partial overlap) are part of the contract and must stay stable
"""

import re
from typing import Iterable, List

from ..domain.entities import Concept, IndexedConcept
from ..exceptions import OffsetIntegrityError
from ..logger import logger

_WORD_CHAR = re.compile(r"[a-zA-Z0-9]")
_BREAK_CHAR = re.compile(r"[\s.,;!?]")

# R: Marks a concept dropped by the resolver
_DROPPED = -1


def _is_word_char(char: str) -> bool:
    return bool(_WORD_CHAR.fullmatch(char))


def validate_concept_range(text: str, concept: Concept) -> Concept:
    """
    R: Extend a concept range outward until both ends sit on word boundaries.

    Only alphanumeric neighbours extend the range, so the result never
    shrinks and punctuation/whitespace neighbours are left alone.

    Args:
        text: Original source text
        concept: Concept with possibly mid-word offsets

    Returns:
        New Concept with start <= old start and end >= old end
    """
    start = concept.start_offset
    while start > 0 and _is_word_char(text[start - 1]):
        start -= 1

    end = concept.end_offset
    while end < len(text) and _is_word_char(text[end]):
        end += 1

    if (start, end) != (concept.start_offset, concept.end_offset):
        logger.debug(
            "Concept range extended to word boundaries",
            extra={
                "title": concept.title,
                "from_range": [concept.start_offset, concept.end_offset],
                "to_range": [start, end],
            },
        )
    return concept.with_range(start, end)


def resolve_overlapping_concepts(concepts: List[Concept], text: str) -> List[Concept]:
    """
    R: Eliminate overlaps between concept ranges.

    For each pair (a, b), a before b in start order, with a.end > b.start:
      - a's text contains b's text: drop b, keep scanning a
      - b's text contains a's text: drop a, stop scanning a
      - otherwise: cut a at the last whitespace/punctuation before b.start
        (just after it), or at b.start if there is none; b is untouched

    Args:
        concepts: Concepts (any order)
        text: Original source text

    Returns:
        Surviving concepts in start order
    """
    if len(concepts) <= 1:
        return list(concepts)

    ordered = sorted(
        (c.with_range(c.start_offset, c.end_offset) for c in concepts),
        key=lambda c: c.start_offset,
    )
    resolved: List[Concept] = []

    for i, current in enumerate(ordered):
        if current.start_offset == _DROPPED:
            continue

        for j in range(i + 1, len(ordered)):
            following = ordered[j]
            if following.start_offset == _DROPPED:
                continue
            if current.end_offset <= following.start_offset:
                continue

            current_text = current.text_in(text)
            following_text = following.text_in(text)

            if following_text in current_text:
                logger.info(
                    "Dropped concept contained in an earlier one",
                    extra={"kept": current.title, "dropped": following.title},
                )
                following.start_offset = _DROPPED
            elif current_text in following_text:
                logger.info(
                    "Dropped concept contained in a later one",
                    extra={"kept": following.title, "dropped": current.title},
                )
                current.start_offset = _DROPPED
                break
            else:
                break_point = following.start_offset
                for k in range(following.start_offset - 1, current.start_offset, -1):
                    if _BREAK_CHAR.fullmatch(text[k]):
                        break_point = k + 1
                        break
                logger.info(
                    "Truncated partially overlapping concept",
                    extra={
                        "title": current.title,
                        "old_end": current.end_offset,
                        "new_end": break_point,
                    },
                )
                current.end_offset = break_point

        if current.start_offset != _DROPPED:
            resolved.append(current)

    return resolved


def remove_duplicate_concepts(concepts: Iterable[Concept], text: str) -> List[Concept]:
    """
    R: Keep one concept per distinct verbatim text.

    Within a group the strictly longer description wins; ties keep the first
    seen. Output follows first-seen group order and is NOT guaranteed to be
    sorted by offset.
    """
    by_text: dict[str, Concept] = {}
    for concept in concepts:
        key = concept.text_in(text)
        kept = by_text.get(key)
        if kept is None or len(concept.description) > len(kept.description):
            by_text[key] = concept
    return list(by_text.values())


def assign_concept_indices(concepts: Iterable[Concept], text: str) -> List[IndexedConcept]:
    """
    R: Sort by start offset and assign the final indices.

    Returns:
        IndexedConcepts whose index equals their position in the list
    """
    ordered = sorted(concepts, key=lambda c: c.start_offset)
    return [
        IndexedConcept(
            index=position,
            title=concept.title,
            description=concept.description,
            start_offset=concept.start_offset,
            end_offset=concept.end_offset,
            text=concept.text_in(text),
        )
        for position, concept in enumerate(ordered)
    ]


def check_range_integrity(text: str, concept: Concept) -> bool:
    """
    R: Report (log) a concept whose range does not fit the text.

    Never raises: a failed check is a data-quality signal, not a pipeline
    failure.
    """
    if 0 <= concept.start_offset < concept.end_offset <= len(text):
        return True
    error = OffsetIntegrityError(
        f"Concept '{concept.title}' range [{concept.start_offset}, "
        f"{concept.end_offset}) does not fit text of length {len(text)}"
    )
    logger.warning(
        "Offset integrity violation",
        extra={"error_id": error.error_id, "error_message": error.message},
    )
    return False


def prepare_concepts(raw_concepts: Iterable[Concept], text: str) -> List[IndexedConcept]:
    """
    R: Run the full range pipeline: validate, resolve, dedup, index.

    Concepts whose range does not fit the text are logged and dropped before
    extension, so every IndexedConcept satisfies 0 <= start < end <= len(text).
    """
    in_bounds = [c for c in raw_concepts if check_range_integrity(text, c)]
    validated = [validate_concept_range(text, concept) for concept in in_bounds]
    resolved = resolve_overlapping_concepts(validated, text)
    deduplicated = remove_duplicate_concepts(resolved, text)
    indexed = assign_concept_indices(deduplicated, text)

    logger.info(
        "Concepts prepared",
        extra={
            "raw_count": len(validated),
            "resolved_count": len(resolved),
            "final_count": len(indexed),
        },
    )
    return indexed
