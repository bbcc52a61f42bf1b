"""
Name: Highlight Span Repair

Responsibilities:
  - Merge highlight markers the formatting model split into fragments
  - Re-key or unwrap markers whose text is not their concept's exact text
  - Keep only the first marker for any repeated highlighted text

Collaborators:
  - application.chunk_formatting: runs repair on every model output
  - domain.entities.IndexedConcept: expected marker texts (optional)

Constraints:
  - String surgery over one marker shape:
      <span class="highlighted-concept" data-concept-index="N" ...>text</span>
    Markers with nested tags inside are left untouched
  - Never drops source text: unwrapping keeps the inner text in place

Notes:
  - Output invariant: every surviving marker wraps one concept's exact text
    and no two markers wrap identical text
"""

import html as html_lib
import re
from typing import Dict, Iterable, List, Optional

from ..domain.entities import IndexedConcept
from ..logger import logger

MARKER_CLASS = "highlighted-concept"

# R: A marker whose content has no nested tags
MARKER_PATTERN = re.compile(
    r'<span(?P<attrs>[^>]*\bclass="' + MARKER_CLASS + r'"[^>]*)>(?P<inner>[^<]*)</span>'
)
_INDEX_ATTR = re.compile(r'data-concept-index="(?P<index>\d+)"')
_TITLE_ATTR = re.compile(r'data-concept-title="[^"]*"')

# R: Fragment merge limits
MAX_FRAGMENT_GAP = 20
TRIVIAL_GAP_CHARS = 5


def build_marker(index: int, title: str, text: str) -> str:
    """R: Canonical marker markup for one concept occurrence."""
    return (
        f'<span class="{MARKER_CLASS}" data-concept-index="{index}" '
        f'data-concept-title="{html_lib.escape(title, quote=True)}">{text}</span>'
    )


def _marker_index(attrs: str) -> Optional[int]:
    match = _INDEX_ATTR.search(attrs)
    return int(match.group("index")) if match else None


def _is_trivial_gap(gap: str) -> bool:
    if "<" in gap or ">" in gap:
        return False
    return gap.strip() == "" or len(gap) < TRIVIAL_GAP_CHARS


def merge_fragmented_markers(html: str) -> str:
    """
    R: Merge consecutive markers of the same concept index.

    Two markers merge when the second is the next marker carrying the same
    index, the text between them is shorter than MAX_FRAGMENT_GAP, and that
    text is whitespace-only or shorter than TRIVIAL_GAP_CHARS. The merged
    marker keeps the first marker's attributes and wraps first fragment +
    gap + second fragment. Repeats until nothing merges.
    """
    merged_count = 0
    while True:
        markers = list(MARKER_PATTERN.finditer(html))
        merge = None
        for position, first in enumerate(markers):
            index = _marker_index(first.group("attrs"))
            if index is None:
                continue
            second = next(
                (
                    m
                    for m in markers[position + 1 :]
                    if _marker_index(m.group("attrs")) == index
                ),
                None,
            )
            if second is None:
                continue
            gap = html[first.end() : second.start()]
            if len(gap) < MAX_FRAGMENT_GAP and _is_trivial_gap(gap):
                merge = (first, second, gap)
                break

        if merge is None:
            break

        first, second, gap = merge
        combined = (
            f'<span{first.group("attrs")}>'
            f'{first.group("inner")}{gap}{second.group("inner")}</span>'
        )
        html = html[: first.start()] + combined + html[second.end() :]
        merged_count += 1

    if merged_count:
        logger.info("Merged fragmented concept spans", extra={"merged": merged_count})
    return html


def _normalize(text: str) -> str:
    return " ".join(html_lib.unescape(text).split())


def conform_markers_to_concepts(html: str, concepts: Iterable[IndexedConcept]) -> str:
    """
    R: Make every marker wrap its concept's exact text.

    A marker whose text matches its own concept is kept. A marker whose text
    matches a different concept is re-keyed to that concept. Anything else
    is unwrapped to plain text. Whitespace differences and HTML entities are
    ignored when comparing.
    """
    by_index: Dict[int, IndexedConcept] = {c.index: c for c in concepts}
    by_text: Dict[str, IndexedConcept] = {}
    for concept in by_index.values():
        by_text.setdefault(_normalize(concept.text), concept)

    rekeyed = 0
    unwrapped = 0

    def _fix(match: re.Match) -> str:
        nonlocal rekeyed, unwrapped
        attrs, inner = match.group("attrs"), match.group("inner")
        normalized = _normalize(inner)
        own = by_index.get(_marker_index(attrs))
        if own is not None and _normalize(own.text) == normalized:
            return match.group(0)
        other = by_text.get(normalized)
        if other is not None:
            rekeyed += 1
            return build_marker(other.index, other.title, inner)
        unwrapped += 1
        return inner

    html = MARKER_PATTERN.sub(_fix, html)
    if rekeyed or unwrapped:
        logger.info(
            "Conformed concept spans",
            extra={"rekeyed": rekeyed, "unwrapped": unwrapped},
        )
    return html


def suppress_duplicate_markers(html: str) -> str:
    """
    R: Keep the first marker per distinct highlighted text, unwrap the rest.
    """
    seen: set[str] = set()
    suppressed = 0

    def _dedupe(match: re.Match) -> str:
        nonlocal suppressed
        inner = match.group("inner")
        key = _normalize(inner)
        if not key:
            return match.group(0)
        if key in seen:
            suppressed += 1
            return inner
        seen.add(key)
        return match.group(0)

    html = MARKER_PATTERN.sub(_dedupe, html)
    if suppressed:
        logger.info(
            "Suppressed duplicate concept spans", extra={"suppressed": suppressed}
        )
    return html


def repair_concept_spans(
    html: str, concepts: Optional[List[IndexedConcept]] = None
) -> str:
    """
    R: Run all repair passes over one chunk's HTML.

    Args:
        html: Model output for one chunk
        concepts: Concepts that may be highlighted; when given, markers are
            conformed to their exact texts between merge and dedup. An empty
            list unwraps every marker

    Returns:
        Repaired HTML
    """
    html = merge_fragmented_markers(html)
    if concepts is not None:
        html = conform_markers_to_concepts(html, concepts)
    return suppress_duplicate_markers(html)


def marker_indices(html: str) -> List[int]:
    """R: Concept indices of all markers in document order."""
    return [
        index
        for index in (_marker_index(m.group("attrs")) for m in MARKER_PATTERN.finditer(html))
        if index is not None
    ]
