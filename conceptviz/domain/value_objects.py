"""
Name: Reader Value Objects

Responsibilities:
  - Describe what the reading view reports (element geometry, scroll position)
  - Hold the active-concept cursor state as an immutable value

Collaborators:
  - application.active_concept: reducer that produces new ReaderState values
  - domain.entities.VisualizationSession: stores the current ReaderState

Notes:
  - Geometry is measured relative to the top of the scrollable viewport
  - active_index is a position in the session results; marker indices found
    in the HTML are translated through concept_indices
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class ReaderPhase(str, Enum):
    """R: Synchronizer states."""

    IDLE = "idle"
    TRACKING = "tracking"
    SUPPRESSED = "suppressed"


class ScrollDirection(str, Enum):
    UP = "up"
    DOWN = "down"


@dataclass(frozen=True)
class ElementBox:
    """
    R: Bounding box of one rendered highlight marker.

    Attributes:
        index: data-concept-index of the marker
        top: Top edge relative to the viewport top
        height: Rendered height
    """

    index: int
    top: float
    height: float

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def middle(self) -> float:
        return self.top + self.height / 2

    def intersects(self, viewport_height: float) -> bool:
        return self.top < viewport_height and self.bottom > 0


@dataclass(frozen=True)
class ScrollSnapshot:
    """
    R: One scroll observation from the reading view.

    Attributes:
        scroll_top: Scroll offset of the text container
        viewport_height: Visible height of the text container
        elements: Boxes of the highlight markers currently laid out
    """

    scroll_top: float
    viewport_height: float
    elements: Tuple[ElementBox, ...] = ()


@dataclass(frozen=True)
class ReaderState:
    """
    R: Active-concept cursor plus the bookkeeping the reducer needs.

    Attributes:
        phase: idle / tracking / suppressed
        active_index: Position in results (None while idle)
        concept_indices: results position -> concept (marker) index
        start_offsets: results position -> concept start offset
        requested_index: Target of the last jump while suppressed
        suppressed_until: Clock time at which suppression lapses
        last_scroll_top: Previous scroll offset (direction detection)
        direction: Direction of the last observed scroll movement
        last_recompute_at: Clock time of the last recomputation
        pending_scroll: Newest scroll observation waiting out the throttle
    """

    phase: ReaderPhase = ReaderPhase.IDLE
    active_index: Optional[int] = None
    concept_indices: Tuple[int, ...] = ()
    start_offsets: Tuple[int, ...] = ()
    requested_index: Optional[int] = None
    suppressed_until: Optional[float] = None
    last_scroll_top: Optional[float] = None
    direction: Optional[ScrollDirection] = None
    last_recompute_at: Optional[float] = None
    pending_scroll: Optional[ScrollSnapshot] = None

    @property
    def result_count(self) -> int:
        return len(self.concept_indices)

    def position_of(self, concept_index: int) -> Optional[int]:
        """R: Results position for a marker index, None if it has no result."""
        try:
            return self.concept_indices.index(concept_index)
        except ValueError:
            return None

    def is_valid_position(self, position: int) -> bool:
        return 0 <= position < self.result_count
