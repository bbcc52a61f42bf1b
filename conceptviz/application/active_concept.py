"""
Name: Active-Concept Synchronizer

Responsibilities:
  - Keep the active concept (the visualization on screen) in step with the
    highlight marker nearest the centre of the reading viewport
  - Let explicit jumps win over scroll tracking for a short suppression
    window, so a jump's own scroll animation never drags the cursor back
  - Coalesce scroll observations (throttle) and process deferred ones on Tick

Collaborators:
  - domain.value_objects: ReaderState, ScrollSnapshot, ElementBox
  - application.use_cases.navigate_concept / api.reader: feed messages

Constraints:
  - Pure reducer: dispatch(message) returns the next state and effects; the
    only side effect is the injected clock
  - Only JumpRequested emits ScrollIntoView; tracking, prev/next and clicks
    never move the text

Notes:
  - Indices in JumpRequested / NavigateX / ReaderState.active_index are
    positions in the session results; SpanClicked and ElementBox carry the
    marker (concept) index and are translated through concept_indices
  - "directional" reproduces the legacy direction heuristic; "center" always
    picks the element closest to the viewport centre
"""

import time
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Sequence, Tuple, Union

from ..domain.value_objects import (
    ElementBox,
    ReaderPhase,
    ReaderState,
    ScrollDirection,
    ScrollSnapshot,
)
from ..logger import logger


# R: Messages ---------------------------------------------------------------


@dataclass(frozen=True)
class ResultsLoaded:
    concept_indices: Tuple[int, ...]
    start_offsets: Tuple[int, ...]


@dataclass(frozen=True)
class ResultsCleared:
    pass


@dataclass(frozen=True)
class ScrollObserved:
    scroll_top: float
    viewport_height: float
    elements: Tuple[ElementBox, ...] = ()


@dataclass(frozen=True)
class JumpRequested:
    index: int


@dataclass(frozen=True)
class NavigatePrevious:
    pass


@dataclass(frozen=True)
class NavigateNext:
    pass


@dataclass(frozen=True)
class SpanClicked:
    concept_index: int


@dataclass(frozen=True)
class Tick:
    pass


SyncMessage = Union[
    ResultsLoaded,
    ResultsCleared,
    ScrollObserved,
    JumpRequested,
    NavigatePrevious,
    NavigateNext,
    SpanClicked,
    Tick,
]


# R: Effects ----------------------------------------------------------------


@dataclass(frozen=True)
class ScrollIntoView:
    """R: Ask the reading view to scroll the marker of `concept_index` into view."""

    index: int
    concept_index: int


@dataclass(frozen=True)
class SyncUpdate:
    state: ReaderState
    effects: Tuple[ScrollIntoView, ...] = ()


class ActiveConceptSynchronizer:
    """
    R: Reducer over reader messages.

    Usage:
        sync = ActiveConceptSynchronizer(session.reader)
        update = sync.dispatch(JumpRequested(2))
        session.reader = update.state
    """

    def __init__(
        self,
        state: Optional[ReaderState] = None,
        clock: Callable[[], float] = time.monotonic,
        throttle_seconds: float = 0.15,
        suppression_seconds: float = 0.8,
        strategy: str = "directional",
    ):
        self.state = state or ReaderState()
        self._clock = clock
        self.throttle_seconds = throttle_seconds
        self.suppression_seconds = suppression_seconds
        self.strategy = strategy

    def dispatch(self, message: SyncMessage) -> SyncUpdate:
        """
        R: Apply one message.

        Returns:
            SyncUpdate with the new state (also stored on self.state)
        """
        now = self._clock()
        state = self._expire_suppression(self.state, now)
        effects: Tuple[ScrollIntoView, ...] = ()

        if isinstance(message, ResultsLoaded):
            state = self._load(message)
        elif isinstance(message, ResultsCleared):
            state = ReaderState()
        elif state.phase == ReaderPhase.IDLE:
            pass
        elif isinstance(message, ScrollObserved):
            snapshot = ScrollSnapshot(
                scroll_top=message.scroll_top,
                viewport_height=message.viewport_height,
                elements=tuple(message.elements),
            )
            if self._throttled(state, now):
                state = replace(state, pending_scroll=snapshot)
            else:
                state = self._recompute(state, snapshot, now)
        elif isinstance(message, Tick):
            if state.pending_scroll is not None and not self._throttled(state, now):
                state = self._recompute(state, state.pending_scroll, now)
        elif isinstance(message, JumpRequested):
            if state.is_valid_position(message.index):
                state = replace(
                    state,
                    phase=ReaderPhase.SUPPRESSED,
                    active_index=message.index,
                    requested_index=message.index,
                    suppressed_until=now + self.suppression_seconds,
                    pending_scroll=None,
                )
                effects = (
                    ScrollIntoView(
                        index=message.index,
                        concept_index=state.concept_indices[message.index],
                    ),
                )
        elif isinstance(message, NavigatePrevious):
            if state.active_index is not None and state.active_index > 0:
                state = replace(state, active_index=state.active_index - 1)
        elif isinstance(message, NavigateNext):
            if (
                state.active_index is not None
                and state.active_index < state.result_count - 1
            ):
                state = replace(state, active_index=state.active_index + 1)
        elif isinstance(message, SpanClicked):
            position = state.position_of(message.concept_index)
            if position is not None:
                state = replace(state, active_index=position)

        self.state = state
        return SyncUpdate(state=state, effects=effects)

    # R: Transitions ---------------------------------------------------------

    @staticmethod
    def _load(message: ResultsLoaded) -> ReaderState:
        if not message.concept_indices:
            return ReaderState()
        return ReaderState(
            phase=ReaderPhase.TRACKING,
            active_index=0,
            concept_indices=tuple(message.concept_indices),
            start_offsets=tuple(message.start_offsets),
        )

    @staticmethod
    def _expire_suppression(state: ReaderState, now: float) -> ReaderState:
        if (
            state.phase == ReaderPhase.SUPPRESSED
            and state.suppressed_until is not None
            and now >= state.suppressed_until
        ):
            return replace(
                state,
                phase=ReaderPhase.TRACKING,
                requested_index=None,
                suppressed_until=None,
            )
        return state

    def _throttled(self, state: ReaderState, now: float) -> bool:
        return (
            state.last_recompute_at is not None
            and now - state.last_recompute_at < self.throttle_seconds
        )

    def _recompute(
        self, state: ReaderState, snapshot: ScrollSnapshot, now: float
    ) -> ReaderState:
        direction: Optional[ScrollDirection] = None
        if state.last_scroll_top is not None and snapshot.scroll_top != state.last_scroll_top:
            direction = (
                ScrollDirection.DOWN
                if snapshot.scroll_top > state.last_scroll_top
                else ScrollDirection.UP
            )

        state = replace(
            state,
            last_scroll_top=snapshot.scroll_top,
            direction=direction,
            last_recompute_at=now,
            pending_scroll=None,
        )

        visible = self._visible_positions(state, snapshot)
        if not visible:
            return state

        if state.phase == ReaderPhase.SUPPRESSED:
            centered = self._closest_to_center(visible, snapshot.viewport_height)
            if centered == state.requested_index:
                logger.debug(
                    "Jump target centered, tracking resumed",
                    extra={"active_index": centered},
                )
                return replace(
                    state,
                    phase=ReaderPhase.TRACKING,
                    requested_index=None,
                    suppressed_until=None,
                )
            return state

        chosen = self._choose(state, visible, snapshot.viewport_height)
        if chosen != state.active_index:
            state = replace(state, active_index=chosen)
        return state

    # R: Selection -----------------------------------------------------------

    @staticmethod
    def _visible_positions(
        state: ReaderState, snapshot: ScrollSnapshot
    ) -> List[Tuple[int, ElementBox]]:
        """R: (results position, box) of visible markers that have a result."""
        visible: List[Tuple[int, ElementBox]] = []
        seen: set[int] = set()
        for element in snapshot.elements:
            if not element.intersects(snapshot.viewport_height):
                continue
            position = state.position_of(element.index)
            if position is None or position in seen:
                continue
            seen.add(position)
            visible.append((position, element))
        return visible

    @staticmethod
    def _closest_to_center(
        visible: Sequence[Tuple[int, ElementBox]], viewport_height: float
    ) -> int:
        center = viewport_height / 2
        position, _ = min(
            visible,
            key=lambda item: (abs(item[1].middle - center), item[1].index),
        )
        return position

    def _choose(
        self,
        state: ReaderState,
        visible: Sequence[Tuple[int, ElementBox]],
        viewport_height: float,
    ) -> int:
        if (
            self.strategy == "directional"
            and len(visible) > 1
            and state.direction is not None
            and state.active_index is not None
        ):
            positions = [position for position, _ in visible]
            if state.active_index in positions:
                return state.active_index

            active_start = state.start_offsets[state.active_index]
            by_start = sorted(positions, key=lambda p: state.start_offsets[p])
            if state.direction == ScrollDirection.DOWN:
                before = [p for p in by_start if state.start_offsets[p] <= active_start]
                return before[-1] if before else by_start[0]
            after = [p for p in by_start if state.start_offsets[p] >= active_start]
            return after[0] if after else by_start[-1]

        return self._closest_to_center(visible, viewport_height)
