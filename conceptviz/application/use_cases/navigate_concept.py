"""
Name: Navigate Concept Use Case

Responsibilities:
  - Feed reader messages (navigation, clicks, scroll observations, ticks)
    into the session's active-concept synchronizer
  - Persist the new reader state and return the effects to the client

Collaborators:
  - application.active_concept: reducer and message types
  - domain.repositories.SessionRepository

Notes:
  - Used by the navigation endpoint (discrete actions) and the reader
    WebSocket (every message type)
"""

from dataclasses import dataclass
from typing import Callable, Literal, Optional

from ...domain.entities import VisualizationSession
from ...domain.repositories import SessionRepository
from ...domain.value_objects import ReaderState
from ...exceptions import InvalidInputError
from ..active_concept import (
    ActiveConceptSynchronizer,
    JumpRequested,
    NavigateNext,
    NavigatePrevious,
    SpanClicked,
    SyncMessage,
    SyncUpdate,
)
from .session_access import load_session

NavigationAction = Literal["previous", "next", "jump", "click"]


@dataclass
class NavigateConceptInput:
    """
    R: Input data for NavigateConcept use case.

    Attributes:
        session_id: Session to navigate
        action: previous / next / jump / click
        index: Results position for "jump", marker index for "click"
    """

    session_id: str
    action: NavigationAction
    index: Optional[int] = None


@dataclass
class NavigateConceptOutput:
    session: VisualizationSession
    update: SyncUpdate


def build_navigation_message(action: str, index: Optional[int]) -> SyncMessage:
    """
    Raises:
        InvalidInputError: Unknown action or missing index
    """
    if action == "previous":
        return NavigatePrevious()
    if action == "next":
        return NavigateNext()
    if action in ("jump", "click"):
        if index is None:
            raise InvalidInputError(f"Action '{action}' requires an index")
        return JumpRequested(index) if action == "jump" else SpanClicked(index)
    raise InvalidInputError(f"Unknown navigation action '{action}'")


class NavigateConceptUseCase:
    """R: Dispatch reader messages for a session."""

    def __init__(
        self,
        repository: SessionRepository,
        synchronizer_factory: Callable[[ReaderState], ActiveConceptSynchronizer],
    ):
        self.repository = repository
        self.synchronizer_factory = synchronizer_factory

    def dispatch(self, session_id: str, message: SyncMessage) -> NavigateConceptOutput:
        session = load_session(self.repository, session_id)
        update = self.synchronizer_factory(session.reader).dispatch(message)
        if update.state != session.reader:
            session.reader = update.state
            self.repository.save_session(session)
        return NavigateConceptOutput(session=session, update=update)

    def execute(self, input_data: NavigateConceptInput) -> NavigateConceptOutput:
        message = build_navigation_message(input_data.action, input_data.index)
        return self.dispatch(input_data.session_id, message)
