"""
Name: Reader WebSocket

Responsibilities:
  - Stream reader messages (scroll observations, ticks, navigation, clicks)
    from the reading view into the session synchronizer
  - Reply to every message with the new reader state and its effects

Collaborators:
  - application.use_cases.NavigateConceptUseCase: dispatch + persistence
  - api.schemas.SyncRes: reply payload

Constraints:
  - Unknown session: close with code 4404
  - Malformed or unknown messages get {"error": ...}; the socket stays open

Notes:
  - Message shapes:
      {"type": "scroll", "scroll_top": 120, "viewport_height": 600,
       "elements": [{"index": 0, "top": 40, "height": 24}, ...]}
      {"type": "jump", "index": 2}      results position
      {"type": "click", "index": 3}     marker concept index
      {"type": "previous"} / {"type": "next"} / {"type": "tick"}
"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, Field, ValidationError

from ..application.active_concept import (
    JumpRequested,
    NavigateNext,
    NavigatePrevious,
    ScrollObserved,
    SpanClicked,
    SyncMessage,
    Tick,
)
from ..application.use_cases import NavigateConceptUseCase
from ..container import get_navigate_concept_use_case, get_session_repository
from ..context import bind_session
from ..domain.repositories import SessionRepository
from ..domain.value_objects import ElementBox
from ..logger import logger
from .schemas import SyncRes

SESSION_NOT_FOUND_CLOSE_CODE = 4404

router = APIRouter()


class ElementBoxIn(BaseModel):
    index: int
    top: float
    height: float = Field(..., ge=0)


class ReaderMessageIn(BaseModel):
    type: Literal["scroll", "jump", "previous", "next", "click", "tick"]
    index: Optional[int] = None
    scroll_top: float = 0.0
    viewport_height: float = Field(default=0.0, ge=0)
    elements: list[ElementBoxIn] = Field(default_factory=list)

    def to_message(self) -> SyncMessage:
        """
        Raises:
            ValueError: jump/click without an index
        """
        if self.type == "scroll":
            return ScrollObserved(
                scroll_top=self.scroll_top,
                viewport_height=self.viewport_height,
                elements=tuple(
                    ElementBox(index=e.index, top=e.top, height=e.height)
                    for e in self.elements
                ),
            )
        if self.type == "tick":
            return Tick()
        if self.type == "previous":
            return NavigatePrevious()
        if self.type == "next":
            return NavigateNext()
        if self.index is None:
            raise ValueError(f"'{self.type}' messages require an index")
        return JumpRequested(self.index) if self.type == "jump" else SpanClicked(self.index)


@router.websocket("/sessions/{session_id}/reader")
async def reader_socket(
    websocket: WebSocket,
    session_id: str,
    repository: SessionRepository = Depends(get_session_repository),
    use_case: NavigateConceptUseCase = Depends(get_navigate_concept_use_case),
):
    await websocket.accept()
    if repository.get_session(session_id) is None:
        await websocket.close(code=SESSION_NOT_FOUND_CLOSE_CODE)
        return

    bind_session(session_id)
    logger.info("Reader connected")
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = ReaderMessageIn.model_validate_json(raw).to_message()
            except (ValidationError, ValueError) as e:
                await websocket.send_json({"error": str(e)})
                continue

            output = use_case.dispatch(session_id, message)
            await websocket.send_json(
                SyncRes.from_update(output.update).model_dump(mode="json")
            )
    except WebSocketDisconnect:
        logger.info("Reader disconnected", extra={"session_id": session_id})
