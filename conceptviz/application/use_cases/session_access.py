"""
Name: Session Access Helpers

Responsibilities:
  - Load a session or fail with SessionNotFoundError
  - Resolve a renderer name to a configured renderer
  - Validate raw source text before any model call
"""

from typing import Mapping, Optional

from ...domain.entities import VisualizationSession
from ...domain.repositories import SessionRepository
from ...domain.services import VisualizationRenderer
from ...exceptions import InvalidInputError, SessionNotFoundError


def load_session(repository: SessionRepository, session_id: str) -> VisualizationSession:
    session = repository.get_session(session_id)
    if session is None:
        raise SessionNotFoundError(f"Session {session_id} not found")
    return session


def resolve_renderer(
    renderers: Mapping[str, VisualizationRenderer], name: str
) -> VisualizationRenderer:
    renderer = renderers.get(name)
    if renderer is None:
        raise InvalidInputError(f"Renderer '{name}' is not configured")
    return renderer


def validate_source_text(text: str, max_chars: Optional[int] = None) -> None:
    """
    R: Reject blank text and text over the configured limit.

    Raises:
        InvalidInputError: If the text cannot be visualized
    """
    if not text or not text.strip():
        raise InvalidInputError("Please enter some text to visualize")
    if max_chars and len(text) > max_chars:
        raise InvalidInputError(
            f"Text is too long ({len(text)} characters, maximum {max_chars})"
        )
