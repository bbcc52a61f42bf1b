"""Repository implementations."""

from .in_memory_session_repo import InMemorySessionRepository

__all__ = ["InMemorySessionRepository"]
