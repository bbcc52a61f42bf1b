"""
Name: Conversation Helpers

Responsibilities:
  - Trim conversation history to the configured window
  - Render history as the "PREVIOUS CONVERSATION" prompt section

Notes:
  - Assistant messages are stored as HTML; they are replayed as-is
"""

from typing import List, Sequence

from ..domain.entities import ConversationMessage


def trim_history(
    messages: Sequence[ConversationMessage], limit: int
) -> List[ConversationMessage]:
    """R: Most recent `limit` messages (all of them when limit <= 0)."""
    if limit <= 0:
        return list(messages)
    return list(messages)[-limit:]


def format_conversation_history(messages: Sequence[ConversationMessage]) -> str:
    """
    R: Render history for the answer prompt.

    Returns:
        "\\nPREVIOUS CONVERSATION:\\nUSER: ...\\nASSISTANT: ...\\n", or "" when
        there is no history
    """
    if not messages:
        return ""
    lines = "\n".join(
        f"{'USER' if message.role == 'user' else 'ASSISTANT'}: {message.content}"
        for message in messages
    )
    return f"\nPREVIOUS CONVERSATION:\n{lines}\n"
