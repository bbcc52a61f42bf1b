"""
Name: Answer Formatting

Responsibilities:
  - Render the assistant's markdown answer as display HTML (CommonMark)
  - Paragraphs get the reader's spacing class, single newlines become <br />
  - "Label: rest" paragraphs get a bold "Label:"

Collaborators:
  - use_cases/answer_question.py: renders every answer through here

Constraints:
  - Raw HTML in model output is escaped, never passed through
"""

import re

from markdown_it import MarkdownIt

PARAGRAPH_OPEN = '<p class="mb-3">'

_MARKDOWN = MarkdownIt("commonmark", {"html": False, "breaks": True})

_LABEL = re.compile(re.escape(PARAGRAPH_OPEN) + r"(?P<label>[^<:\n]+):(?=\s|<|$)")


def markdown_to_html(text: str) -> str:
    """
    R: Render an assistant answer as HTML.

    Args:
        text: Raw model answer

    Returns:
        HTML fragment (empty string for blank input)
    """
    if not text.strip():
        return ""
    rendered = _MARKDOWN.render(text.strip()).replace("<p>", PARAGRAPH_OPEN)
    rendered = _LABEL.sub(
        lambda m: f"{PARAGRAPH_OPEN}<strong>{m.group('label')}:</strong>", rendered
    )
    return rendered.strip()
