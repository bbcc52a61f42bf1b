"""
Name: Fake LLM Service (Deterministic)

Responsibilities:
  - Provide deterministic model output for tests/CI (FAKE_LLM=1)
  - Answer the three prompt shapes the pipeline sends:
      formatting prompts (#INPUT_TEXT ... #END_INPUT_TEXT)
      SVG prompts
      assistant prompts
  - Avoid external dependencies (no API calls)
"""

import hashlib
import html
import json
import re
from typing import List, Optional

from ...logger import logger

_INPUT_BLOCK = re.compile(r"#INPUT_TEXT\n(?P<text>[\s\S]*?)\n#END_INPUT_TEXT")
_CONCEPTS_BLOCK = re.compile(
    r"#CONCEPTS_TO_HIGHLIGHT\n(?P<json>[\s\S]*?)\n#END_CONCEPTS_TO_HIGHLIGHT"
)
_SVG_SUBJECT = re.compile(
    r"(?:Content to visualize:|modern SVG:)\s*\n+(?P<title>[^\n:]+):"
)
_PARAGRAPHS = re.compile(r"\n{2,}")


def _digest(*parts: str) -> str:
    return hashlib.sha256("|".join(parts).encode("utf-8")).hexdigest()[:12]


def _fake_format(prompt: str) -> str:
    """R: Paragraph-wrap the input text and mark each concept's first occurrence."""
    match = _INPUT_BLOCK.search(prompt)
    text = match.group("text") if match else ""
    concepts: List[dict] = []
    concepts_match = _CONCEPTS_BLOCK.search(prompt)
    if concepts_match:
        concepts = json.loads(concepts_match.group("json"))

    paragraphs = [p for p in _PARAGRAPHS.split(text) if p.strip()]
    marked = set()
    rendered = []
    for paragraph in paragraphs:
        escaped = html.escape(paragraph, quote=False)
        for concept in concepts:
            needle = html.escape(concept["text"], quote=False)
            if concept["index"] in marked or needle not in escaped:
                continue
            marker = (
                f'<span class="highlighted-concept" data-concept-index="{concept["index"]}" '
                f'data-concept-title="{html.escape(concept["title"], quote=True)}">{needle}</span>'
            )
            escaped = escaped.replace(needle, marker, 1)
            marked.add(concept["index"])
        rendered.append(f"<p>{escaped}</p>")
    return "\n".join(rendered)


def _fake_svg(prompt: str) -> str:
    match = _SVG_SUBJECT.search(prompt)
    title = match.group("title").strip() if match else "concept"
    return (
        '<svg xmlns="http://www.w3.org/2000/svg" width="700" height="480" '
        'viewBox="0 0 700 480">'
        f'<rect width="700" height="480" fill="#0F172A"/>'
        f'<text x="350" y="240" text-anchor="middle" fill="#38BDF8" '
        f'font-size="20">{html.escape(title)}</text>'
        f"<!-- {_digest(prompt)} --></svg>"
    )


class FakeLLMService:
    """R: Deterministic LLMService for tests/CI."""

    MODEL_ID = "fake-llm-v1"

    def __init__(self) -> None:
        logger.info("FakeLLMService initialized")

    @property
    def model_id(self) -> str:
        return self.MODEL_ID

    async def generate_text(self, prompt: str, *, system: Optional[str] = None) -> str:
        if "#INPUT_TEXT" in prompt:
            return _fake_format(prompt)
        if "SVG markup" in prompt:
            return _fake_svg(prompt)
        return (
            f"**Simulated answer** ({_digest(prompt, system or '')}).\n\n"
            "* This reply is generated without a model."
        )
