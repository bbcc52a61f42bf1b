"""
Name: SVG Visualization Renderers

Responsibilities:
  - Render one concept (title + description) into an SVG diagram
  - Extract the <svg>...</svg> element from free-form model output
  - Normalize the root element to the renderer's canvas

Collaborators:
  - domain.services.LLMService: Gemini or Claude text generation
  - infrastructure.prompts.PromptLoader: render_svg_* templates
  - metrics: failed render counter

Constraints:
  - Output with no <svg ...</svg> pair is a RenderError
  - Renderers are stateless; one instance serves concurrent renders

Notes:
  - Gemini canvas: fixed 700x480
  - Claude canvas: viewBox 0 0 1200 900, scaled to its container (100%)
"""

import re
from typing import Optional

from ...domain.services import LLMService
from ...exceptions import LLMError, RenderError
from ...logger import logger
from ...metrics import record_failed_render
from ..prompts import PromptLoader, get_prompt_loader

_SVG_ELEMENT = re.compile(r"<svg[\s\S]*</svg>", re.IGNORECASE)
_SVG_OPEN_TAG = re.compile(r"<svg[^>]*>", re.IGNORECASE)
_VIEWBOX_ATTR = re.compile(r'\sviewBox="[^"]*"')
_SIZE_ATTR = re.compile(r'\s(?:width|height)="[^"]*"')

GEMINI_SVG_ROOT = (
    '<svg width="700" height="480" viewBox="0 0 700 480" '
    'xmlns="http://www.w3.org/2000/svg">'
)
CLAUDE_VIEWBOX = "0 0 1200 900"


def extract_svg(raw_output: str) -> str:
    """
    R: Return the outermost <svg>...</svg> of the model output.

    Raises:
        RenderError: If there is no complete SVG element
    """
    match = _SVG_ELEMENT.search(raw_output)
    if not match:
        raise RenderError("No valid SVG found in the response")
    return match.group(0)


def normalize_gemini_svg(svg: str) -> str:
    """R: Replace the root tag with the fixed 700x480 canvas."""
    return _SVG_OPEN_TAG.sub(GEMINI_SVG_ROOT, svg, count=1)


def normalize_claude_svg(svg: str) -> str:
    """R: Force the 1200x900 viewBox and fill the container."""

    def _fix_root(match: re.Match) -> str:
        tag = match.group(0)
        if _VIEWBOX_ATTR.search(tag):
            tag = _VIEWBOX_ATTR.sub(f' viewBox="{CLAUDE_VIEWBOX}"', tag, count=1)
        else:
            tag = tag[:4] + f' viewBox="{CLAUDE_VIEWBOX}"' + tag[4:]
        tag = _SIZE_ATTR.sub("", tag)
        return tag[:4] + ' width="100%" height="100%"' + tag[4:]

    return _SVG_OPEN_TAG.sub(_fix_root, svg, count=1)


class _PromptedSvgRenderer:
    name = ""
    prompt_name = ""
    system_prompt_name: Optional[str] = None

    def __init__(self, llm_service: LLMService, prompt_loader: Optional[PromptLoader] = None):
        self.llm_service = llm_service
        self.prompt_loader = prompt_loader or get_prompt_loader()

    def _normalize(self, svg: str) -> str:
        return svg

    async def render(self, title: str, description: str) -> str:
        """
        R: Render one concept.

        Raises:
            RenderError: Model failure or output without an SVG element
        """
        prompt = self.prompt_loader.format(
            self.prompt_name, title=title, description=description
        )
        system = (
            self.prompt_loader.get_template(self.system_prompt_name)
            if self.system_prompt_name
            else None
        )
        try:
            raw_output = await self.llm_service.generate_text(prompt, system=system)
            svg = self._normalize(extract_svg(raw_output))
        except (LLMError, RenderError) as e:
            record_failed_render(self.name)
            logger.warning(
                "SVG render failed",
                extra={"renderer": self.name, "title": title, "error_message": e.message},
            )
            if isinstance(e, RenderError):
                raise
            raise RenderError(
                f"Failed to generate visualization: {e.message}", original_error=e
            ) from e

        logger.info(
            "SVG rendered",
            extra={"renderer": self.name, "title": title, "svg_chars": len(svg)},
        )
        return svg


class GeminiSvgRenderer(_PromptedSvgRenderer):
    """R: Default renderer: Gemini on a fixed 700x480 canvas."""

    name = "gemini"
    prompt_name = "render_svg_gemini"

    def _normalize(self, svg: str) -> str:
        return normalize_gemini_svg(svg)


class ClaudeSvgRenderer(_PromptedSvgRenderer):
    """R: Alternative renderer: Claude with a technical-diagram system prompt."""

    name = "claude"
    prompt_name = "render_svg_claude"
    system_prompt_name = "render_svg_claude_system"

    def _normalize(self, svg: str) -> str:
        return normalize_claude_svg(svg)
