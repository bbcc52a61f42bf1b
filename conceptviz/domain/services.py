"""
Name: Domain Service Interfaces

Responsibilities:
  - Define contracts for external collaborators (LLM, concept extraction,
    SVG rendering, web page fetching, PDF text extraction, chunking)
  - Enable dependency inversion (use cases never import a provider SDK)

Collaborators:
  - Implementations in infrastructure.services / infrastructure.web /
    infrastructure.parsers / infrastructure.text

Constraints:
  - Pure interfaces (Protocol), no implementation
  - Model-backed calls are coroutines: they are the event loop's yield points

Notes:
  - Enables testing with Mock(spec=...) / AsyncMock
"""

from typing import List, Optional, Protocol

from .entities import Chunk, Concept, IndexedConcept


class LLMService(Protocol):
    """
    R: Interface for free-form text generation.

    Implementations must raise LLMError when the provider fails or returns
    no text.
    """

    async def generate_text(self, prompt: str, *, system: Optional[str] = None) -> str:
        """
        R: Generate a completion for the prompt.

        Args:
            prompt: Full user prompt
            system: Optional system instruction

        Returns:
            Raw model text
        """
        ...

    @property
    def model_id(self) -> str:
        ...


class ConceptExtractor(Protocol):
    """
    R: Turns raw text into raw concept ranges.

    Contract:
      - At most ~7 concepts for long text, the single obvious one for short text
      - Never invents concepts absent from the text
      - Raises ExtractionError when no parseable list is returned
    """

    async def extract(self, text: str) -> List[Concept]:
        ...


class VisualizationRenderer(Protocol):
    """
    R: Renders one concept into an SVG string.

    Raises RenderError when the output contains no <svg>...</svg> pair.
    """

    name: str

    async def render(self, title: str, description: str) -> str:
        ...


class WebPageFetcher(Protocol):
    """R: Fetches a web page and returns its readable main text."""

    async def fetch_text(self, url: str) -> str:
        ...

    async def aclose(self) -> None:
        ...


class PdfTextExtractor(Protocol):
    """R: Extracts plain text from PDF bytes."""

    def extract_text(self, content: bytes) -> str:
        ...


class TextChunker(Protocol):
    """R: Splits source text into chunks that never sever a concept."""

    def chunk(self, text: str, concepts: List[IndexedConcept]) -> List[Chunk]:
        ...
