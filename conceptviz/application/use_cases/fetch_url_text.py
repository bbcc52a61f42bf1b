"""
Name: Fetch URL Text Use Case

Responsibilities:
  - Scrape the readable text of a web page as visualization input
  - Truncate text beyond the accepted source length
"""

from dataclasses import dataclass
from typing import Optional

from ...domain.services import WebPageFetcher
from ...logger import logger


@dataclass
class FetchUrlTextOutput:
    url: str
    text: str
    truncated: bool = False


class FetchUrlTextUseCase:
    """R: URL -> text."""

    def __init__(self, fetcher: WebPageFetcher, max_text_chars: Optional[int] = None):
        self.fetcher = fetcher
        self.max_text_chars = max_text_chars

    async def execute(self, url: str) -> FetchUrlTextOutput:
        """
        Raises:
            InvalidInputError: Invalid or PDF URL
            SourceFetchError: Page could not be fetched or read
        """
        text = await self.fetcher.fetch_text(url)
        truncated = bool(self.max_text_chars) and len(text) > self.max_text_chars
        if truncated:
            logger.info(
                "URL text truncated",
                extra={"chars": len(text), "max_chars": self.max_text_chars},
            )
            text = text[: self.max_text_chars]
        return FetchUrlTextOutput(url=url.strip(), text=text, truncated=truncated)
