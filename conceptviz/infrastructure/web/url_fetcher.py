"""
Name: HTTP Web Page Fetcher

Responsibilities:
  - Validate and normalize user-supplied URLs
  - Reject PDF links with guidance (PDFs go through the upload endpoint)
  - Download HTML pages (httpx) and extract the readable main text
    (BeautifulSoup)

Collaborators:
  - httpx.AsyncClient: one pooled client per fetcher, closed by aclose()
  - bs4.BeautifulSoup: boilerplate removal and main-content selection

Constraints:
  - Only text/html and application/xhtml+xml responses are accepted
  - Extracted text shorter than min_text_chars is rejected
  - Redirects are followed; timeout applies to the whole request

Notes:
  - Pages behind logins usually yield a short shell text, hence the
    minimum length check
"""

import re
from typing import Optional
from urllib.parse import urlparse

import httpx
from bs4 import BeautifulSoup

from ...exceptions import InvalidInputError, SourceFetchError
from ...logger import logger

INVALID_URL_MESSAGE = "Please enter a valid URL starting with http:// or https://"
PDF_URL_MESSAGE = (
    "This URL points to a PDF file. Please download the PDF and use the "
    "PDF upload option instead."
)
TOO_SHORT_MESSAGE = (
    "The extracted content seems too short. The URL might be protected or "
    "require authentication."
)

ACCEPTED_CONTENT_TYPES = ("text/html", "application/xhtml+xml")

BOILERPLATE_SELECTORS = (
    "script, style, noscript, iframe, nav, footer, header, aside, form, "
    ".sidebar, .comments, .ad, .advertisement"
)
MAIN_CONTENT_SELECTORS = (
    "main",
    "article",
    ".content",
    "#content",
    ".main-content",
    "#main-content",
    ".post-content",
    ".article-content",
    ".entry-content",
)

_WHITESPACE = re.compile(r"\s+")

_USER_AGENT = (
    "Mozilla/5.0 (compatible; ConceptViz/0.1; +https://github.com/conceptviz)"
)


def normalize_url(url: str) -> Optional[str]:
    """
    R: Return the URL with a scheme, or None if it is not a valid web URL.

    A bare host ("example.com/page") gets "http://" prepended.
    """
    candidate = (url or "").strip()
    if not candidate:
        return None
    if not re.match(r"^[a-zA-Z][a-zA-Z0-9+.-]*://", candidate):
        candidate = f"http://{candidate}"

    parsed = urlparse(candidate)
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        return None
    return candidate


def is_pdf_url(url: str) -> bool:
    """R: True for links that obviously point at a PDF document."""
    lowered = url.lower()
    path = urlparse(lowered).path
    return (
        path.endswith(".pdf")
        or "/pdf" in path
        or "application/pdf" in lowered
    )


def extract_main_text(html: str) -> str:
    """
    R: Readable text of an HTML document.

    Boilerplate elements are removed first; then the first main-content
    container wins, else <body>, else the whole document.
    """
    soup = BeautifulSoup(html, "html.parser")
    for element in soup.select(BOILERPLATE_SELECTORS):
        element.decompose()

    container = None
    for selector in MAIN_CONTENT_SELECTORS:
        container = soup.select_one(selector)
        if container is not None:
            break
    if container is None:
        container = soup.body or soup

    return _WHITESPACE.sub(" ", container.get_text(separator=" ")).strip()


class HttpWebPageFetcher:
    """R: WebPageFetcher implementation over httpx + BeautifulSoup."""

    def __init__(
        self,
        timeout_seconds: float = 10.0,
        min_text_chars: int = 500,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.min_text_chars = min_text_chars
        self._client = client or httpx.AsyncClient(
            timeout=timeout_seconds,
            follow_redirects=True,
            headers={"User-Agent": _USER_AGENT},
        )

    async def fetch_text(self, url: str) -> str:
        """
        R: Download a page and return its main text.

        Raises:
            InvalidInputError: Invalid URL or PDF link
            SourceFetchError: Network/HTTP failure, non-HTML content or too
                little text
        """
        normalized = normalize_url(url)
        if normalized is None:
            raise InvalidInputError(INVALID_URL_MESSAGE)
        if is_pdf_url(normalized):
            raise InvalidInputError(PDF_URL_MESSAGE)

        try:
            response = await self._client.get(normalized)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(
                "URL fetch returned error status",
                extra={"url": normalized, "status_code": e.response.status_code},
            )
            raise SourceFetchError(
                f"Failed to fetch URL: HTTP {e.response.status_code}", original_error=e
            ) from e
        except httpx.HTTPError as e:
            logger.warning(
                "URL fetch failed",
                extra={"url": normalized, "error_type": type(e).__name__},
            )
            raise SourceFetchError(f"Failed to fetch URL: {e}", original_error=e) from e

        content_type = response.headers.get("content-type", "").lower()
        if "application/pdf" in content_type:
            raise SourceFetchError(PDF_URL_MESSAGE)
        if not any(accepted in content_type for accepted in ACCEPTED_CONTENT_TYPES):
            raise SourceFetchError(
                f"The URL does not point to an HTML page (content type: "
                f"{content_type or 'unknown'})"
            )

        text = extract_main_text(response.text)
        if len(text) < self.min_text_chars:
            raise SourceFetchError(TOO_SHORT_MESSAGE)

        logger.info(
            "URL text extracted",
            extra={"url": normalized, "chars": len(text)},
        )
        return text

    async def aclose(self) -> None:
        await self._client.aclose()
