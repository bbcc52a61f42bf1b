"""
Name: Text Source Tests

Responsibilities:
  - URL validation, PDF-link detection and main-text extraction
  - HttpWebPageFetcher over a mocked transport (httpx.MockTransport)
  - PDF text extraction (pypdf reader patched) and the source use cases
"""

from unittest.mock import AsyncMock, Mock, patch

import httpx
import pytest

from conceptviz.application.use_cases import (
    ExtractPdfTextInput,
    ExtractPdfTextUseCase,
    FetchUrlTextUseCase,
)
from conceptviz.exceptions import DocumentParsingError, InvalidInputError, SourceFetchError
from conceptviz.infrastructure.parsers import PypdfTextExtractor
from conceptviz.infrastructure.web import HttpWebPageFetcher
from conceptviz.infrastructure.web.url_fetcher import (
    PDF_URL_MESSAGE,
    TOO_SHORT_MESSAGE,
    extract_main_text,
    is_pdf_url,
    normalize_url,
)

pytestmark = pytest.mark.unit

ARTICLE = "Enzymes lower activation energy. " * 20

PAGE = f"""
<html>
  <head><title>Biology</title><style>p {{ color: red; }}</style></head>
  <body>
    <nav>Home | About | Contact</nav>
    <script>console.log("tracking")</script>
    <article><h1>Enzymes</h1><p>{ARTICLE}</p></article>
    <footer>Copyright</footer>
  </body>
</html>
"""


def _fetcher(handler, min_text_chars: int = 100) -> HttpWebPageFetcher:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True)
    return HttpWebPageFetcher(min_text_chars=min_text_chars, client=client)


def _html_response(body: str, status_code: int = 200) -> httpx.Response:
    return httpx.Response(
        status_code, headers={"content-type": "text/html; charset=utf-8"}, text=body
    )


class TestUrlHelpers:
    def test_normalize_url(self):
        assert normalize_url("example.com/page") == "http://example.com/page"
        assert normalize_url(" https://example.com ") == "https://example.com"
        assert normalize_url("ftp://example.com/file") is None
        assert normalize_url("") is None
        assert normalize_url("http://") is None

    def test_pdf_links(self):
        assert is_pdf_url("https://example.com/paper.PDF")
        assert is_pdf_url("https://arxiv.org/pdf/2101.00001")
        assert not is_pdf_url("https://example.com/articles/enzymes")

    def test_main_text_skips_boilerplate(self):
        text = extract_main_text(PAGE)

        assert text.startswith("Enzymes Enzymes lower activation energy.")
        assert "Home" not in text
        assert "tracking" not in text
        assert "Copyright" not in text

    def test_body_is_used_without_main_container(self):
        text = extract_main_text("<html><body><div>Plain   body\n text</div></body></html>")
        assert text == "Plain body text"


class TestHttpWebPageFetcher:
    @pytest.mark.asyncio
    async def test_returns_article_text(self):
        requested = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            return _html_response(PAGE)

        fetcher = _fetcher(handler)
        text = await fetcher.fetch_text("example.com/enzymes")
        await fetcher.aclose()

        assert requested == ["http://example.com/enzymes"]
        assert "activation energy" in text

    @pytest.mark.asyncio
    async def test_invalid_and_pdf_urls_are_input_errors(self):
        fetcher = _fetcher(lambda request: _html_response(PAGE))

        with pytest.raises(InvalidInputError):
            await fetcher.fetch_text("ftp://example.com/file")
        with pytest.raises(InvalidInputError) as exc_info:
            await fetcher.fetch_text("https://example.com/paper.pdf")
        assert exc_info.value.message == PDF_URL_MESSAGE

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        fetcher = _fetcher(lambda request: _html_response("gone", status_code=404))

        with pytest.raises(SourceFetchError, match="HTTP 404"):
            await fetcher.fetch_text("https://example.com/missing")

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(SourceFetchError):
            await _fetcher(handler).fetch_text("https://example.com/")

    @pytest.mark.asyncio
    async def test_non_html_content(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, headers={"content-type": "application/pdf"}, content=b"%PDF")

        with pytest.raises(SourceFetchError) as exc_info:
            await _fetcher(handler).fetch_text("https://example.com/download")
        assert exc_info.value.message == PDF_URL_MESSAGE

    @pytest.mark.asyncio
    async def test_short_text_is_rejected(self):
        fetcher = _fetcher(lambda request: _html_response("<p>Please log in</p>"))

        with pytest.raises(SourceFetchError) as exc_info:
            await fetcher.fetch_text("https://example.com/private")
        assert exc_info.value.message == TOO_SHORT_MESSAGE


def _page(text):
    page = Mock()
    page.extract_text.return_value = text
    return page


class TestPypdfTextExtractor:
    def test_invalid_bytes(self):
        with pytest.raises(DocumentParsingError):
            PypdfTextExtractor().extract_text(b"definitely not a pdf")

    def test_pages_joined_and_failures_skipped(self):
        broken = Mock()
        broken.extract_text.side_effect = ValueError("bad font")
        reader = Mock(is_encrypted=False, pages=[_page("Page one "), broken, _page(""), _page("Page two")])

        with patch("conceptviz.infrastructure.parsers.pdf_parser.PdfReader", return_value=reader):
            text = PypdfTextExtractor().extract_text(b"%PDF-1.4")

        assert text == "Page one\n\nPage two"

    def test_encrypted_pdf(self):
        reader = Mock(is_encrypted=True, pages=[])
        with patch("conceptviz.infrastructure.parsers.pdf_parser.PdfReader", return_value=reader):
            with pytest.raises(DocumentParsingError, match="Encrypted"):
                PypdfTextExtractor().extract_text(b"%PDF-1.4")

    def test_pdf_without_text(self):
        reader = Mock(is_encrypted=False, pages=[_page("   ")])
        with patch("conceptviz.infrastructure.parsers.pdf_parser.PdfReader", return_value=reader):
            with pytest.raises(DocumentParsingError, match="No text"):
                PypdfTextExtractor().extract_text(b"%PDF-1.4")


class TestSourceUseCases:
    @pytest.mark.asyncio
    async def test_url_text_is_truncated(self):
        fetcher = Mock()
        fetcher.fetch_text = AsyncMock(return_value="x" * 50)

        output = await FetchUrlTextUseCase(fetcher, max_text_chars=20).execute(
            " https://example.com "
        )

        assert output.url == "https://example.com"
        assert output.text == "x" * 20
        assert output.truncated

    @pytest.mark.asyncio
    async def test_pdf_text_extraction(self):
        extractor = Mock()
        extractor.extract_text.return_value = "PDF body"

        output = await ExtractPdfTextUseCase(extractor).execute(
            ExtractPdfTextInput(file_name="notes.pdf", content=b"%PDF")
        )

        assert (output.file_name, output.text, output.truncated) == ("notes.pdf", "PDF body", False)
        extractor.extract_text.assert_called_once_with(b"%PDF")

    @pytest.mark.asyncio
    async def test_empty_upload(self):
        extractor = Mock()
        with pytest.raises(DocumentParsingError):
            await ExtractPdfTextUseCase(extractor).execute(
                ExtractPdfTextInput(file_name="empty.pdf", content=b"")
            )
        extractor.extract_text.assert_not_called()
