"""Web page fetching."""

from .url_fetcher import HttpWebPageFetcher, is_pdf_url, normalize_url

__all__ = ["HttpWebPageFetcher", "is_pdf_url", "normalize_url"]
