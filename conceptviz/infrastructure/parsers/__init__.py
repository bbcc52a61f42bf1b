"""Document parsers."""

from .pdf_parser import PDF_MIME, PypdfTextExtractor

__all__ = ["PDF_MIME", "PypdfTextExtractor"]
