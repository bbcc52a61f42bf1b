"""
Name: Extract PDF Text Use Case

Responsibilities:
  - Turn an uploaded PDF into visualization input text
  - Keep the event loop free: parsing runs in a worker thread

Notes:
  - Upload type and size are validated by the route before this runs
"""

import asyncio
from dataclasses import dataclass
from typing import Optional

from ...domain.services import PdfTextExtractor
from ...exceptions import DocumentParsingError
from ...logger import logger


@dataclass
class ExtractPdfTextInput:
    file_name: str
    content: bytes


@dataclass
class ExtractPdfTextOutput:
    file_name: str
    text: str
    truncated: bool = False


class ExtractPdfTextUseCase:
    """R: PDF bytes -> text."""

    def __init__(self, extractor: PdfTextExtractor, max_text_chars: Optional[int] = None):
        self.extractor = extractor
        self.max_text_chars = max_text_chars

    async def execute(self, input_data: ExtractPdfTextInput) -> ExtractPdfTextOutput:
        """
        Raises:
            DocumentParsingError: Empty upload, unreadable PDF or no text
        """
        if not input_data.content:
            raise DocumentParsingError("The uploaded file is empty")

        text = await asyncio.to_thread(self.extractor.extract_text, input_data.content)
        truncated = bool(self.max_text_chars) and len(text) > self.max_text_chars
        if truncated:
            text = text[: self.max_text_chars]

        logger.info(
            "PDF processed",
            extra={
                "file_name": input_data.file_name,
                "chars": len(text),
                "truncated": truncated,
            },
        )
        return ExtractPdfTextOutput(
            file_name=input_data.file_name, text=text, truncated=truncated
        )
