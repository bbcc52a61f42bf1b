"""
Name: PDF Text Extraction Adapter

Responsibilities:
  - Extract plain text from PDF bytes (pypdf)
  - Keep page boundaries as blank lines so paragraph chunking still works
  - Turn unreadable / encrypted / empty documents into DocumentParsingError

Collaborators:
  - pypdf.PdfReader
  - application.use_cases.extract_pdf_text: runs this in a worker thread

Notes:
  - strict=False tolerates slightly broken PDFs
  - A page that fails to extract is skipped and logged
"""

from io import BytesIO

from pypdf import PdfReader

from ...exceptions import DocumentParsingError
from ...logger import logger

PDF_MIME = "application/pdf"

PAGE_SEPARATOR = "\n\n"


class PypdfTextExtractor:
    """R: PdfTextExtractor implementation over pypdf."""

    def extract_text(self, content: bytes) -> str:
        """
        R: Extract the text of every page.

        Raises:
            DocumentParsingError: Corrupt or encrypted file, or no text
        """
        try:
            reader = PdfReader(BytesIO(content), strict=False)
        except Exception as e:
            raise DocumentParsingError(
                "Could not open the PDF (corrupt or invalid file)", original_error=e
            ) from e

        if reader.is_encrypted:
            raise DocumentParsingError("Encrypted PDFs are not supported")

        pages: list[str] = []
        skipped = 0
        for number, page in enumerate(reader.pages):
            try:
                text = page.extract_text() or ""
            except Exception as e:
                skipped += 1
                logger.warning(
                    "PDF page extraction failed",
                    extra={"page": number, "error_type": type(e).__name__},
                )
                continue
            if text.strip():
                pages.append(text.strip())

        if not pages:
            raise DocumentParsingError("No text could be extracted from the PDF")

        logger.info(
            "PDF text extracted",
            extra={"pages": len(pages), "skipped_pages": skipped},
        )
        return PAGE_SEPARATOR.join(pages)
