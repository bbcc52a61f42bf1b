"""
Name: Domain Exceptions

Responsibilities:
  - Standardize internal errors with a stable error_code and an error_id
  - Name the failure modes of the visualization pipeline

Collaborators:
  - exception_handlers.py: maps these to RFC 7807 HTTP responses
  - application layer: raises / contains them per propagation policy

Notes:
  - ExtractionError aborts a visualize operation
  - RenderError is contained per concept (fatal only for single-concept
    regeneration)
  - FormattingError is contained per chunk and never leaves the formatter
  - InvalidInputError is a client mistake caught by a use case (422)
  - OffsetIntegrityError is logged, never raised out of the pipeline
"""

from uuid import uuid4


class ConceptVizError(Exception):
    """
    R: Base for internal errors.

    Attributes:
        message: Human-readable message (safe to show, no secrets)
        error_id: Correlation ID for logs
        original_error: Underlying exception, if any
    """

    error_code: str = "CONCEPTVIZ_ERROR"

    def __init__(
        self,
        message: str,
        error_id: str | None = None,
        original_error: Exception | None = None,
    ):
        self.message = message
        self.error_id = error_id or str(uuid4())
        self.original_error = original_error
        super().__init__(message)


class ExtractionError(ConceptVizError):
    """No usable concept list (or no concept could be visualized)."""

    error_code: str = "EXTRACTION_FAILED"


class RenderError(ConceptVizError):
    """A single concept's visualization could not be produced."""

    error_code: str = "RENDER_FAILED"


class FormattingError(ConceptVizError):
    """A chunk could not be formatted into annotated HTML."""

    error_code: str = "FORMATTING_FAILED"


class OffsetIntegrityError(ConceptVizError):
    """A concept range does not fit the source text."""

    error_code: str = "OFFSET_INTEGRITY"


class LLMError(ConceptVizError):
    """Errors from a model provider (quota, invalid request, empty output)."""

    error_code: str = "LLM_ERROR"


class SourceFetchError(ConceptVizError):
    """A URL could not be fetched or yielded no usable text."""

    error_code: str = "SOURCE_FETCH_FAILED"


class DocumentParsingError(ConceptVizError):
    """An uploaded document could not be parsed into text."""

    error_code: str = "DOCUMENT_PARSE_FAILED"


class SessionNotFoundError(ConceptVizError):
    """The requested visualization session does not exist."""

    error_code: str = "NOT_FOUND"


class InvalidInputError(ConceptVizError):
    """User input rejected by a use case (empty text, bad index, bad URL)."""

    error_code: str = "VALIDATION_ERROR"
