"""
Name: FastAPI Exception Handlers

Responsibilities:
  - Define the RFC 7807 problem envelope and the API error codes
  - Convert domain exceptions, request validation errors and ApiError
    raises into that envelope
  - Centralized logging of errors with correlation IDs

Collaborators:
  - main.py: Registers these handlers
  - exceptions.py: ConceptVizError and subclasses
  - api/routes.py: raises ApiError (413/415), documents OPENAPI_ERROR_RESPONSES

Constraints:
  - Extraction failures are user-facing (422), provider failures are 502
  - Unknown errors never leak internals (generic 500)
  - Every error body is application/problem+json with a stable `code`
"""

from enum import Enum
from typing import Any

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .exceptions import (
    ConceptVizError,
    DocumentParsingError,
    ExtractionError,
    InvalidInputError,
    LLMError,
    RenderError,
    SessionNotFoundError,
    SourceFetchError,
)
from .logger import logger

PROBLEM_JSON_MEDIA_TYPE = "application/problem+json"
_PROBLEM_TYPE_BASE = "https://api.conceptviz.local/errors/"


class ErrorCode(str, Enum):
    """Stable codes clients switch on."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    UNSUPPORTED_MEDIA = "UNSUPPORTED_MEDIA"
    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"
    EXTRACTION_FAILED = "EXTRACTION_FAILED"
    DOCUMENT_PARSE_FAILED = "DOCUMENT_PARSE_FAILED"

    INTERNAL_ERROR = "INTERNAL_ERROR"
    RENDER_FAILED = "RENDER_FAILED"
    SOURCE_FETCH_FAILED = "SOURCE_FETCH_FAILED"
    LLM_ERROR = "LLM_ERROR"


class ProblemDetail(BaseModel):
    """RFC 7807 body; `code` and `errors` are extension members."""

    type: str = "about:blank"
    title: str
    status: int
    detail: str
    code: ErrorCode
    instance: str | None = None
    errors: list[dict[str, Any]] | None = None


def _documented(description: str) -> dict[str, Any]:
    return {
        "description": f"{description} (RFC 7807 Problem Details)",
        "model": ProblemDetail,
        "content": {
            PROBLEM_JSON_MEDIA_TYPE: {"schema": {"$ref": "#/components/schemas/ProblemDetail"}}
        },
    }


OPENAPI_ERROR_RESPONSES = {
    "404": _documented("Unknown visualization session"),
    "422": _documented("Invalid input or failed extraction"),
    "default": _documented("Error response"),
}

# R: Domain error -> (HTTP status, API error code)
_STATUS_BY_ERROR: dict[type[ConceptVizError], tuple[int, ErrorCode]] = {
    InvalidInputError: (422, ErrorCode.VALIDATION_ERROR),
    ExtractionError: (422, ErrorCode.EXTRACTION_FAILED),
    DocumentParsingError: (422, ErrorCode.DOCUMENT_PARSE_FAILED),
    SessionNotFoundError: (404, ErrorCode.NOT_FOUND),
    RenderError: (502, ErrorCode.RENDER_FAILED),
    SourceFetchError: (502, ErrorCode.SOURCE_FETCH_FAILED),
    LLMError: (502, ErrorCode.LLM_ERROR),
}


class ApiError(HTTPException):
    """HTTP error raised directly by a route, carrying its API code."""

    def __init__(
        self,
        status_code: int,
        code: ErrorCode,
        detail: str,
        errors: list[dict[str, Any]] | None = None,
    ):
        super().__init__(status_code=status_code, detail=detail)
        self.code = code
        self.errors = errors


def payload_too_large(max_size: str) -> ApiError:
    return ApiError(
        413, ErrorCode.PAYLOAD_TOO_LARGE, f"Payload exceeds maximum size of {max_size}"
    )


def unsupported_media(detail: str) -> ApiError:
    return ApiError(415, ErrorCode.UNSUPPORTED_MEDIA, detail)


def problem_response(
    request: Request,
    status_code: int,
    code: ErrorCode,
    detail: str,
    errors: list[dict[str, Any]] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build the problem+json response every handler returns."""
    problem = ProblemDetail(
        type=_PROBLEM_TYPE_BASE + code.value.lower(),
        title=code.value.replace("_", " ").title(),
        status=status_code,
        detail=detail,
        code=code,
        instance=str(request.url),
        errors=errors,
    )
    return JSONResponse(
        status_code=status_code,
        content=problem.model_dump(mode="json", exclude_none=True),
        headers=headers,
        media_type=PROBLEM_JSON_MEDIA_TYPE,
    )


def _status_for(exc: ConceptVizError) -> tuple[int, ErrorCode]:
    for error_type in type(exc).__mro__:
        if error_type in _STATUS_BY_ERROR:
            return _STATUS_BY_ERROR[error_type]
    return 500, ErrorCode.INTERNAL_ERROR


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return problem_response(
        request,
        exc.status_code,
        exc.code,
        exc.detail,
        errors=exc.errors,
        headers=getattr(exc, "headers", None),
    )


async def conceptviz_error_handler(
    request: Request, exc: ConceptVizError
) -> JSONResponse:
    """Handle any domain error with its mapped status."""
    status_code, code = _status_for(exc)
    log = logger.warning if status_code < 500 else logger.error
    log(
        "Domain error",
        extra={
            "code": code.value,
            "error_id": exc.error_id,
            "error_message": exc.message,
        },
    )
    return problem_response(
        request, status_code, code, exc.message, errors=[{"error_id": exc.error_id}]
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle pydantic request validation errors."""
    errors = [
        {
            "loc": [str(part) for part in error.get("loc", ())],
            "msg": error.get("msg", ""),
            "type": error.get("type", ""),
        }
        for error in exc.errors()
    ]
    return problem_response(
        request, 422, ErrorCode.VALIDATION_ERROR, "Request validation failed", errors=errors
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback for untyped exceptions (full stacktrace in logs only)."""
    logger.error("Unhandled exception", exc_info=exc, extra={"error": str(exc)})
    return problem_response(
        request, 500, ErrorCode.INTERNAL_ERROR, "An unexpected error occurred"
    )


def register_exception_handlers(app) -> None:
    """
    Register all exception handlers on the FastAPI app.

    Usage:
        from .exception_handlers import register_exception_handlers
        register_exception_handlers(app)
    """
    app.add_exception_handler(ConceptVizError, conceptviz_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
