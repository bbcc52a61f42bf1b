"""
Name: ConceptViz API Controllers

Responsibilities:
  - Expose HTTP endpoints for sessions, stateless pipeline calls, the
    assistant and text sources
  - Delegate business logic to application use cases
  - Validate requests and serialize responses using Pydantic models
  - Wire dependencies via the container

Collaborators:
  - application.use_cases
  - container: dependency providers
  - api.schemas: request/response models

Constraints:
  - Upload type/size checks happen here, parsing happens in the use case
  - Domain errors propagate to exception_handlers (RFC 7807)

Notes:
  - Controllers only; keep them thin
"""

import os

from fastapi import APIRouter, Depends, File, UploadFile

from ..application.use_cases import (
    AnswerQuestionInput,
    AnswerQuestionUseCase,
    ExtractConceptsInput,
    ExtractConceptsUseCase,
    ExtractPdfTextInput,
    ExtractPdfTextUseCase,
    FetchUrlTextUseCase,
    FormatTextInput,
    FormatTextUseCase,
    NavigateConceptInput,
    NavigateConceptUseCase,
    RefreshFormattingUseCase,
    RegenerateVisualizationInput,
    RegenerateVisualizationUseCase,
    ResetSessionUseCase,
    VisualizeTextInput,
    VisualizeTextUseCase,
)
from ..application.use_cases.session_access import load_session
from ..config import get_settings
from ..container import (
    get_answer_question_use_case,
    get_extract_concepts_use_case,
    get_extract_pdf_text_use_case,
    get_fetch_url_text_use_case,
    get_format_text_use_case,
    get_navigate_concept_use_case,
    get_refresh_formatting_use_case,
    get_regenerate_visualization_use_case,
    get_reset_session_use_case,
    get_session_repository,
    get_visualize_text_use_case,
)
from ..context import bind_session
from ..domain.repositories import SessionRepository
from ..exception_handlers import (
    OPENAPI_ERROR_RESPONSES,
    payload_too_large,
    unsupported_media,
)
from ..infrastructure.parsers import PDF_MIME
from .schemas import (
    AskReq,
    AskRes,
    ConceptRes,
    ConceptsRes,
    FormatReq,
    FormatRes,
    FormattingRes,
    MessageRes,
    NavigationReq,
    RegenerateReq,
    RegenerateRes,
    ResultRes,
    SessionRes,
    SourceTextRes,
    SyncRes,
    TextReq,
    UrlReq,
    VisualizeReq,
    VisualizeRes,
)

# R: Create API router (mounted under /v1)
router = APIRouter(responses=OPENAPI_ERROR_RESPONSES)


async def session_path(session_id: str) -> str:
    """R: Bind the path session id to the logging context."""
    return bind_session(session_id)


# R: Stateless pipeline ------------------------------------------------------


@router.post("/concepts/extract", response_model=ConceptsRes, tags=["pipeline"])
async def extract_concepts(
    req: TextReq,
    use_case: ExtractConceptsUseCase = Depends(get_extract_concepts_use_case),
):
    """R: Extract, validate, de-overlap, dedup and index concepts of a text."""
    output = await use_case.execute(ExtractConceptsInput(text=req.text))
    return ConceptsRes(
        concepts=[ConceptRes.from_domain(c) for c in output.concepts],
        timings=output.timings,
    )


@router.post("/format", response_model=FormatRes, tags=["pipeline"])
async def format_text(
    req: FormatReq,
    use_case: FormatTextUseCase = Depends(get_format_text_use_case),
):
    """R: Annotated HTML for a text and (optional) caller-supplied concepts."""
    output = await use_case.execute(
        FormatTextInput(text=req.text, concepts=[c.to_domain() for c in req.concepts])
    )
    return FormatRes(
        html=output.html,
        concepts=[ConceptRes.from_domain(c) for c in output.concepts],
        timings=output.timings,
    )


# R: Sessions -----------------------------------------------------------------


@router.post("/sessions", response_model=VisualizeRes, tags=["sessions"])
async def create_session(
    req: VisualizeReq,
    use_case: VisualizeTextUseCase = Depends(get_visualize_text_use_case),
):
    """R: Create a session and visualize the text into it."""
    output = await use_case.execute(
        VisualizeTextInput(text=req.text, renderer=req.renderer)
    )
    return VisualizeRes(
        session=SessionRes.from_domain(output.session),
        committed=output.committed,
        timings=output.timings,
    )


@router.post(
    "/sessions/{session_id}/visualize", response_model=VisualizeRes, tags=["sessions"]
)
async def visualize_session(
    req: VisualizeReq,
    session_id: str = Depends(session_path),
    use_case: VisualizeTextUseCase = Depends(get_visualize_text_use_case),
):
    """R: Re-run visualize on an existing session (replaces everything)."""
    output = await use_case.execute(
        VisualizeTextInput(text=req.text, session_id=session_id, renderer=req.renderer)
    )
    return VisualizeRes(
        session=SessionRes.from_domain(output.session),
        committed=output.committed,
        timings=output.timings,
    )


@router.get("/sessions/{session_id}", response_model=SessionRes, tags=["sessions"])
def get_session(
    session_id: str = Depends(session_path),
    repository: SessionRepository = Depends(get_session_repository),
):
    return SessionRes.from_domain(load_session(repository, session_id))


@router.delete("/sessions/{session_id}", response_model=SessionRes, tags=["sessions"])
def reset_session(
    session_id: str = Depends(session_path),
    use_case: ResetSessionUseCase = Depends(get_reset_session_use_case),
):
    """R: "New visualization": drop all state, back to input."""
    return SessionRes.from_domain(use_case.execute(session_id))


@router.post(
    "/sessions/{session_id}/concepts/{index}/regenerate",
    response_model=RegenerateRes,
    tags=["sessions"],
)
async def regenerate_visualization(
    index: int,
    req: RegenerateReq | None = None,
    session_id: str = Depends(session_path),
    use_case: RegenerateVisualizationUseCase = Depends(
        get_regenerate_visualization_use_case
    ),
):
    renderer = req.renderer if req else None
    output = await use_case.execute(
        RegenerateVisualizationInput(session_id=session_id, index=index, renderer=renderer)
    )
    return RegenerateRes(
        session_id=output.session.id,
        index=index,
        result=ResultRes.from_domain(output.result),
    )


@router.post(
    "/sessions/{session_id}/navigation", response_model=SyncRes, tags=["sessions"]
)
def navigate(
    req: NavigationReq,
    session_id: str = Depends(session_path),
    use_case: NavigateConceptUseCase = Depends(get_navigate_concept_use_case),
):
    output = use_case.execute(
        NavigateConceptInput(session_id=session_id, action=req.action, index=req.index)
    )
    return SyncRes.from_update(output.update)


@router.post(
    "/sessions/{session_id}/format", response_model=FormattingRes, tags=["sessions"]
)
async def refresh_formatting(
    session_id: str = Depends(session_path),
    use_case: RefreshFormattingUseCase = Depends(get_refresh_formatting_use_case),
):
    output = await use_case.execute(session_id)
    return FormattingRes(
        session=SessionRes.from_domain(output.session), timings=output.timings
    )


@router.post("/sessions/{session_id}/ask", response_model=AskRes, tags=["assistant"])
async def ask(
    req: AskReq,
    session_id: str = Depends(session_path),
    use_case: AnswerQuestionUseCase = Depends(get_answer_question_use_case),
):
    """R: Ask the assistant about the session text."""
    output = await use_case.execute(
        AnswerQuestionInput(session_id=session_id, question=req.question)
    )
    return AskRes(
        answer_html=output.answer_html,
        conversation=[MessageRes.from_domain(m) for m in output.conversation],
        timings=output.timings,
    )


# R: Sources ------------------------------------------------------------------


@router.post("/sources/url", response_model=SourceTextRes, tags=["sources"])
async def fetch_url(
    req: UrlReq,
    use_case: FetchUrlTextUseCase = Depends(get_fetch_url_text_use_case),
):
    output = await use_case.execute(req.url)
    return SourceTextRes(
        source=output.url,
        text=output.text,
        chars=len(output.text),
        truncated=output.truncated,
    )


@router.post("/sources/pdf", response_model=SourceTextRes, tags=["sources"])
async def upload_pdf(
    file: UploadFile = File(...),
    use_case: ExtractPdfTextUseCase = Depends(get_extract_pdf_text_use_case),
):
    settings = get_settings()
    file_name = os.path.basename(file.filename or "").strip() or "upload.pdf"
    mime_type = (file.content_type or "").lower()
    if mime_type != PDF_MIME and not file_name.lower().endswith(".pdf"):
        raise unsupported_media(f"Unsupported media type: {mime_type or 'unknown'}")

    content = await file.read()
    await file.close()
    if settings.max_upload_bytes > 0 and len(content) > settings.max_upload_bytes:
        raise payload_too_large(f"{settings.max_upload_bytes} bytes")

    output = await use_case.execute(
        ExtractPdfTextInput(file_name=file_name, content=content)
    )
    return SourceTextRes(
        source=output.file_name,
        text=output.text,
        chars=len(output.text),
        truncated=output.truncated,
    )
