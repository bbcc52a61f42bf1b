"""
Name: Dependency Injection Container

Responsibilities:
  - Wire up dependencies for the application
  - Provide factory functions for use cases
  - Manage singleton instances of repositories and services
  - Close network clients on shutdown

Collaborators:
  - infrastructure.services: Gemini / Claude / fake model services
  - infrastructure.web, infrastructure.parsers, infrastructure.text
  - application.use_cases
  - FastAPI Depends(): Dependency injection mechanism

Constraints:
  - Manual DI (no DI library)
  - Singletons via functools.lru_cache
  - FAKE_LLM=1 replaces every model-backed service with a deterministic fake

Notes:
  - This is the composition root; use cases never see concrete classes
  - The Claude renderer is only registered when ANTHROPIC_API_KEY is set
"""

from functools import lru_cache
from typing import Dict, Optional

from .application.active_concept import ActiveConceptSynchronizer
from .application.chunk_formatting import ChunkFormatter
from .application.formatting import FormattingOrchestrator
from .application.use_cases import (
    AnswerQuestionUseCase,
    ExtractConceptsUseCase,
    ExtractPdfTextUseCase,
    FetchUrlTextUseCase,
    FormatTextUseCase,
    NavigateConceptUseCase,
    RefreshFormattingUseCase,
    RegenerateVisualizationUseCase,
    ResetSessionUseCase,
    VisualizeTextUseCase,
)
from .config import get_settings
from .domain.repositories import SessionRepository
from .domain.services import (
    ConceptExtractor,
    LLMService,
    PdfTextExtractor,
    TextChunker,
    VisualizationRenderer,
    WebPageFetcher,
)
from .domain.value_objects import ReaderState
from .infrastructure.parsers import PypdfTextExtractor
from .infrastructure.prompts import get_prompt_loader
from .infrastructure.repositories import InMemorySessionRepository
from .infrastructure.services import (
    AnthropicLLMService,
    ClaudeSvgRenderer,
    FakeConceptExtractor,
    FakeLLMService,
    GeminiSvgRenderer,
    GoogleLLMService,
    LLMConceptExtractor,
)
from .infrastructure.text import ConceptAwareChunker
from .infrastructure.web import HttpWebPageFetcher
from .logger import logger


# R: Repository factory (singleton)
@lru_cache
def get_session_repository() -> SessionRepository:
    return InMemorySessionRepository()


# R: LLM service factories (singletons)
@lru_cache
def get_llm_service() -> LLMService:
    """
    R: Gemini service used for extraction, formatting, SVG and answers.
    """
    settings = get_settings()
    if settings.fake_llm:
        return FakeLLMService()
    return GoogleLLMService(
        api_key=settings.google_api_key, model_id=settings.gemini_model_id
    )


@lru_cache
def get_claude_llm_service() -> Optional[LLMService]:
    """R: Claude service, or None when no key is configured."""
    settings = get_settings()
    if settings.fake_llm:
        return get_llm_service()
    if not settings.anthropic_api_key:
        return None
    return AnthropicLLMService(
        api_key=settings.anthropic_api_key,
        model_id=settings.claude_model_id,
        max_tokens=settings.claude_max_tokens,
    )


@lru_cache
def get_concept_extractor() -> ConceptExtractor:
    if get_settings().fake_llm:
        return FakeConceptExtractor()
    return LLMConceptExtractor(get_llm_service(), get_prompt_loader())


@lru_cache
def get_renderers() -> Dict[str, VisualizationRenderer]:
    """R: Renderer registry keyed by renderer name."""
    renderers: Dict[str, VisualizationRenderer] = {
        "gemini": GeminiSvgRenderer(get_llm_service(), get_prompt_loader()),
    }
    claude_service = get_claude_llm_service()
    if claude_service is not None:
        renderers["claude"] = ClaudeSvgRenderer(claude_service, get_prompt_loader())
    return renderers


# R: Text chunker factory (singleton)
@lru_cache
def get_text_chunker() -> TextChunker:
    settings = get_settings()
    return ConceptAwareChunker(
        paragraphs_per_chunk=settings.paragraphs_per_chunk,
        max_paragraphs_per_chunk=settings.max_paragraphs_per_chunk,
        rescue_context_chars=settings.rescue_context_chars,
    )


@lru_cache
def get_formatting_orchestrator() -> FormattingOrchestrator:
    return FormattingOrchestrator(
        chunker=get_text_chunker(),
        chunk_formatter=ChunkFormatter(get_llm_service(), get_prompt_loader()),
    )


@lru_cache
def get_web_page_fetcher() -> WebPageFetcher:
    settings = get_settings()
    return HttpWebPageFetcher(
        timeout_seconds=settings.url_fetch_timeout_seconds,
        min_text_chars=settings.min_url_text_chars,
    )


@lru_cache
def get_pdf_text_extractor() -> PdfTextExtractor:
    return PypdfTextExtractor()


def build_synchronizer(state: ReaderState) -> ActiveConceptSynchronizer:
    """R: Synchronizer over a session's reader state, configured from settings."""
    settings = get_settings()
    return ActiveConceptSynchronizer(
        state,
        throttle_seconds=settings.scroll_throttle_seconds,
        suppression_seconds=settings.manual_navigation_suppression_seconds,
        strategy=settings.active_concept_strategy,
    )


# R: Use case factories (new instance per request)
def get_visualize_text_use_case() -> VisualizeTextUseCase:
    return VisualizeTextUseCase(
        repository=get_session_repository(),
        extractor=get_concept_extractor(),
        orchestrator=get_formatting_orchestrator(),
        renderers=get_renderers(),
        synchronizer_factory=build_synchronizer,
        max_text_chars=get_settings().max_text_chars,
    )


def get_regenerate_visualization_use_case() -> RegenerateVisualizationUseCase:
    return RegenerateVisualizationUseCase(
        repository=get_session_repository(), renderers=get_renderers()
    )


def get_reset_session_use_case() -> ResetSessionUseCase:
    return ResetSessionUseCase(repository=get_session_repository())


def get_navigate_concept_use_case() -> NavigateConceptUseCase:
    return NavigateConceptUseCase(
        repository=get_session_repository(), synchronizer_factory=build_synchronizer
    )


def get_refresh_formatting_use_case() -> RefreshFormattingUseCase:
    return RefreshFormattingUseCase(
        repository=get_session_repository(), orchestrator=get_formatting_orchestrator()
    )


def get_extract_concepts_use_case() -> ExtractConceptsUseCase:
    return ExtractConceptsUseCase(
        extractor=get_concept_extractor(), max_text_chars=get_settings().max_text_chars
    )


def get_format_text_use_case() -> FormatTextUseCase:
    return FormatTextUseCase(
        orchestrator=get_formatting_orchestrator(),
        max_text_chars=get_settings().max_text_chars,
    )


def get_answer_question_use_case() -> AnswerQuestionUseCase:
    return AnswerQuestionUseCase(
        repository=get_session_repository(),
        llm_service=get_llm_service(),
        prompt_loader=get_prompt_loader(),
        max_conversation_messages=get_settings().max_conversation_messages,
    )


def get_fetch_url_text_use_case() -> FetchUrlTextUseCase:
    return FetchUrlTextUseCase(
        fetcher=get_web_page_fetcher(), max_text_chars=get_settings().max_text_chars
    )


def get_extract_pdf_text_use_case() -> ExtractPdfTextUseCase:
    return ExtractPdfTextUseCase(
        extractor=get_pdf_text_extractor(),
        max_text_chars=get_settings().max_text_chars,
    )


async def close_services() -> None:
    """R: Close network clients created by the factories (shutdown hook)."""
    closables = []
    if get_web_page_fetcher.cache_info().currsize:
        closables.append(get_web_page_fetcher())
    if get_claude_llm_service.cache_info().currsize:
        claude_service = get_claude_llm_service()
        if isinstance(claude_service, AnthropicLLMService):
            closables.append(claude_service)

    for service in closables:
        try:
            await service.aclose()
        except Exception as e:
            logger.warning(
                "Failed to close service",
                extra={"service": type(service).__name__, "error": str(e)},
            )
