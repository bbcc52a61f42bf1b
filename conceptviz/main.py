"""
Name: FastAPI Application Entry Point

Responsibilities:
  - Initialize FastAPI application with metadata (title, version)
  - Configure middleware (CORS, request context)
  - Mount the HTTP and WebSocket routers under the /v1 prefix
  - Expose health check and metrics endpoints
  - Build services at startup and close them at shutdown (lifespan)

Collaborators:
  - FastAPI: ASGI web framework
  - CORSMiddleware: Cross-Origin Resource Sharing handler
  - RequestContextMiddleware: Request ID and logging context
  - api.routes / api.reader: endpoints
  - container: service construction and shutdown

Constraints:
  - CORS configurable via ALLOWED_ORIGINS env var (comma-separated)
  - No authentication or rate limiting
  - Health check does not call model providers

Notes:
  - Middleware order: RequestContext -> CORS -> routes
  - Settings are validated in the lifespan (missing GOOGLE_API_KEY without
    FAKE_LLM=1 fails startup)
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .api.reader import router as reader_router
from .api.routes import router
from .config import get_settings
from .container import close_services, get_renderers
from .exception_handlers import register_exception_handlers
from .logger import logger
from .metrics import get_metrics_response
from .middleware import RequestContextMiddleware


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle. Validates settings and builds services."""
    # This will raise ValidationError if env vars are missing/invalid
    settings = get_settings()
    renderers = get_renderers()

    logger.info(
        "ConceptViz API starting up",
        extra={
            "fake_llm": settings.fake_llm,
            "gemini_model_id": settings.gemini_model_id,
            "renderers": sorted(renderers),
            "prompt_version": settings.prompt_version,
            "paragraphs_per_chunk": settings.paragraphs_per_chunk,
            "active_concept_strategy": settings.active_concept_strategy,
        },
    )
    yield

    await close_services()
    logger.info("ConceptViz API shutting down")


def _get_allowed_origins() -> list[str]:
    """Get CORS origins from settings, with fallback for import-time errors."""
    try:
        return get_settings().get_allowed_origins_list()
    except Exception:
        # Fallback for tests that don't set env vars
        return ["http://localhost:5173"]


app = FastAPI(
    title="ConceptViz API",
    version=__version__,
    lifespan=lifespan,
    openapi_tags=[
        {"name": "pipeline", "description": "Stateless extraction and formatting"},
        {"name": "sessions", "description": "Visualization sessions and reader"},
        {"name": "assistant", "description": "Questions about the session text"},
        {"name": "sources", "description": "Text from URLs and PDF uploads"},
    ],
)

# R: Add request context middleware
app.add_middleware(RequestContextMiddleware)

# R: Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=_get_allowed_origins(),
    allow_credentials=False,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "X-Request-Id"],
    expose_headers=["X-Request-Id"],
)

# R: Register API routes under /v1 prefix for versioning
app.include_router(router, prefix="/v1")
app.include_router(reader_router, prefix="/v1")

# R: Register exception handlers for structured error responses
register_exception_handlers(app)


# R: Health check endpoint for monitoring/orchestration
@app.get("/healthz")
def healthz():
    """
    R: Liveness probe.

    Returns:
        ok: Always True when the process serves requests
        version: Package version
        fake_llm: Whether model calls are simulated
    """
    return {
        "ok": True,
        "version": __version__,
        "fake_llm": get_settings().fake_llm,
    }


# R: Prometheus metrics endpoint
@app.get("/metrics")
def metrics():
    body, content_type = get_metrics_response()
    return Response(content=body, media_type=content_type)
