"""
Name: Request Context Middleware

Responsibilities:
  - Resolve the request id: a safe client-supplied X-Request-Id is reused,
    anything else is replaced by a fresh UUID4
  - Bind request correlation fields for the duration of the request
  - Echo X-Request-Id on the response
  - Log one line per request and feed the request metrics

Collaborators:
  - context.py: correlation ContextVars
  - metrics.py: request counter and latency histogram
  - main.py: registers this before CORS

Constraints:
  - BaseHTTPMiddleware only sees HTTP; the reader WebSocket is not counted
  - Context is cleared in every outcome, including exceptions
"""

import re
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from .context import clear_context, http_method_var, http_path_var, request_id_var
from .logger import logger
from .metrics import record_request_metrics

REQUEST_ID_HEADER = "X-Request-Id"

# R: Client ids are logged verbatim, so only short safe tokens are accepted
_SAFE_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{8,128}$")

# R: Probe endpoints (no per-request log line)
_QUIET_PATHS = frozenset({"/healthz", "/metrics"})


def resolve_request_id(request: Request) -> str:
    candidate = (request.headers.get(REQUEST_ID_HEADER) or "").strip()
    if _SAFE_REQUEST_ID.match(candidate):
        return candidate
    return str(uuid.uuid4())


class RequestContextMiddleware(BaseHTTPMiddleware):
    """R: Correlation id, request log line and request metrics."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = resolve_request_id(request)
        request.state.request_id = request_id
        request_id_var.set(request_id)
        http_method_var.set(request.method)
        http_path_var.set(request.url.path)

        path = request.url.path
        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        except Exception as exc:
            logger.exception("request failed", extra={"error": str(exc)})
            raise
        finally:
            elapsed = time.perf_counter() - started
            if path not in _QUIET_PATHS:
                logger.info(
                    "request completed",
                    extra={
                        "status_code": status_code,
                        "latency_ms": round(elapsed * 1000, 2),
                    },
                )
            record_request_metrics(
                endpoint=path,
                method=request.method,
                status_code=status_code,
                latency_seconds=elapsed,
            )
            clear_context()
