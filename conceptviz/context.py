"""
Name: Correlation Context (ContextVars)

Responsibilities:
  - Hold the correlation fields every log line carries: request id, HTTP
    method and path, visualization session id
  - Bind the session id from HTTP routes and the reader WebSocket

Collaborators:
  - middleware.py: binds request fields, clears everything at request end
  - api/routes.py, api/reader.py: bind the session id
  - logger.py: merges get_context_dict() into each record

Notes:
  - Tasks created by asyncio.gather copy the current context, so chunk
    formatting and SVG renders log under the request that started them
  - Empty string means "unset"; unset fields are left out of log records
"""

from contextvars import ContextVar
from typing import Dict

request_id_var: ContextVar[str] = ContextVar("request_id", default="")
http_method_var: ContextVar[str] = ContextVar("http_method", default="")
http_path_var: ContextVar[str] = ContextVar("http_path", default="")
session_id_var: ContextVar[str] = ContextVar("session_id", default="")

# R: Log field name -> variable
_LOG_FIELDS: Dict[str, ContextVar[str]] = {
    "request_id": request_id_var,
    "method": http_method_var,
    "path": http_path_var,
    "session_id": session_id_var,
}


def bind_session(session_id: str) -> str:
    """R: Attach a session id to subsequent log lines; returns it unchanged."""
    session_id_var.set(session_id)
    return session_id


def get_context_dict() -> Dict[str, str]:
    """R: Non-empty correlation fields, keyed by log field name."""
    return {name: value for name, var in _LOG_FIELDS.items() if (value := var.get())}


def clear_context() -> None:
    for var in _LOG_FIELDS.values():
        var.set("")
