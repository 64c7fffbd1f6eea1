"""Per-request context utilities."""
from __future__ import annotations

from contextvars import ContextVar, Token

REQUEST_ID_MAX_LENGTH = 64

request_id_ctx_var: ContextVar[str | None] = ContextVar("request_id", default=None)


def get_request_id() -> str | None:
    """Return the current request id if available."""
    return request_id_ctx_var.get()


def bind_request_id(raw_value: str | None, fallback: str) -> tuple[str, Token]:
    """Bind a sanitized request id for the current context.

    Client supplied ids are trimmed and capped so they stay safe to echo in
    headers and log lines; blank values fall back to the generated id.
    """
    candidate = (raw_value or "").strip()[:REQUEST_ID_MAX_LENGTH]
    request_id = candidate or fallback
    return request_id, request_id_ctx_var.set(request_id)
