"""Custom FastAPI middleware."""
from __future__ import annotations

import logging
from typing import Callable
from uuid import uuid4

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from goalplanner.core.context import bind_request_id, request_id_ctx_var

logger = logging.getLogger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Bind a request id for logging and planner traces, and echo it back."""

    async def dispatch(self, request: Request, call_next: Callable[[Request], Response]) -> Response:  # type: ignore[override]
        request_id, token = bind_request_id(request.headers.get("X-Request-Id"), str(uuid4()))
        request.state.request_id = request_id

        try:
            response = await call_next(request)
        finally:
            request_id_ctx_var.reset(token)

        logger.debug("%s %s -> %s", request.method, request.url.path, response.status_code)
        response.headers["X-Request-Id"] = request_id
        return response
