"""Single-attempt JSON POST used by every provider adapter."""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Optional

import httpx

from goalplanner.services.ai.errors import (
    ProviderCancelledError,
    ProviderRequestError,
    ProviderResponseError,
    ProviderTimeoutError,
)

logger = logging.getLogger(__name__)


def _build_client(timeout_seconds: float) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=timeout_seconds)


async def post_json(
    url: str,
    payload: Dict[str, Any],
    *,
    headers: Dict[str, str],
    timeout_ms: int,
    cancel_event: Optional[asyncio.Event] = None,
) -> Any:
    """POST ``payload`` and decode the JSON reply.

    The request races the timeout and the caller's cancel event; whichever
    fires first aborts it. Returns ``None`` for an empty body.
    """
    timeout_seconds = timeout_ms / 1000
    async with _build_client(timeout_seconds) as client:
        request_task = asyncio.ensure_future(client.post(url, json=payload, headers=headers))
        waiters = {request_task}
        cancel_task: Optional[asyncio.Future] = None
        if cancel_event is not None:
            cancel_task = asyncio.ensure_future(cancel_event.wait())
            waiters.add(cancel_task)

        try:
            done, _ = await asyncio.wait(waiters, timeout=timeout_seconds, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in waiters:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*waiters, return_exceptions=True)

        if request_task not in done:
            if cancel_task is not None and cancel_task in done:
                raise ProviderCancelledError(url)
            raise ProviderTimeoutError(url, timeout_ms)

        try:
            response = request_task.result()
        except httpx.TimeoutException as exc:
            raise ProviderTimeoutError(url, timeout_ms) from exc

    body = response.text
    if not response.is_success:
        raise ProviderRequestError(response.status_code, body)
    if not body:
        logger.debug("Empty provider body from %s", url)
        return None
    try:
        return json.loads(body)
    except ValueError as exc:
        raise ProviderResponseError(f"AI provider returned a non-JSON body ({len(body)} chars)") from exc
