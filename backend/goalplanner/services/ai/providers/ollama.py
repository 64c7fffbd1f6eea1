"""Local Ollama daemon adapter with loopback fallbacks."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from goalplanner.services.ai.errors import ProviderCancelledError
from goalplanner.services.ai.http import post_json
from goalplanner.services.ai.provider_config import strip_trailing_slash
from goalplanner.services.ai.types import AICompletionRequest, AICompletionResponse, AIProviderConfig

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:11434"
LOOPBACK_FALLBACKS = ("http://localhost:11434", "http://127.0.0.1:11434", "http://[::1]:11434")
DEFAULT_TEMPERATURE = 0.2


def get_base_url_candidates(base_url: str) -> List[str]:
    """Configured URL first, then the loopback variants not already listed."""
    candidates = [strip_trailing_slash(base_url or DEFAULT_BASE_URL)]
    for fallback in LOOPBACK_FALLBACKS:
        normalized = strip_trailing_slash(fallback)
        if normalized not in candidates:
            candidates.append(normalized)
    return candidates


def build_payload(config: AIProviderConfig, request: AICompletionRequest) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"model": config.model, "stream": False}
    if request.json_schema:
        payload["format"] = request.json_schema
    payload["options"] = {
        "temperature": request.temperature if request.temperature is not None else DEFAULT_TEMPERATURE,
    }
    payload["messages"] = [
        {"role": "system", "content": request.system},
        {"role": "user", "content": request.prompt},
    ]
    return payload


def _message_text(response: Any) -> str:
    message = response.get("message") if isinstance(response, dict) else None
    content = message.get("content") if isinstance(message, dict) else None
    return content if isinstance(content, str) else ""


async def complete_ollama(config: AIProviderConfig, request: AICompletionRequest) -> AICompletionResponse:
    payload = build_payload(config, request)
    last_error: Optional[Exception] = None

    for base_url in get_base_url_candidates(config.base_url):
        try:
            response = await post_json(
                f"{base_url}/api/chat",
                payload,
                headers={"Content-Type": "application/json"},
                timeout_ms=config.timeout_ms,
                cancel_event=request.cancel_event,
            )
        except ProviderCancelledError:
            raise
        except Exception as exc:
            logger.info("Ollama attempt at %s failed: %s", base_url, exc)
            last_error = exc
            continue

        text = _message_text(response)
        if text:
            return AICompletionResponse(text=text, provider="ollama")

    if last_error is not None:
        raise last_error
    return AICompletionResponse(text="", provider="ollama")
