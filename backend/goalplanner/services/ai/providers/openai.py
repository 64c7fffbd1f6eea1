"""Chat-completions adapter for OpenAI and OpenAI-compatible endpoints."""
from __future__ import annotations

from typing import Any, Dict

from goalplanner.services.ai.http import post_json
from goalplanner.services.ai.provider_config import strip_trailing_slash
from goalplanner.services.ai.types import AICompletionRequest, AICompletionResponse, AIProviderConfig

DEFAULT_TEMPERATURE = 0.25


def build_payload(config: AIProviderConfig, request: AICompletionRequest) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "model": config.model,
        "temperature": request.temperature if request.temperature is not None else DEFAULT_TEMPERATURE,
    }
    if request.max_tokens:
        payload["max_tokens"] = request.max_tokens
    if request.json_mode:
        payload["response_format"] = {"type": "json_object"}
    payload["messages"] = [
        {"role": "system", "content": request.system},
        {"role": "user", "content": request.prompt},
    ]
    return payload


def _first_choice_text(response: Any) -> str:
    if not isinstance(response, dict):
        return ""
    choices = response.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return ""
    message = choices[0].get("message")
    if not isinstance(message, dict):
        return ""
    content = message.get("content")
    return content if isinstance(content, str) else ""


async def complete_openai(config: AIProviderConfig, request: AICompletionRequest) -> AICompletionResponse:
    headers = {"Content-Type": "application/json"}
    if config.api_key:
        headers["Authorization"] = f"Bearer {config.api_key}"

    response = await post_json(
        f"{strip_trailing_slash(config.base_url)}/chat/completions",
        build_payload(config, request),
        headers=headers,
        timeout_ms=config.timeout_ms,
        cancel_event=request.cancel_event,
    )
    return AICompletionResponse(text=_first_choice_text(response), provider=config.provider)
