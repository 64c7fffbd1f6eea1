"""Messages API adapter."""
from __future__ import annotations

from typing import Any, Dict

from goalplanner.services.ai.http import post_json
from goalplanner.services.ai.provider_config import strip_trailing_slash
from goalplanner.services.ai.types import AICompletionRequest, AICompletionResponse, AIProviderConfig

ANTHROPIC_VERSION = "2023-06-01"
DEFAULT_MAX_TOKENS = 4096
DEFAULT_TEMPERATURE = 0.25


def build_payload(config: AIProviderConfig, request: AICompletionRequest) -> Dict[str, Any]:
    # The messages API has no JSON mode; the prompt itself carries the contract.
    return {
        "model": config.model,
        "max_tokens": request.max_tokens or DEFAULT_MAX_TOKENS,
        "temperature": request.temperature if request.temperature is not None else DEFAULT_TEMPERATURE,
        "system": request.system,
        "messages": [{"role": "user", "content": request.prompt}],
    }


def _joined_text_blocks(response: Any) -> str:
    content = response.get("content") if isinstance(response, dict) else None
    if not isinstance(content, list):
        return ""
    return "\n".join(
        block["text"]
        for block in content
        if isinstance(block, dict) and block.get("type") == "text" and isinstance(block.get("text"), str)
    )


async def complete_anthropic(config: AIProviderConfig, request: AICompletionRequest) -> AICompletionResponse:
    response = await post_json(
        f"{strip_trailing_slash(config.base_url)}/v1/messages",
        build_payload(config, request),
        headers={
            "Content-Type": "application/json",
            "x-api-key": config.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        },
        timeout_ms=config.timeout_ms,
        cancel_event=request.cancel_event,
    )
    return AICompletionResponse(text=_joined_text_blocks(response), provider="anthropic")
