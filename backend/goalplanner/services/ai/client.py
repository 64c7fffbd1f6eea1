"""Provider-agnostic completion entry point."""
from __future__ import annotations

import logging
from time import perf_counter

from goalplanner.core.config import Settings
from goalplanner.observability.tracing import trace
from goalplanner.services.ai.provider_config import resolve_config
from goalplanner.services.ai.providers.anthropic import complete_anthropic
from goalplanner.services.ai.providers.ollama import complete_ollama
from goalplanner.services.ai.providers.openai import complete_openai
from goalplanner.services.ai.types import AICompletionRequest, AICompletionResponse, ResolveOptions

logger = logging.getLogger(__name__)


async def complete(
    options: ResolveOptions,
    request: AICompletionRequest,
    settings: Settings | None = None,
) -> AICompletionResponse:
    """Resolve provider configuration and run one completion through its adapter."""
    config = resolve_config(options, settings)
    start = perf_counter()

    with trace("ai.complete", metadata={"provider": config.provider, "model": config.model}):
        if config.provider in ("openai", "openai-compatible"):
            response = await complete_openai(config, request)
        elif config.provider == "anthropic":
            response = await complete_anthropic(config, request)
        else:
            response = await complete_ollama(config, request)

    logger.info(
        "Completion from %s (%s) returned %d chars in %.0fms",
        response.provider,
        config.model,
        len(response.text),
        (perf_counter() - start) * 1000,
    )
    return response
