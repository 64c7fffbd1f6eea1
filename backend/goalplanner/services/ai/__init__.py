"""Text-generation provider integration."""
from goalplanner.services.ai.client import complete
from goalplanner.services.ai.errors import (
    AIProviderError,
    ProviderCancelledError,
    ProviderRequestError,
    ProviderResponseError,
    ProviderTimeoutError,
)
from goalplanner.services.ai.json_extract import extract_json_string
from goalplanner.services.ai.provider_config import resolve_config
from goalplanner.services.ai.types import (
    AICompletionRequest,
    AICompletionResponse,
    AIProvider,
    AIProviderConfig,
    ResolveOptions,
)

__all__ = [
    "AICompletionRequest",
    "AICompletionResponse",
    "AIProvider",
    "AIProviderConfig",
    "AIProviderError",
    "ProviderCancelledError",
    "ProviderRequestError",
    "ProviderResponseError",
    "ProviderTimeoutError",
    "ResolveOptions",
    "complete",
    "extract_json_string",
    "resolve_config",
]
