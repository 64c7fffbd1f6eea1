"""Resolve per-call provider configuration from options, settings and built-ins."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from goalplanner.core.config import Settings, get_settings
from goalplanner.services.ai.types import (
    AI_PROVIDERS,
    DEFAULT_PROVIDER,
    AIProviderConfig,
    ResolveOptions,
)


@dataclass(frozen=True)
class ProviderDefaults:
    """Built-in literals plus the settings consulted for one provider.

    Source fields name ``Settings`` attributes; earlier entries win.
    """

    default_model: str
    default_base_url: str
    credential_sources: Tuple[str, ...] = ()
    base_url_source: Optional[str] = None
    model_sources: Tuple[str, ...] = ("goal_planner_model",)


PROVIDER_DEFAULTS: Dict[str, ProviderDefaults] = {
    "openai": ProviderDefaults(
        default_model="gpt-4.1-mini",
        default_base_url="https://api.openai.com/v1",
        credential_sources=("openai_api_key",),
        base_url_source="openai_base_url",
    ),
    "openai-compatible": ProviderDefaults(
        default_model="gpt-4.1-mini",
        default_base_url="",
        credential_sources=("goal_planner_api_key", "openai_api_key"),
        base_url_source="goal_planner_api_url",
    ),
    "ollama": ProviderDefaults(
        default_model="llama3.1",
        default_base_url="http://localhost:11434",
        base_url_source="ollama_base_url",
        model_sources=("ollama_model", "goal_planner_model"),
    ),
    "anthropic": ProviderDefaults(
        default_model="claude-sonnet-4-5-20250929",
        default_base_url="https://api.anthropic.com",
        credential_sources=("anthropic_api_key",),
        base_url_source="anthropic_base_url",
    ),
}


def strip_trailing_slash(value: str) -> str:
    return value[:-1] if value.endswith("/") else value


def coerce_provider(value: Optional[str]) -> str:
    """Map a provider name onto a supported one; unknown names use the default."""
    candidate = (value or "").strip().lower()
    return candidate if candidate in AI_PROVIDERS else DEFAULT_PROVIDER


def _first_non_empty(*values: Optional[str]) -> str:
    for value in values:
        if value:
            return value
    return ""


def _setting_values(settings: Settings, sources: Tuple[str, ...]) -> Tuple[Optional[str], ...]:
    return tuple(getattr(settings, source, None) for source in sources)


def resolve_config(options: ResolveOptions, settings: Settings | None = None) -> AIProviderConfig:
    """Merge explicit options over deployment settings over built-in defaults."""
    settings = settings or get_settings()
    provider = coerce_provider(options.provider)
    defaults = PROVIDER_DEFAULTS[provider]

    base_url_setting = getattr(settings, defaults.base_url_source, None) if defaults.base_url_source else None
    base_url = _first_non_empty(options.base_url, base_url_setting, defaults.default_base_url)
    timeout_ms = options.timeout_ms if options.timeout_ms is not None else settings.goal_planner_timeout_ms

    return AIProviderConfig(
        provider=provider,  # type: ignore[arg-type]
        model=_first_non_empty(options.model, *_setting_values(settings, defaults.model_sources), defaults.default_model),
        base_url=strip_trailing_slash(base_url),
        api_key=_first_non_empty(options.api_key, *_setting_values(settings, defaults.credential_sources)),
        timeout_ms=timeout_ms,
    )
