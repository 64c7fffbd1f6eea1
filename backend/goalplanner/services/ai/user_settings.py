"""Sanitize stored and per-request AI settings into a planner preference."""
from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any, Mapping, Optional
from urllib.parse import urlsplit

from goalplanner.services.ai.provider_config import strip_trailing_slash
from goalplanner.services.ai.types import AI_PROVIDERS

RULES_PROVIDER = "rules"
PLANNER_PROVIDERS = frozenset((*AI_PROVIDERS, RULES_PROVIDER))

MODEL_MAX_LENGTH = 120
BASE_URL_MAX_LENGTH = 240
API_KEY_MAX_LENGTH = 500


@dataclass(frozen=True)
class GoalPlannerPreference:
    provider: Optional[str] = None
    model: Optional[str] = None
    base_url: Optional[str] = None
    api_key: Optional[str] = None


def sanitize_provider(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    candidate = value.strip().lower()
    return candidate if candidate in PLANNER_PROVIDERS else None


def _clip(value: Any, max_length: int) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return value.strip()[:max_length] or None


def sanitize_base_url(value: Any) -> Optional[str]:
    """Accept only absolute http(s) URLs."""
    candidate = _clip(value, BASE_URL_MAX_LENGTH)
    if not candidate:
        return None
    try:
        parts = urlsplit(candidate)
    except ValueError:
        return None
    if parts.scheme not in ("http", "https") or not parts.netloc:
        return None
    return strip_trailing_slash(candidate)


def _first_string(source: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if isinstance(source.get(key), str):
            return source[key]
    return None


def parse_stored_ai_settings(app_settings: Any) -> GoalPlannerPreference:
    """Read the AI block of a user's stored app settings."""
    if not isinstance(app_settings, Mapping):
        return GoalPlannerPreference()
    return GoalPlannerPreference(
        provider=sanitize_provider(_first_string(app_settings, "aiProvider", "goalPlannerProvider")),
        model=_clip(_first_string(app_settings, "aiModel", "goalPlannerModel"), MODEL_MAX_LENGTH),
        base_url=sanitize_base_url(app_settings.get("aiApiBaseUrl")),
        api_key=_clip(app_settings.get("aiApiKey"), API_KEY_MAX_LENGTH),
    )


def parse_request_overrides(value: Any) -> GoalPlannerPreference:
    if not isinstance(value, Mapping):
        return GoalPlannerPreference()
    return GoalPlannerPreference(
        provider=sanitize_provider(value.get("provider")),
        model=_clip(value.get("model"), MODEL_MAX_LENGTH),
        base_url=sanitize_base_url(value.get("baseUrl")),
        api_key=_clip(value.get("apiKey"), API_KEY_MAX_LENGTH),
    )


def merge_ai_settings(stored: GoalPlannerPreference, overrides: GoalPlannerPreference) -> GoalPlannerPreference:
    """Request overrides win field by field; absent overrides keep the stored value."""
    present = {
        field.name: getattr(overrides, field.name)
        for field in fields(overrides)
        if getattr(overrides, field.name) is not None
    }
    return replace(stored, **present)
