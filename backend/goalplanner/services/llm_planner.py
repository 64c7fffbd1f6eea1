"""Backend-assisted goal task planner.

Asks a text-generation provider for suggestions and pushes whatever comes back
through the same bounds as the rule planner: title dedup, horizon clamping,
priority mapping and the shared plan hash. Any failure yields ``None`` so the
caller can fall back to :mod:`goalplanner.services.goal_task_planner`.
"""
from __future__ import annotations

import asyncio
import json
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from time import perf_counter
from typing import Any, Dict, List, Optional, Sequence

from goalplanner.api.schemas.goal import (
    PRIORITIES,
    Goal,
    GoalTaskPlanOptions,
    GoalTaskSuggestion,
    Milestone,
)
from goalplanner.core.config import Settings, get_settings
from goalplanner.observability.metrics import log_metric
from goalplanner.observability.tracing import trace
from goalplanner.services.ai import AICompletionRequest, ResolveOptions, complete, extract_json_string
from goalplanner.services.ai.provider_config import resolve_config
from goalplanner.services.ai.user_settings import (
    RULES_PROVIDER,
    GoalPlannerPreference,
    sanitize_base_url,
    sanitize_provider,
)
from goalplanner.services.goal_task_planner import (
    build_goal_task_plan_hash,
    clamp_date,
    horizon_bounds,
    normalize_title,
)

logger = logging.getLogger(__name__)

TEMPLATE_CYCLE = ("scope", "first_action", "review")
SYSTEM_PROMPT = "You are a strict JSON planner for productivity goals. Return valid JSON only."
_DATE_KEY = re.compile(r"^\d{4}-\d{2}-\d{2}$")
# A string payload may wrap the JSON once more; deeper nesting is treated as garbage.
_MAX_STRING_DEPTH = 2

SUGGESTIONS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["suggestions"],
    "properties": {
        "suggestions": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["title", "priority"],
                "properties": {
                    "title": {"type": "string"},
                    "description": {"type": "string"},
                    "due_date": {"type": "string"},
                    "priority": {"type": "string"},
                    "milestone_title": {"type": "string"},
                },
            },
        },
    },
}


@dataclass(frozen=True)
class LLMPlanResult:
    suggestions: List[GoalTaskSuggestion]
    provider: str


def resolve_planner_provider(preference: Optional[GoalPlannerPreference], settings: Settings) -> str:
    """Preference, then deployment default, then ``rules``; unknown names mean ``rules``."""
    preferred = sanitize_provider(preference.provider) if preference else None
    return preferred or sanitize_provider(settings.goal_planner_provider) or RULES_PROVIDER


def _missing_requirement(provider: str, options: ResolveOptions, settings: Settings) -> Optional[str]:
    config = resolve_config(options, settings)
    if provider in ("openai", "anthropic") and not config.api_key:
        return "api key"
    if provider == "openai-compatible" and not config.base_url:
        return "base url"
    return None


def build_prompt(
    goal: Goal,
    milestones: Sequence[Milestone],
    options: GoalTaskPlanOptions,
    existing_task_titles: Sequence[str],
) -> str:
    payload = {
        "goal": goal.model_dump(mode="json"),
        "milestones": [milestone.model_dump(mode="json") for milestone in milestones],
        "options": options.model_dump(mode="json"),
        "existing_task_titles": list(existing_task_titles),
    }
    return "\n".join(
        [
            "Create actionable task suggestions for this goal plan.",
            "Return ONLY a JSON object with shape: "
            '{"suggestions":[{"title":"...","description":"...","priority":"low|medium|high|urgent",'
            '"due_date":"YYYY-MM-DD","milestone_title":"..."}]}.',
            "Constraints:",
            f"- Return at most {options.max_tasks} suggestions.",
            '- Avoid generic phrasing like "Break down" or "Take first step".',
            "- Use concrete verbs and specific outcomes tied to the goal context.",
            "- Keep titles under 100 chars and descriptions under 220 chars.",
            f"- Use due dates inside the planning horizon of {options.horizon_days} days starting today.",
            "- Do not repeat any title listed in existing_task_titles.",
            "",
            json.dumps(payload),
        ]
    )


def _completion_request(provider: str, prompt: str, cancel_event: Optional[asyncio.Event]) -> AICompletionRequest:
    return AICompletionRequest(
        system=SYSTEM_PROMPT,
        prompt=prompt,
        temperature=0.2 if provider == "ollama" else 0.25,
        json_mode=provider in ("openai", "openai-compatible"),
        json_schema=SUGGESTIONS_SCHEMA if provider == "ollama" else None,
        cancel_event=cancel_event,
    )


def parse_raw_suggestions(value: Any, _depth: int = 0) -> List[Dict[str, Any]]:
    """Pull candidate dicts out of a parsed or still-textual provider payload."""
    if not value:
        return []
    if isinstance(value, list):
        return [item for item in value if isinstance(item, dict)]
    if isinstance(value, dict):
        suggestions = value.get("suggestions")
        if isinstance(suggestions, list):
            return [item for item in suggestions if isinstance(item, dict)]
        return []
    if isinstance(value, str) and _depth < _MAX_STRING_DEPTH:
        json_text = extract_json_string(value)
        if not json_text:
            return []
        try:
            parsed = json.loads(json_text)
        except ValueError:
            logger.debug("Provider payload did not parse as JSON (%d chars)", len(json_text))
            return []
        return parse_raw_suggestions(parsed, _depth + 1)
    return []


def normalize_priority(value: Any, fallback: str) -> str:
    if not isinstance(value, str):
        return fallback
    normalized = value.strip().lower()
    if normalized in PRIORITIES:
        return normalized
    if "urgent" in normalized:
        return "urgent"
    if "high" in normalized:
        return "high"
    if "low" in normalized:
        return "low"
    return fallback


def parse_date_key(value: Any) -> Optional[date]:
    if not isinstance(value, str):
        return None
    candidate = value.strip()
    if not _DATE_KEY.match(candidate):
        return None
    try:
        return date.fromisoformat(candidate)
    except ValueError:
        return None


def find_milestone_by_title(milestones: Sequence[Milestone], milestone_title: Optional[str]) -> Optional[Milestone]:
    if not milestone_title:
        return None
    target = normalize_title(milestone_title)
    if not target:
        return None
    return next((milestone for milestone in milestones if normalize_title(milestone.title) == target), None)


def _raw_field(raw: Dict[str, Any], snake_key: str, camel_key: str) -> Any:
    return raw.get(snake_key) if snake_key in raw else raw.get(camel_key)


def _clean_text(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return value.strip() or None


def map_raw_suggestions(
    goal: Goal,
    milestones: Sequence[Milestone],
    options: GoalTaskPlanOptions,
    existing_task_titles: Sequence[str],
    raw_suggestions: Sequence[Dict[str, Any]],
    now: Optional[datetime] = None,
) -> List[GoalTaskSuggestion]:
    """Validate provider candidates; malformed entries are dropped one by one."""
    today, end_date = horizon_bounds((now or datetime.now()).date(), options.horizon_days)
    default_due_date = today + timedelta(days=1)
    plan_hash = build_goal_task_plan_hash(goal.id, milestones, options)
    seen_titles = {normalize_title(title) for title in existing_task_titles}
    suggestions: List[GoalTaskSuggestion] = []

    for index, raw in enumerate(raw_suggestions):
        if len(suggestions) >= options.max_tasks:
            break

        title = _clean_text(raw.get("title"))
        if not title:
            continue
        normalized = normalize_title(title)
        if normalized in seen_titles:
            continue

        priority = normalize_priority(raw.get("priority"), "high" if index % 3 == 1 else "medium")
        due_date = clamp_date(
            parse_date_key(_raw_field(raw, "due_date", "dueDate")) or default_due_date,
            today,
            end_date,
        )
        milestone_title = _clean_text(_raw_field(raw, "milestone_title", "milestoneTitle"))
        matched = find_milestone_by_title(milestones, milestone_title)

        suggestions.append(
            GoalTaskSuggestion(
                id=f"llm-{index}-{re.sub(r'[^a-z0-9]+', '-', normalized)}",
                goal_id=goal.id,
                milestone_id=matched.id if matched else None,
                milestone_title=matched.title if matched else milestone_title,
                title=title,
                description=_clean_text(raw.get("description")),
                due_date=due_date,
                priority=priority,
                column=options.column,
                accepted=True,
                template=TEMPLATE_CYCLE[index % len(TEMPLATE_CYCLE)],
                plan_hash=plan_hash,
            )
        )
        seen_titles.add(normalized)

    return suggestions


async def generate_goal_task_suggestions_from_llm(
    goal: Goal,
    milestones: Sequence[Milestone],
    options: GoalTaskPlanOptions,
    existing_task_titles: Sequence[str] = (),
    preference: Optional[GoalPlannerPreference] = None,
    *,
    now: Optional[datetime] = None,
    cancel_event: Optional[asyncio.Event] = None,
    settings: Settings | None = None,
) -> Optional[LLMPlanResult]:
    """Return validated provider suggestions, or ``None`` when the caller should use rules."""
    settings = settings or get_settings()
    provider = resolve_planner_provider(preference, settings)
    if provider == RULES_PROVIDER:
        return None

    resolve_options = ResolveOptions(
        provider=provider,
        model=preference.model if preference else None,
        base_url=sanitize_base_url(preference.base_url) if preference else None,
        api_key=preference.api_key if preference else None,
    )
    missing = _missing_requirement(provider, resolve_options, settings)
    if missing:
        logger.info("Planner provider %s has no %s configured; using rules planner.", provider, missing)
        return None

    metadata = {"provider": provider, "goal_id": goal.id, "max_tasks": options.max_tasks}
    start = perf_counter()
    try:
        with trace("goal_plan.llm", metadata=metadata):
            prompt = build_prompt(goal, milestones, options, existing_task_titles)
            response = await complete(resolve_options, _completion_request(provider, prompt, cancel_event), settings)
            raw_suggestions = parse_raw_suggestions(response.text)
            suggestions = map_raw_suggestions(
                goal, milestones, options, existing_task_titles, raw_suggestions, now=now
            )
    except Exception:
        logger.warning("LLM planner failed; falling back to rules planner.", exc_info=True)
        log_metric("goal_plan.llm.fallback", 1, {"provider": provider, "reason": "error"})
        return None

    latency_ms = (perf_counter() - start) * 1000
    if not suggestions:
        logger.info(
            "LLM planner produced no usable suggestions from %d candidates; falling back.", len(raw_suggestions)
        )
        log_metric("goal_plan.llm.fallback", 1, {"provider": provider, "reason": "empty"})
        return None

    log_metric("goal_plan.llm.success", 1, {"provider": provider, "latency_ms": latency_ms})
    return LLMPlanResult(suggestions=suggestions, provider=response.provider)
