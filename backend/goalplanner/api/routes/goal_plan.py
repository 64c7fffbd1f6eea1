"""Goal task planning endpoint."""
from __future__ import annotations

import logging
from time import perf_counter
from typing import List

from fastapi import APIRouter, Request

from goalplanner.api.schemas.goal import GoalTaskSuggestion
from goalplanner.api.schemas.goal_plan import GoalPlanRequest, GoalPlanResponse, PlanOptionsPayload
from goalplanner.observability.metrics import log_metric
from goalplanner.observability.tracing import trace
from goalplanner.services.ai.user_settings import (
    RULES_PROVIDER,
    merge_ai_settings,
    parse_request_overrides,
    parse_stored_ai_settings,
)
from goalplanner.services.goal_task_planner import (
    build_goal_task_plan_hash,
    generate_goal_task_suggestions,
)
from goalplanner.services.llm_planner import generate_goal_task_suggestions_from_llm

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/goals/plan", response_model=GoalPlanResponse, tags=["goals"])
async def plan_goal_tasks(http_request: Request, payload: GoalPlanRequest) -> GoalPlanResponse:
    """Suggest tasks for a goal, provider first and rules as the guaranteed fallback."""
    request_id = getattr(http_request.state, "request_id", None)
    options = (payload.options or PlanOptionsPayload()).to_options()
    preference = merge_ai_settings(
        parse_stored_ai_settings(payload.app_settings),
        parse_request_overrides(payload.ai_settings),
    )
    metadata = {
        "route": "/goals/plan",
        "goal_id": payload.goal.id,
        "milestones": len(payload.milestones),
        "horizon_days": options.horizon_days,
        "max_tasks": options.max_tasks,
        "preferred_provider": preference.provider or "default",
    }

    start = perf_counter()
    suggestions: List[GoalTaskSuggestion]
    with trace("goal_plan.request", metadata=metadata, request_id=request_id):
        llm_result = await generate_goal_task_suggestions_from_llm(
            payload.goal,
            payload.milestones,
            options,
            payload.existing_task_titles,
            preference,
        )
        if llm_result and llm_result.suggestions:
            suggestions = llm_result.suggestions
            source, provider = "llm", llm_result.provider
        else:
            suggestions = generate_goal_task_suggestions(
                payload.goal,
                payload.milestones,
                options,
                payload.existing_task_titles,
            )
            source, provider = "rules", RULES_PROVIDER

    latency_ms = (perf_counter() - start) * 1000
    metric_metadata = {"goal_id": payload.goal.id, "source": source, "provider": provider}
    log_metric("goal_plan.suggestions", len(suggestions), metadata=metric_metadata)
    log_metric("goal_plan.latency_ms", latency_ms, metadata=metric_metadata)
    logger.info("Planned %d tasks for goal %s via %s", len(suggestions), payload.goal.id, provider)

    return GoalPlanResponse(
        suggestions=suggestions,
        source=source,
        provider=provider,
        plan_hash=build_goal_task_plan_hash(payload.goal.id, payload.milestones, options),
        request_id=request_id or "",
    )
