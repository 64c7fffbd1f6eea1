"""Schemas for the goal plan endpoint."""
from __future__ import annotations

import math
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from goalplanner.api.schemas.goal import (
    COLUMN_IDS,
    Goal,
    GoalTaskPlanOptions,
    GoalTaskSuggestion,
    Milestone,
)

DEFAULT_HORIZON_DAYS = 14
DEFAULT_MAX_TASKS = 6


def _clamp_number(value: Any, default: int, low: int, high: int) -> int:
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    if not math.isfinite(number):
        return default
    return min(high, max(low, math.floor(number + 0.5)))


class PlanOptionsPayload(BaseModel):
    """Raw planning options; out-of-range values are clamped instead of rejected."""

    board_id: str = ""
    column: str = "todo"
    horizon_days: int = DEFAULT_HORIZON_DAYS
    max_tasks: int = DEFAULT_MAX_TASKS

    @field_validator("board_id", mode="before")
    @classmethod
    def _board_id(cls, value: Any) -> str:
        return value if isinstance(value, str) else ""

    @field_validator("column", mode="before")
    @classmethod
    def _column(cls, value: Any) -> str:
        return value if value in COLUMN_IDS else "todo"

    @field_validator("horizon_days", mode="before")
    @classmethod
    def _horizon_days(cls, value: Any) -> int:
        return _clamp_number(value, DEFAULT_HORIZON_DAYS, 1, 60)

    @field_validator("max_tasks", mode="before")
    @classmethod
    def _max_tasks(cls, value: Any) -> int:
        return _clamp_number(value, DEFAULT_MAX_TASKS, 1, 12)

    def to_options(self) -> GoalTaskPlanOptions:
        return GoalTaskPlanOptions(
            board_id=self.board_id,
            column=self.column,
            horizon_days=self.horizon_days,
            max_tasks=self.max_tasks,
        )


class GoalPlanRequest(BaseModel):
    goal: Goal
    milestones: List[Milestone] = Field(default_factory=list)
    options: Optional[PlanOptionsPayload] = None
    existing_task_titles: List[str] = Field(default_factory=list)
    app_settings: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Stored user app settings (aiProvider, aiModel, aiApiBaseUrl, aiApiKey).",
    )
    ai_settings: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Per-request overrides (provider, model, baseUrl, apiKey).",
    )


class GoalPlanResponse(BaseModel):
    suggestions: List[GoalTaskSuggestion]
    source: Literal["llm", "rules"]
    provider: str
    plan_hash: str
    request_id: str
