"""Goal, milestone and suggestion schemas shared by both planners."""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

GoalStatus = Literal["active", "completed", "paused", "abandoned"]
GoalPriority = Literal["low", "medium", "high"]
Priority = Literal["low", "medium", "high", "urgent"]
ColumnId = Literal["backlog", "todo", "in-progress", "complete"]
TemplateKey = Literal["scope", "first_action", "review"]

COLUMN_IDS: tuple[str, ...] = ("backlog", "todo", "in-progress", "complete")
PRIORITIES: tuple[str, ...] = ("low", "medium", "high", "urgent")
GOAL_PRIORITIES: tuple[str, ...] = ("low", "medium", "high")


class Goal(BaseModel):
    """A goal as loaded by the surrounding application."""

    model_config = ConfigDict(frozen=True)

    id: str
    category_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    target_date: Optional[date] = None
    start_date: date
    status: GoalStatus = "active"
    progress: int = Field(default=0, ge=0, le=100)
    priority: GoalPriority = "medium"
    order: int = 0
    created_at: datetime
    completed_at: Optional[datetime] = None
    archived_at: Optional[datetime] = None

    @field_validator("priority", mode="before")
    @classmethod
    def _priority(cls, value: Any) -> str:
        # Legacy rows carry priorities outside the enum; they plan at "medium".
        return value if value in GOAL_PRIORITIES else "medium"


class Milestone(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    goal_id: str
    title: str
    description: Optional[str] = None
    target_date: Optional[date] = None
    is_completed: bool = False
    completed_at: Optional[datetime] = None
    order: int = 0
    created_at: datetime


class GoalTaskPlanOptions(BaseModel):
    """Bounds for a single planning invocation; callers clamp before building it."""

    model_config = ConfigDict(frozen=True)

    board_id: str = ""
    column: ColumnId = "todo"
    horizon_days: int = Field(default=14, ge=1, le=60)
    max_tasks: int = Field(default=6, ge=1, le=12)


class GoalTaskSuggestion(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    goal_id: str
    milestone_id: Optional[str] = None
    milestone_title: Optional[str] = None
    title: str
    description: Optional[str] = None
    due_date: Optional[date] = None
    priority: Priority
    column: ColumnId
    accepted: bool = True
    template: TemplateKey
    plan_hash: str
