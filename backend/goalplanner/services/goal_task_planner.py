"""Deterministic, network-free goal task planner."""
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from goalplanner.api.schemas.goal import (
    Goal,
    GoalTaskPlanOptions,
    GoalTaskSuggestion,
    Milestone,
)

CONTEXT_MAX_LENGTH = 120
_FAR_FUTURE = date.max


@dataclass(frozen=True)
class TaskTemplate:
    key: str
    title: Callable[[str], str]
    base_description: str

    def describe(self, context: str) -> str:
        return _with_context(self.base_description, context)


def _template(key: str, title_format: str, description: str) -> TaskTemplate:
    return TaskTemplate(key=key, title=lambda subject: title_format.format(subject=subject), base_description=description)


TEMPLATE_SETS: Dict[str, List[TaskTemplate]] = {
    "learning": [
        _template(
            "scope",
            "Curate resources for {subject}",
            "Pick 2-3 high-quality resources and define what done looks like for this learning block.",
        ),
        _template(
            "first_action",
            "Complete focused study session: {subject}",
            "Finish one focused learning session and capture concise notes or flashcards.",
        ),
        _template(
            "review",
            "Summarize lessons for {subject}",
            "Write what was learned, what remains unclear, and the next study action.",
        ),
    ],
    "writing": [
        _template("scope", "Outline {subject}", "Create a clear structure with key points, sections, and intended audience."),
        _template("first_action", "Draft {subject}", "Write a complete first draft without over-editing so momentum stays high."),
        _template("review", "Edit and finalize {subject}", "Revise for clarity, tighten wording, and prepare the final version."),
    ],
    "build": [
        _template(
            "scope",
            "Define implementation plan for {subject}",
            "Break implementation into concrete steps, interfaces, and acceptance criteria.",
        ),
        _template(
            "first_action",
            "Build first working version of {subject}",
            "Ship a minimal functional version that proves the core path works end-to-end.",
        ),
        _template("review", "Test and polish {subject}", "Test critical flows, fix defects, and refine edge-case behavior."),
    ],
    "launch": [
        _template("scope", "Create launch checklist for {subject}", "List launch prerequisites, owners, and go/no-go checks."),
        _template(
            "first_action",
            "Prepare release assets for {subject}",
            "Finalize release notes, messaging, and required launch assets.",
        ),
        _template(
            "review",
            "Run launch and post-launch review for {subject}",
            "Execute launch, monitor results, and log immediate follow-up actions.",
        ),
    ],
    "fitness": [
        _template("scope", "Plan training block for {subject}", "Set workout schedule, target effort, and recovery checkpoints."),
        _template(
            "first_action",
            "Complete key training session for {subject}",
            "Do the highest-impact workout for this stage and record results.",
        ),
        _template("review", "Review performance for {subject}", "Evaluate progress trends and adjust pace, load, or technique."),
    ],
    "organize": [
        _template(
            "scope",
            "Break down next steps for {subject}",
            "Turn this milestone into ordered, measurable steps with owners and deadlines.",
        ),
        _template(
            "first_action",
            "Finish highest-impact task for {subject}",
            "Complete the one task that removes the most uncertainty or risk.",
        ),
        _template(
            "review",
            "Clear blockers for {subject}",
            "Identify blockers and resolve or delegate them so work can continue smoothly.",
        ),
    ],
    "general": [
        _template("scope", "Break down {subject}", "Clarify scope and define concrete outputs for this milestone."),
        _template(
            "first_action",
            "Take first concrete step on {subject}",
            "Complete one meaningful action that moves this milestone forward today.",
        ),
        _template("review", "Review progress on {subject}", "Assess what changed, what is blocked, and what to tackle next."),
    ],
}

# Checked in order; the first intent with a matching keyword wins.
INTENT_KEYWORDS: List[tuple[str, tuple[str, ...]]] = [
    ("writing", ("write", "draft", "article", "blog", "book", "doc", "proposal", "copy", "script")),
    ("launch", ("launch", "release", "ship", "deploy", "go live")),
    ("learning", ("learn", "study", "course", "read", "research", "language", "certification", "exam")),
    ("fitness", ("run", "race", "workout", "training", "gym", "fitness", "marathon")),
    ("organize", ("plan", "roadmap", "scope", "organize", "process", "system", "setup")),
    ("build", ("build", "implement", "develop", "code", "app", "feature", "prototype", "design", "create", "make")),
]

_PRIORITY_BUMP = {"low": "medium", "medium": "high"}


def normalize_title(value: str) -> str:
    return re.sub(r"\s+", " ", value.strip().lower())


def _with_context(base: str, context: str) -> str:
    return f"{base} Context: {context}" if context else base


def _truncate(value: str, max_length: int) -> str:
    if len(value) <= max_length:
        return value
    return f"{value[: max_length - 3].strip()}..."


def _build_context(goal: Goal, milestone: Milestone) -> str:
    milestone_context = (milestone.description or "").strip()
    if milestone_context:
        return _truncate(milestone_context, CONTEXT_MAX_LENGTH)
    goal_context = (goal.description or "").strip()
    if goal_context:
        return _truncate(goal_context, CONTEXT_MAX_LENGTH)
    return ""


def _clean_subject(value: str) -> str:
    subject = re.sub(r"[.!?]+$", "", value.strip())
    return re.sub(r"\s+", " ", subject)


def detect_milestone_intent(milestone: Milestone, goal: Goal) -> str:
    """Classify a milestone into one of the template intents."""
    text = " ".join(
        [milestone.title, milestone.description or "", goal.title, goal.description or ""]
    ).lower()
    for intent, keywords in INTENT_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return intent
    return "general"


def map_goal_priority(priority: Optional[str]) -> str:
    if priority in ("low", "medium", "high"):
        return priority
    return "medium"


def bump_priority(priority: str) -> str:
    return _PRIORITY_BUMP.get(priority, priority)


def clamp_date(value: date, min_date: date, max_date: date) -> date:
    if value < min_date:
        return min_date
    if value > max_date:
        return max_date
    return value


def horizon_bounds(today: date, horizon_days: int) -> tuple[date, date]:
    """Return the inclusive [first, last] day of the planning horizon."""
    return today, today + timedelta(days=max(1, horizon_days) - 1)


def _utf16_code_units(value: str) -> Iterable[int]:
    encoded = value.encode("utf-16-le", "surrogatepass")
    for index in range(0, len(encoded), 2):
        yield encoded[index] | (encoded[index + 1] << 8)


def _hash_string(value: str) -> str:
    """32-bit FNV-1a over UTF-16 code units, base36 encoded."""
    hash_value = 2166136261
    for unit in _utf16_code_units(value):
        hash_value = (hash_value ^ unit) & 0xFFFFFFFF
        hash_value = (
            hash_value
            + (hash_value << 1)
            + (hash_value << 4)
            + (hash_value << 7)
            + (hash_value << 8)
            + (hash_value << 24)
        ) & 0xFFFFFFFF
    return _to_base36(hash_value)


def _to_base36(value: int) -> str:
    digits = "0123456789abcdefghijklmnopqrstuvwxyz"
    if value == 0:
        return "0"
    encoded: List[str] = []
    while value:
        value, remainder = divmod(value, 36)
        encoded.append(digits[remainder])
    return "".join(reversed(encoded))


def _milestone_signature(milestone: Milestone) -> str:
    target = milestone.target_date.isoformat() if milestone.target_date else ""
    completed = "1" if milestone.is_completed else "0"
    return f"{milestone.id}:{milestone.title}:{target}:{completed}:{milestone.order}"


def build_goal_task_plan_hash(goal_id: str, milestones: Sequence[Milestone], options: GoalTaskPlanOptions) -> str:
    """Fingerprint the planning inputs for correlation and idempotency checks."""
    milestone_signature = "|".join(sorted(_milestone_signature(milestone) for milestone in milestones))
    raw = "::".join(
        [
            goal_id,
            options.board_id,
            options.column,
            str(options.horizon_days),
            str(options.max_tasks),
            milestone_signature,
        ]
    )
    return f"plan_{_hash_string(raw)}"


def _select_source_milestones(goal: Goal, milestones: Sequence[Milestone], now: datetime) -> List[Milestone]:
    incomplete = sorted(
        (milestone for milestone in milestones if not milestone.is_completed),
        key=lambda milestone: (milestone.target_date or _FAR_FUTURE, milestone.order),
    )
    if incomplete:
        return incomplete
    return [
        Milestone(
            id=f"goal-{goal.id}",
            goal_id=goal.id,
            title=goal.title,
            description=goal.description,
            target_date=goal.target_date,
            is_completed=False,
            order=0,
            created_at=now,
        )
    ]


def _target_offset(template_key: str, horizon_days: int) -> int:
    if template_key == "scope":
        return -min(7, max(1, horizon_days // 2))
    if template_key == "first_action":
        return -min(3, max(1, horizon_days // 3))
    return 0


def generate_goal_task_suggestions(
    goal: Goal,
    milestones: Sequence[Milestone],
    options: GoalTaskPlanOptions,
    existing_task_titles: Iterable[str] = (),
    now: Optional[datetime] = None,
) -> List[GoalTaskSuggestion]:
    """Turn a goal and its open milestones into template-based task suggestions."""
    now = now or datetime.now()
    today, end_date = horizon_bounds(now.date(), options.horizon_days)
    plan_hash = build_goal_task_plan_hash(goal.id, milestones, options)
    seen_titles = {normalize_title(title) for title in existing_task_titles}
    max_tasks = max(1, options.max_tasks)

    source_milestones = _select_source_milestones(goal, milestones, now)
    base_priority = map_goal_priority(goal.priority)
    horizon_window = max(0, options.horizon_days - 1)
    spread_divisor = max(1, len(source_milestones) - 1)
    template_spacing = max(1, max(1, options.horizon_days) // max(3, len(source_milestones) * 2))

    suggestions: List[GoalTaskSuggestion] = []
    for milestone_index, milestone in enumerate(source_milestones):
        templates = TEMPLATE_SETS[detect_milestone_intent(milestone, goal)]
        subject = _clean_subject(milestone.title)
        context = _build_context(goal, milestone)
        # Half-up rounding so milestones spread the same way regardless of parity.
        milestone_offset = math.floor(milestone_index / spread_divisor * horizon_window + 0.5)

        for template_index, template in enumerate(templates):
            if len(suggestions) >= max_tasks:
                return suggestions

            title = template.title(subject)
            normalized = normalize_title(title)
            if normalized in seen_titles:
                continue

            if milestone.target_date:
                due_candidate = milestone.target_date + timedelta(days=_target_offset(template.key, options.horizon_days))
            else:
                spread_offset = min(horizon_window, milestone_offset + template_index * template_spacing)
                due_candidate = today + timedelta(days=spread_offset)
            due_date = clamp_date(due_candidate, today, end_date)

            priority = bump_priority(base_priority) if template.key == "first_action" else base_priority

            suggestions.append(
                GoalTaskSuggestion(
                    id=f"{milestone.id}-{template.key}-{milestone_index}-{template_index}",
                    goal_id=goal.id,
                    milestone_id=milestone.id,
                    milestone_title=milestone.title,
                    title=title,
                    description=template.describe(context),
                    due_date=due_date,
                    priority=priority,
                    column=options.column,
                    accepted=True,
                    template=template.key,
                    plan_hash=plan_hash,
                )
            )
            seen_titles.add(normalized)

    return suggestions
