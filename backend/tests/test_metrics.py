"""Tests for metrics helpers."""
from __future__ import annotations

from typing import Any, Dict

from goalplanner.observability import metrics
from goalplanner.observability import tracing


class _DummyTrace:
    def __init__(self, name: str, metadata: Dict[str, Any]):
        self.name = name
        self.metadata = metadata
        self.ended = False

    def end(self) -> None:
        self.ended = True


class _DummyClient:
    def __init__(self):
        self.traces: list[_DummyTrace] = []

    def trace(self, name: str, metadata: Dict[str, Any] | None = None):
        trace = _DummyTrace(name, metadata or {})
        self.traces.append(trace)
        return trace


def test_log_metric_closes_trace(monkeypatch) -> None:
    dummy_client = _DummyClient()
    monkeypatch.setattr(tracing, "get_opik_client", lambda: dummy_client)

    metrics.log_metric("goal_plan.suggestions", 4, metadata={"provider": "rules"})

    assert dummy_client.traces, "Metric call should record a trace"
    assert dummy_client.traces[0].name == "metric:goal_plan.suggestions"
    assert dummy_client.traces[0].metadata["value"] == 4
    assert dummy_client.traces[0].metadata["provider"] == "rules"
    assert dummy_client.traces[0].ended is True


def test_log_metric_is_noop_without_client(monkeypatch) -> None:
    monkeypatch.setattr(tracing, "get_opik_client", lambda: None)

    metrics.log_metric("goal_plan.latency_ms", 12.5)


def test_plan_route_records_count_and_latency(monkeypatch) -> None:
    from fastapi.testclient import TestClient

    from goalplanner.api.routes import goal_plan as goal_plan_route
    from goalplanner.main import app

    async def no_llm(*args, **kwargs):
        return None

    dummy_client = _DummyClient()
    monkeypatch.setattr(tracing, "get_opik_client", lambda: dummy_client)
    monkeypatch.setattr(goal_plan_route, "generate_goal_task_suggestions_from_llm", no_llm)

    response = TestClient(app).post(
        "/goals/plan",
        json={
            "goal": {"id": "goal-9", "title": "Run a 10K race", "start_date": "2026-02-01", "created_at": "2026-02-01T08:00:00"},
            "options": {"max_tasks": 2},
        },
    )

    metric_traces = {trace.name: trace for trace in dummy_client.traces if trace.name.startswith("metric:")}
    assert set(metric_traces) == {"metric:goal_plan.suggestions", "metric:goal_plan.latency_ms"}
    assert metric_traces["metric:goal_plan.suggestions"].metadata["value"] == len(response.json()["suggestions"]) == 2
    assert metric_traces["metric:goal_plan.suggestions"].metadata["source"] == "rules"
    assert metric_traces["metric:goal_plan.latency_ms"].metadata["value"] >= 0
    assert all(trace.ended for trace in metric_traces.values())
