from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Dict, List

from fastapi.testclient import TestClient

from goalplanner.api.routes import goal_plan as goal_plan_route
from goalplanner.api.schemas.goal import GoalTaskSuggestion
from goalplanner.services.llm_planner import LLMPlanResult


def _get_client() -> TestClient:
    from goalplanner.main import app

    return TestClient(app)


def _payload(**overrides) -> Dict[str, Any]:
    today = date.today()
    payload: Dict[str, Any] = {
        "goal": {
            "id": "goal-1",
            "title": "Launch portfolio website",
            "start_date": today.isoformat(),
            "priority": "high",
            "created_at": f"{today.isoformat()}T08:00:00",
        },
        "milestones": [
            {
                "id": "ms-1",
                "goal_id": "goal-1",
                "title": "Design landing page",
                "target_date": (today + timedelta(days=5)).isoformat(),
                "created_at": f"{today.isoformat()}T08:00:00",
            }
        ],
        "options": {"board_id": "board-1", "column": "todo", "horizon_days": 14, "max_tasks": 6},
        "existing_task_titles": [],
    }
    payload.update(overrides)
    return payload


def _stub_llm(monkeypatch, result: LLMPlanResult | None = None) -> List[Dict[str, Any]]:
    calls: List[Dict[str, Any]] = []

    async def fake_llm(goal, milestones, options, existing_task_titles=(), preference=None, **kwargs):
        calls.append({"goal": goal, "options": options, "preference": preference})
        return result

    monkeypatch.setattr(goal_plan_route, "generate_goal_task_suggestions_from_llm", fake_llm)
    return calls


def test_rules_fallback_when_llm_unavailable(monkeypatch) -> None:
    _stub_llm(monkeypatch, None)
    client = _get_client()

    response = client.post("/goals/plan", json=_payload(), headers={"X-Request-Id": "plan-req-1"})

    assert response.status_code == 200
    body = response.json()
    assert body["source"] == "rules"
    assert body["provider"] == "rules"
    assert body["request_id"] == "plan-req-1"
    assert body["plan_hash"].startswith("plan_")
    assert 0 < len(body["suggestions"]) <= 6
    today = date.today()
    for suggestion in body["suggestions"]:
        due = date.fromisoformat(suggestion["due_date"])
        assert today <= due <= today + timedelta(days=13)
        assert suggestion["plan_hash"] == body["plan_hash"]
    assert response.headers["X-Request-Id"] == "plan-req-1"


def test_llm_suggestions_are_returned_when_available(monkeypatch) -> None:
    suggestion = GoalTaskSuggestion(
        id="llm-0-sketch",
        goal_id="goal-1",
        title="Sketch hero section",
        due_date=date.today(),
        priority="high",
        column="todo",
        template="scope",
        plan_hash="plan_abc",
    )
    _stub_llm(monkeypatch, LLMPlanResult(suggestions=[suggestion], provider="ollama"))
    client = _get_client()

    response = client.post("/goals/plan", json=_payload())

    body = response.json()
    assert body["source"] == "llm"
    assert body["provider"] == "ollama"
    assert [item["title"] for item in body["suggestions"]] == ["Sketch hero section"]


def test_out_of_range_options_are_clamped(monkeypatch) -> None:
    calls = _stub_llm(monkeypatch, None)
    client = _get_client()

    response = client.post(
        "/goals/plan",
        json=_payload(options={"column": "weird", "horizon_days": 500, "max_tasks": 0}),
    )

    assert response.status_code == 200
    options = calls[0]["options"]
    assert (options.column, options.horizon_days, options.max_tasks) == ("todo", 60, 1)
    assert len(response.json()["suggestions"]) == 1


def test_oversized_option_numbers_fall_back_to_defaults(monkeypatch) -> None:
    calls = _stub_llm(monkeypatch, None)
    client = _get_client()

    response = client.post(
        "/goals/plan",
        json=_payload(options={"horizon_days": 10**400, "max_tasks": -(10**400)}),
    )

    assert response.status_code == 200
    options = calls[0]["options"]
    assert (options.horizon_days, options.max_tasks) == (14, 6)
    assert response.json()["source"] == "rules"


def test_malformed_base_urls_still_plan_with_rules(monkeypatch) -> None:
    calls = _stub_llm(monkeypatch, None)
    client = _get_client()

    for body in (
        _payload(ai_settings={"provider": "ollama", "baseUrl": "http://[::1"}),
        _payload(app_settings={"aiProvider": "ollama", "aiApiBaseUrl": "https://[bad"}),
    ):
        response = client.post("/goals/plan", json=body)

        assert response.status_code == 200
        assert response.json()["source"] == "rules"
        assert response.json()["suggestions"]

    assert [call["preference"].base_url for call in calls] == [None, None]
    assert [call["preference"].provider for call in calls] == ["ollama", "ollama"]


def test_missing_options_use_defaults(monkeypatch) -> None:
    calls = _stub_llm(monkeypatch, None)
    client = _get_client()

    client.post("/goals/plan", json=_payload(options=None))

    options = calls[0]["options"]
    assert (options.board_id, options.column, options.horizon_days, options.max_tasks) == ("", "todo", 14, 6)


def test_request_overrides_merge_over_stored_settings(monkeypatch) -> None:
    calls = _stub_llm(monkeypatch, None)
    client = _get_client()

    client.post(
        "/goals/plan",
        json=_payload(
            app_settings={"aiProvider": "ollama", "aiModel": "llama3.1", "aiApiBaseUrl": "http://gpu-box:11434"},
            ai_settings={"model": "qwen2.5"},
        ),
    )

    preference = calls[0]["preference"]
    assert preference.provider == "ollama"
    assert preference.model == "qwen2.5"
    assert preference.base_url == "http://gpu-box:11434"


def test_existing_titles_are_not_suggested_again(monkeypatch) -> None:
    _stub_llm(monkeypatch, None)
    client = _get_client()
    first = client.post("/goals/plan", json=_payload()).json()
    taken = first["suggestions"][0]["title"]

    second = client.post("/goals/plan", json=_payload(existing_task_titles=[taken])).json()

    assert taken not in [item["title"] for item in second["suggestions"]]


def test_missing_goal_is_rejected() -> None:
    client = _get_client()

    response = client.post("/goals/plan", json={"milestones": []})

    assert response.status_code == 422
