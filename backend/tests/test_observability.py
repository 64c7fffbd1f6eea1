"""Tests ensuring observability wiring is safe by default."""
from __future__ import annotations

from typing import Any, Dict, List

import pytest

from goalplanner.core.config import Settings
from goalplanner.core.context import request_id_ctx_var
from goalplanner.observability import client as client_module
from goalplanner.observability import tracing


class _DummyTrace:
    def __init__(self, name: str, metadata: Dict[str, Any] | None):
        self.name = name
        self.metadata = metadata or {}
        self.error_info: Dict[str, Any] | None = None
        self.ended = False

    def update(self, error_info=None, **kwargs):
        self.error_info = error_info

    def end(self):
        self.ended = True


class _DummyOpik:
    def __init__(self):
        self.traces: List[_DummyTrace] = []

    def trace(self, name: str, metadata: Dict[str, Any] | None = None):
        trace = _DummyTrace(name, metadata)
        self.traces.append(trace)
        return trace


@pytest.fixture()
def fresh_client():
    client_module.reset_opik_client()
    yield
    client_module.reset_opik_client()


def test_init_opik_disabled_returns_none(monkeypatch, fresh_client) -> None:
    monkeypatch.setattr(client_module, "get_settings", lambda: Settings(_env_file=None, opik_enabled=False))

    assert client_module.init_opik() is None
    assert client_module.get_opik_client() is None


def test_init_opik_without_api_key_stays_disabled(monkeypatch, fresh_client) -> None:
    monkeypatch.setattr(
        client_module,
        "get_settings",
        lambda: Settings(_env_file=None, opik_enabled=True, opik_api_key=None),
    )

    assert client_module.init_opik() is None


def test_trace_is_noop_when_disabled(monkeypatch) -> None:
    monkeypatch.setattr(tracing, "get_opik_client", lambda: None)

    with tracing.trace("goal_plan.request", metadata={"goal_id": "g1"}) as span:
        assert span is None


def test_trace_attaches_request_id_and_ends(monkeypatch) -> None:
    dummy = _DummyOpik()
    monkeypatch.setattr(tracing, "get_opik_client", lambda: dummy)
    token = request_id_ctx_var.set("req-42")
    try:
        with tracing.trace("goal_plan.llm", metadata={"provider": "ollama"}):
            pass
    finally:
        request_id_ctx_var.reset(token)

    assert dummy.traces[0].metadata == {"provider": "ollama", "request_id": "req-42"}
    assert dummy.traces[0].ended is True


def test_trace_records_truncated_error_and_reraises(monkeypatch) -> None:
    dummy = _DummyOpik()
    monkeypatch.setattr(tracing, "get_opik_client", lambda: dummy)

    with pytest.raises(RuntimeError):
        with tracing.trace("ai.complete"):
            raise RuntimeError("x" * 1000)

    assert dummy.traces[0].error_info == {"message": "x" * 300}
    assert dummy.traces[0].ended is True
