"""
The shipped demo configuration loads and correlates end to end.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

import main as app_main
from engine import Constraint, Start

ROOT = Path(__file__).resolve().parent.parent


@pytest.fixture
def demo_engine(monkeypatch):
    monkeypatch.chdir(ROOT)
    return app_main.load_engine("configs/demo.json")


def test_demo_rules_are_expanded(demo_engine):
    assert {r.start.name for r in demo_engine.rule("workload-pods")} == {"deployment", "statefulset"}
    assert {r.goal.name for r in demo_engine.rule("pod-logs")} == {"application", "infrastructure", "audit"}


def test_pod_log_rule_narrows_window_to_pod_start(demo_engine):
    rule = next(r for r in demo_engine.rule("pod-logs") if r.goal.name == "application")
    pod = {"name": "cart-1", "namespace": "shop", "started": "2024-05-01T12:00:00Z"}
    q = rule.apply(pod)
    assert str(q) == 'log:application:{kubernetes_namespace_name="shop",kubernetes_pod_name="cart-1"}'
    c = rule.constraint(pod, Constraint())
    assert c.start == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    assert rule.constraint({"name": "cart-2", "namespace": "shop"}, None) is None


@pytest.mark.asyncio
async def test_deployment_to_events(demo_engine):
    e = demo_engine
    start = Start(e.class_("mock:deployment"), queries=[e.query("mock:deployment:shop")])
    g = await e.goals(start, [e.class_("mock:event")])

    counts = {str(n.class_): n.count for n in g.pruned().nodes()}
    assert counts == {"mock:deployment": 1, "mock:pod": 2, "mock:event": 1}
    assert g.node(e.class_("mock:event")).queries.as_dict() == {
        "mock:event:shop/cart-1": 1,
        "mock:event:shop/cart-2": 0,
    }
    assert g.error is None


@pytest.mark.asyncio
async def test_neighbours_report_missing_log_store(demo_engine):
    e = demo_engine
    start = Start(e.class_("mock:deployment"), queries=[e.query("mock:deployment:shop")])
    g = await e.neighbours(start, 2)
    assert g.node(e.class_("mock:event")).count == 1
    assert g.errors
    assert all("log" in str(err) for err in g.errors)
