"""
Startup behavior tests for the application entry point.
"""

from __future__ import annotations

import json

import pytest
from fastapi import FastAPI

import main as app_main
from config import settings
from engine.errors import ConfigError


def test_load_engine_without_config_has_builtin_domains_and_no_rules(monkeypatch):
    monkeypatch.setattr(settings, "config_file", "")
    engine = app_main.load_engine()
    assert [d.name for d in engine.domains()] == ["log", "mock"]
    assert engine.rules() == []


def test_load_engine_from_config_file(tmp_path):
    cfg = tmp_path / "crosslink.json"
    cfg.write_text(json.dumps({
        "rules": [{
            "name": "pod-logs",
            "start": {"domain": "mock", "classes": ["pod"]},
            "goal": {"domain": "log"},
            "result": {"query": "log:{{ log_type_for_namespace(namespace) }}:{kubernetes_namespace_name={{ namespace | quote_logql }}}"},
        }],
        "stores": [{"domain": "log", "loki": "http://loki:3100"}, {"domain": "mock"}],
    }))
    engine = app_main.load_engine(str(cfg))
    assert len(engine.rule("pod-logs")) == 3
    assert len(engine.store("log")) == 1
    assert engine.store_configs("log") == [{"domain": "log", "loki": "http://loki:3100"}]


def test_load_engine_rejects_bad_config(tmp_path):
    cfg = tmp_path / "bad.json"
    cfg.write_text(json.dumps({"rules": [], "stores": [{"domain": "metric"}]}))
    with pytest.raises(ConfigError):
        app_main.load_engine(str(cfg))


@pytest.mark.asyncio
async def test_lifespan_installs_and_clears_engine(monkeypatch):
    monkeypatch.setattr(settings, "config_file", "")
    app = FastAPI()
    async with app_main.lifespan(app):
        assert app.state.engine is not None
    assert app.state.engine is None
