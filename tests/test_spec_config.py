import json

import pytest

from engine.errors import ConfigError
from engine.rules import EngineConfig

RULE = {
    "name": "pod-to-logs",
    "start": {"domain": "mock", "classes": ["pod"]},
    "goal": {"domain": "log", "classes": ["application"]},
    "result": {"query": "log:application:{kubernetes_pod_name={{ name | quote_logql }}}"},
}


def _write(path, data):
    path.write_text(json.dumps(data))
    return path


def test_load_reads_rules_aliases_and_stores(tmp_path):
    f = _write(tmp_path / "crosslink.json", {
        "rules": [RULE],
        "aliases": [{"name": "workloads", "domain": "mock", "classes": ["pod"]}],
        "stores": [{"domain": "log", "loki": "http://loki:3100"}],
    })
    config = EngineConfig.load(str(f))
    assert [r.name for r in config.rules] == ["pod-to-logs"]
    assert config.aliases[0].classes == ["pod"]
    assert config.stores == [{"domain": "log", "loki": "http://loki:3100"}]


def test_includes_are_relative_and_cycle_safe(tmp_path):
    (tmp_path / "rules").mkdir()
    _write(tmp_path / "rules" / "more.json", {"rules": [{**RULE, "name": "second"}], "include": ["../main.json"]})
    main = _write(tmp_path / "main.json", {"rules": [RULE], "include": ["rules/more.json"]})

    config = EngineConfig.load(str(main))
    assert [r.name for r in config.rules] == ["pod-to-logs", "second"]
    assert config.include == []


def test_missing_file_is_a_config_error(tmp_path):
    with pytest.raises(ConfigError):
        EngineConfig.load(str(tmp_path / "absent.json"))


@pytest.mark.parametrize("body", [
    "not json",
    json.dumps({"rules": [{**RULE, "extra": 1}]}),
    json.dumps({"rules": [{"name": "no-goal", "start": RULE["start"], "result": RULE["result"]}]}),
])
def test_invalid_config_is_a_config_error(tmp_path, body):
    f = tmp_path / "bad.json"
    f.write_text(body)
    with pytest.raises(ConfigError):
        EngineConfig.load(str(f))
