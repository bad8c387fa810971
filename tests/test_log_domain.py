from datetime import datetime, timezone

import pytest

from domains import all_domains
from domains.log import (
    LogDomain,
    LokiStore,
    fix_label,
    log_type_for_namespace,
    to_record,
    with_json_stage,
)
from engine.constraint import Constraint
from engine.errors import ConfigError, InvalidNameError, ValidationError
from engine.result import ListResult


class DummyConnector:
    def __init__(self, payload):
        self.payload = payload
        self.calls = []

    async def query_range(self, query, start, end, limit=None, direction="backward"):
        self.calls.append({"query": query, "start": start, "end": end, "limit": limit})
        return self.payload


STREAMS = {
    "status": "success",
    "data": {
        "resultType": "streams",
        "result": [
            {
                "stream": {"kubernetes_namespace_name": "shop", "log_type": "application"},
                "values": [["1714564800000000000", "started"], ["1714564801000000000", "ready"]],
            },
        ],
    },
}


def test_classes_are_log_types():
    d = LogDomain()
    assert [c.name for c in d.classes()] == ["application", "infrastructure", "audit"]
    assert d.class_("debug") is None


def test_query_class_from_log_type_matcher():
    d = LogDomain()
    assert d.query('log::{log_type="audit"}').class_.name == "audit"
    assert d.query('log::{log_type=~"infra.*"}').class_.name == "infrastructure"
    assert d.query('log::{app="x"}').class_.name == "application"
    assert d.query('log:audit:{app="x"}').class_.name == "audit"


def test_query_errors():
    d = LogDomain()
    with pytest.raises(ValidationError):
        d.query("log:application:app=x")
    with pytest.raises(InvalidNameError):
        d.query('log:debug:{app="x"}')
    with pytest.raises(InvalidNameError):
        d.query('mock:a:{app="x"}')


def test_helpers():
    assert fix_label("kubernetes.pod-name") == "kubernetes_pod_name"
    assert fix_label("9lives") == "_lives"
    assert log_type_for_namespace("openshift-dns") == "infrastructure"
    assert log_type_for_namespace("kube-system") == "infrastructure"
    assert log_type_for_namespace("default") == "infrastructure"
    assert log_type_for_namespace("shop") == "application"
    assert with_json_stage('{app="x"}') == '{app="x"} | json'
    assert with_json_stage('{app="x"} | json | level="error"') == '{app="x"} | json | level="error"'


def test_to_record_normalises_viaq_and_parser_errors():
    rec = to_record({
        "message": "hello",
        "@timestamp": "2024-05-01T12:00:00Z",
        "body": "raw",
        "timestamp": "1714564800000000000",
        "__error__": "JSONParserErr",
        "__error_details__": "bad",
    })
    assert rec["body"] == "hello"
    assert rec["observed_timestamp"] == "1714564800000000000"
    assert "__error__" not in rec
    assert "__error_details__" not in rec

    other = to_record({"body": "x", "__error__": "Other"})
    assert other["__error__"] == "Other"


def test_store_config_builds_loki_store():
    store = LogDomain().store({"domain": "log", "loki": "http://loki:3100/", "tenant": "t1", "timeout": 5})
    assert isinstance(store, LokiStore)
    assert store.connector.base_url == "http://loki:3100"
    assert store.connector._headers() == {"X-Scope-OrgID": "t1"}
    assert store.connector.timeout == 5.0
    with pytest.raises(ConfigError):
        LogDomain().store({"domain": "log"})


@pytest.mark.asyncio
async def test_loki_store_runs_query_in_window():
    d = LogDomain()
    conn = DummyConnector(STREAMS)
    store = LokiStore(d, conn)
    c = Constraint(
        start=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
        end=datetime(2024, 5, 1, 12, 5, tzinfo=timezone.utc),
        limit=50,
    )
    out = ListResult()
    await store.get(d.query('log:application:{kubernetes_namespace_name="shop"}'), c, out)

    assert conn.calls == [{
        "query": '{kubernetes_namespace_name="shop"} | json',
        "start": 1714564800000000000,
        "end": 1714565100000000000,
        "limit": 50,
    }]
    assert [r["body"] for r in out.list()] == ["started", "ready"]
    assert out.list()[0]["kubernetes_namespace_name"] == "shop"
    assert d.class_("application").preview(out.list()[0]) == "started"


def test_all_domains_registers_log_and_mock():
    assert [d.name for d in all_domains()] == ["log", "mock"]


def test_console_link_round_trip():
    d = LogDomain()
    q = d.query('log:audit:{kubernetes_namespace_name="shop"}')
    url = d.query_to_console(q)
    assert url.startswith("/monitoring/logs?")
    assert "tenant=audit" in url
    assert d.console_to_query(url) == q


def test_console_link_from_full_url():
    d = LogDomain()
    q = d.console_to_query("https://console.example.com/monitoring/logs?q=%7Bapp%3D%22x%22%7D&tenant=infrastructure")
    assert str(q) == 'log:infrastructure:{app="x"}'


@pytest.mark.parametrize("url", [
    "/monitoring/logs?q=%7Bapp%3D%22x%22%7D&tenant=debug",
    "/monitoring/metrics?q=%7Bapp%3D%22x%22%7D&tenant=audit",
    "/monitoring/logs?q=app&tenant=audit",
])
def test_console_link_errors(url):
    with pytest.raises(ValidationError):
        LogDomain().console_to_query(url)
