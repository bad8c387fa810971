import pytest

import connectors.loki as loki
from connectors.loki import LokiConnector
from datasources.exceptions import DataSourceUnavailable, InvalidQuery, InvalidResponse


def test_entries_flatten_streams():
    payload = {
        "data": {
            "resultType": "streams",
            "result": [
                {"stream": {"app": "shop"}, "values": [["1", "a"], ["2", "b"]]},
                {"stream": {"app": "cart"}, "values": [["3", "c"], ["bad"]]},
            ],
        },
    }
    assert LokiConnector.entries(payload) == [
        {"app": "shop", "timestamp": "1", "body": "a"},
        {"app": "shop", "timestamp": "2", "body": "b"},
        {"app": "cart", "timestamp": "3", "body": "c"},
    ]
    assert LokiConnector.entries({"data": {"result": []}}) == []


def test_entries_reject_matrix_results():
    with pytest.raises(InvalidResponse):
        LokiConnector.entries({"data": {"resultType": "matrix", "result": []}})


def test_tenant_header_only_when_set():
    assert LokiConnector("http://loki:3100")._headers() == {}
    assert LokiConnector("http://loki:3100", tenant_id="t")._headers() == {"X-Scope-OrgID": "t"}
    assert LokiConnector("http://loki:3100/").health_url == "http://loki:3100/ready"


@pytest.mark.asyncio
async def test_query_range_params(monkeypatch):
    seen = {}

    async def fake_fetch(url, params=None, headers=None, timeout=None, **kwargs):
        seen.update(url=url, params=params, headers=headers, timeout=timeout)
        return {"status": "success", "data": {"resultType": "streams", "result": []}}

    monkeypatch.setattr(loki, "fetch_json", fake_fetch)
    conn = LokiConnector("http://loki:3100", tenant_id="t", timeout=7)
    await conn.query_range('{app="x"} | json', start=1, end=2, limit=10)
    assert seen == {
        "url": "http://loki:3100/loki/api/v1/query_range",
        "params": {"query": '{app="x"} | json', "start": 1, "end": 2, "direction": "backward", "limit": 10},
        "headers": {"X-Scope-OrgID": "t"},
        "timeout": 7,
    }


@pytest.mark.asyncio
async def test_query_range_retries_unavailable_store(monkeypatch):
    calls = []

    async def fake_fetch(url, **kwargs):
        calls.append(url)
        if len(calls) < 3:
            raise DataSourceUnavailable("down")
        return {"data": {"result": []}}

    monkeypatch.setattr(loki, "fetch_json", fake_fetch)
    got = await LokiConnector("http://loki:3100").query_range("{}", 1, 2)
    assert got == {"data": {"result": []}}
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_query_range_does_not_retry_bad_queries(monkeypatch):
    calls = []

    async def fake_fetch(url, **kwargs):
        calls.append(url)
        raise InvalidQuery("parse error")

    monkeypatch.setattr(loki, "fetch_json", fake_fetch)
    with pytest.raises(InvalidQuery):
        await LokiConnector("http://loki:3100").query_range("{", 1, 2)
    assert len(calls) == 1
