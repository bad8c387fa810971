import pytest

from config import settings
from datasources.exceptions import DataSourceUnavailable, InvalidQuery
from datasources.retry import retry


@pytest.mark.asyncio
async def test_retry_async_success_after_failure():
    calls = []

    @retry(attempts=3, delay=0, backoff=1, exceptions=(ValueError,))
    async def flaky(x):
        calls.append(x)
        if len(calls) < 2:
            raise ValueError("temporary")
        return x * 2

    result = await flaky(5)
    assert result == 10
    assert len(calls) == 2


def test_retry_sync_success_after_failure():
    calls = []

    @retry(attempts=4, delay=0, backoff=1, exceptions=(ValueError,))
    def flaky(x):
        calls.append(x)
        if len(calls) < 3:
            raise ValueError("oops")
        return x + 1

    result = flaky(7)
    assert result == 8
    assert len(calls) == 3


def test_retry_exhausted():
    calls = []

    @retry(attempts=2, delay=0, backoff=1, exceptions=(ValueError,))
    def always_fail():
        calls.append(1)
        raise ValueError("nope")

    with pytest.raises(ValueError):
        always_fail()
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_other_errors_are_not_retried():
    calls = []

    @retry(attempts=5, delay=0, exceptions=(DataSourceUnavailable,))
    async def bad_query():
        calls.append(1)
        raise InvalidQuery("parse error")

    with pytest.raises(InvalidQuery):
        await bad_query()
    assert calls == [1]


@pytest.mark.asyncio
async def test_attempts_default_to_settings(monkeypatch):
    monkeypatch.setattr(settings, "store_retry_attempts", 4)
    calls = []

    @retry(exceptions=(DataSourceUnavailable,))
    async def down():
        calls.append(1)
        raise DataSourceUnavailable("down")

    with pytest.raises(DataSourceUnavailable):
        await down()
    assert len(calls) == 4
