import os
import sys

import pytest

# ensure workspace root is on sys.path so our application packages can be imported
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from config import settings
from domains.mock import MockDomain, MockStore
from engine.core import EngineBuilder
from engine.rules.rule import FuncRule


@pytest.fixture(autouse=True)
def fast_settings(monkeypatch):
    """No request timeout and no retry sleeps unless a test asks for them."""
    monkeypatch.setattr(settings, "request_timeout", 0.0)
    monkeypatch.setattr(settings, "store_timeout", 5.0)
    monkeypatch.setattr(settings, "store_retry_delay", 0.0)
    monkeypatch.setattr(settings, "max_parallel_queries", 4)
    yield


def chain_rule(domain, name, start, goal):
    """Rule mapping object x to a query that returns the object "<goal>(x)"."""
    s, g = domain.class_(start), domain.class_(goal)
    return FuncRule(
        name,
        s,
        g,
        lambda obj, c: domain.new_query(goal, f"{goal}({obj})"),
    )


@pytest.fixture
def mock_domain():
    return MockDomain()


@pytest.fixture
def chain_engine(mock_domain):
    """Engine with rules a->b->c over the mock domain and an in-memory store."""
    rules = [
        chain_rule(mock_domain, "ab", "a", "b"),
        chain_rule(mock_domain, "bc", "b", "c"),
    ]
    store = MockStore(mock_domain)
    engine = EngineBuilder().domains(mock_domain).stores(store).rules(*rules).build()
    engine.mock_store = store
    return engine


@pytest.fixture
def make_rule(mock_domain):
    return lambda name, start, goal: chain_rule(mock_domain, name, start, goal)
