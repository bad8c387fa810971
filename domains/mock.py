"""
Mock domain for tests and demos.

Classes are created on first lookup. A query whose data is a JSON list carries
its own results, e.g. ``mock:a:[1, 2]``. A MockStore can also hold canned
results keyed by query string, optionally loaded from a JSON file.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from config import STORE_KEY_MOCK
from engine.constraint import Constraint
from engine.domain import (
    Appender,
    BaseDomain,
    Class,
    IdentifiableClass,
    PreviewableClass,
    Query,
    SimpleQuery,
    Store,
    join_name,
)
from engine.errors import ConfigError


class MockClass(Class, IdentifiableClass, PreviewableClass):
    def id(self, obj: Any) -> Any:
        return obj

    def preview(self, obj: Any) -> str:
        return str(obj)


class MockQuery(SimpleQuery):
    @property
    def results(self) -> List[Any]:
        try:
            value = json.loads(self.data)
        except ValueError:
            return []
        return value if isinstance(value, list) else []


class MockDomain(BaseDomain):
    class_type = MockClass

    def __init__(self, name: str = "mock", class_names: Iterable[str] = ()) -> None:
        super().__init__(name, class_names, description="In-memory domain for testing.")

    def class_(self, name: str) -> Optional[Class]:
        if not name:
            return None
        c = self._classes.get(name)
        if c is None:
            c = self._classes[name] = self.class_type(self, name)
        return c

    def parse_query(self, class_: Class, data: str) -> Query:
        return MockQuery(class_, data.strip())

    def new_query(self, class_name: str, *results: Any) -> MockQuery:
        """Query carrying its own results."""
        c = self.class_(class_name)
        return MockQuery(c, json.dumps(list(results)))

    def store(self, config: Mapping[str, Any]) -> Store:
        path = config.get(STORE_KEY_MOCK)
        store = MockStore(self)
        if path:
            store.load(str(path))
        return store


class MockStore(Store):
    def __init__(self, domain: MockDomain, data: Optional[Mapping[str, List[Any]]] = None) -> None:
        self.domain = domain
        self.data: Dict[str, List[Any]] = {k: list(v) for k, v in (data or {}).items()}
        self.calls: List[str] = []

    def add(self, query: Any, *objects: Any) -> None:
        key = query if isinstance(query, str) else str(query)
        self.data.setdefault(key, []).extend(objects)

    def load(self, path: str) -> None:
        try:
            raw = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise ConfigError(f"cannot load mock data {path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise ConfigError(f"mock data {path} must map query strings to lists of objects")
        for key, objects in raw.items():
            # short keys "class:data" are taken to be in this domain
            if key.count(":") < 2 or not key.startswith(self.domain.name + ":"):
                key = join_name(self.domain.name, key)
            self.add(key, *(objects if isinstance(objects, list) else [objects]))

    async def get(self, query: Query, constraint: Optional[Constraint], result: Appender) -> None:
        self.calls.append(str(query))
        objects = self.data.get(str(query))
        if objects is None:
            objects = query.results if isinstance(query, MockQuery) else []
        if constraint is not None and constraint.limit is not None:
            objects = objects[: constraint.limit]
        result.append(*objects)
