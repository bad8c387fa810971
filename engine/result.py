"""
Result sinks for store queries.

``SetResult`` deduplicates using the class identity, ``ListResult`` keeps every
object in arrival order. ``CountResult`` counts what one query contributed to a
shared sink.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, Iterator, List

from engine.domain import Appender, Class, IdentifiableClass


def _key(ident: Any) -> Any:
    try:
        hash(ident)
        return ident
    except TypeError:
        return json.dumps(ident, sort_keys=True, default=str)


class ListResult(Appender):
    def __init__(self) -> None:
        self._objects: List[Any] = []

    def append(self, *objects: Any) -> None:
        self._objects.extend(objects)

    def list(self) -> List[Any]:
        return list(self._objects)

    def __len__(self) -> int:
        return len(self._objects)

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._objects))


class SetResult(ListResult):
    def __init__(self, id_func: Callable[[Any], Any]) -> None:
        super().__init__()
        self._id = id_func
        self._seen: Dict[Any, None] = {}

    def append(self, *objects: Any) -> None:
        for obj in objects:
            k = _key(self._id(obj))
            if k in self._seen:
                continue
            self._seen[k] = None
            self._objects.append(obj)


def new_result(class_: Class) -> ListResult:
    if isinstance(class_, IdentifiableClass):
        return SetResult(class_.id)
    return ListResult()


class CountResult(Appender):
    """Forwards to ``sink`` and counts the objects delivered through it."""

    def __init__(self, sink: Appender) -> None:
        self.sink = sink
        self.count = 0

    def append(self, *objects: Any) -> None:
        self.count += len(objects)
        self.sink.append(*objects)
