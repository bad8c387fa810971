"""
Traversal of a rule subgraph with live data.

Work proceeds in rounds. Each round runs the queries waiting at each node
concurrently, then applies every outgoing rule to the objects that arrived at
each node since the previous round. The traversal ends when a round produces
no new queries. A query runs at most once per node, and nodes deduplicate
their objects, so cyclic rule graphs terminate.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from config import settings
from engine.constraint import Constraint
from engine.domain import Class, Query
from engine.errors import ErrorCollector, RuleApplyError, RuleNotApplicable, ValidationError
from engine.graph.graph import RuleGraph
from engine.graph.result import ResultGraph
from engine.rules.rule import Rule

if TYPE_CHECKING:
    from engine.core import Engine

log = logging.getLogger(__name__)


@dataclass
class Start:
    class_: Class
    objects: List[Any] = field(default_factory=list)
    queries: List[Query] = field(default_factory=list)
    constraint: Optional[Constraint] = None

    def validate(self) -> None:
        for q in self.queries:
            if q.class_ != self.class_:
                raise ValidationError(f"start query {q} is not of class {self.class_}")


@dataclass
class _Incoming:
    query: Query
    constraint: Optional[Constraint]
    rules: List[Rule] = field(default_factory=list)


# goal class -> query string -> incoming query
Inbox = Dict[Class, Dict[str, _Incoming]]


class Traverser:
    def __init__(self, engine: "Engine", graph: RuleGraph, start: Start) -> None:
        start.validate()
        self.engine = engine
        self.start = start
        self.constraint = start.constraint
        self.result = ResultGraph(graph, start.class_)
        self.errors = ErrorCollector()
        self._applied: Dict[Class, int] = {}
        self.rounds = 0

    async def run(self) -> ResultGraph:
        self.result.node(self.start.class_).result.append(*self.start.objects)
        inbox: Inbox = {}
        for q in self.start.queries:
            inbox.setdefault(self.start.class_, {})[str(q)] = _Incoming(q, self.constraint)

        while True:
            await self._receive(inbox)
            inbox = self._send()
            if not inbox:
                break
            self.rounds += 1

        self.result.error = self.errors.error()
        log.debug(
            "traversal from %s finished after %d rounds, %d errors",
            self.start.class_, self.rounds, len(self.errors.errors),
        )
        return self.result

    async def _receive(self, inbox: Inbox) -> None:
        todo: List[Tuple[Class, _Incoming]] = []
        for c, incoming in inbox.items():
            node = self.result.node(c)
            for item in incoming.values():
                done = node.queries.get(item.query)
                if done is not None:
                    for rule in item.rules:
                        self.result.line(rule).queries.set(item.query, done.count)
                    continue
                todo.append((c, item))
        if not todo:
            return

        sem = asyncio.Semaphore(max(1, int(settings.max_parallel_queries)))

        async def _get(c: Class, item: _Incoming) -> int:
            async with sem:
                return await self.engine.get(item.query, item.constraint, self.result.node(c).result)

        raw = await asyncio.gather(*[_get(c, item) for c, item in todo], return_exceptions=True)
        for (c, item), r in zip(todo, raw):
            if isinstance(r, BaseException) and not isinstance(r, Exception):
                raise r
            if isinstance(r, Exception):
                log.warning("get query=%s failed: %s", item.query, r)
                self.errors.add(r, store=True)
                count = 0
            else:
                self.errors.success()
                count = r
            # failed and empty queries are recorded too, so they are not retried
            self.result.node(c).queries.set(item.query, count)
            for rule in item.rules:
                self.result.line(rule).queries.set(item.query, count)

    def _send(self) -> Inbox:
        outbox: Inbox = {}
        topology = self.result.topology
        for node in self.result.nodes():
            objects = node.result.list()
            fresh = objects[self._applied.get(node.class_, 0):]
            self._applied[node.class_] = len(objects)
            if not fresh:
                continue
            for rule in topology.rules_from(node.class_):
                for obj in fresh:
                    try:
                        q = rule.apply(obj, self.constraint)
                        c = rule.constraint(obj, self.constraint)
                    except RuleNotApplicable as exc:
                        log.debug("%s", exc)
                        continue
                    except RuleApplyError as exc:
                        log.warning("%s", exc)
                        self.errors.add(exc)
                        continue
                    item = outbox.setdefault(rule.goal, {}).setdefault(str(q), _Incoming(q, c))
                    if rule not in item.rules:
                        item.rules.append(rule)
        return outbox
