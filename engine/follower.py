"""
Follower: runs an explicit path of rules against live stores.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Tuple

from config import settings
from engine.constraint import Constraint
from engine.domain import Query
from engine.errors import CorrelationError, ErrorCollector, RuleApplyError, RuleNotApplicable
from engine.graph.path import Path
from engine.result import ListResult, new_result
from engine.rules.rule import Rule

if TYPE_CHECKING:
    from engine.core import Engine

log = logging.getLogger(__name__)

# query string -> (query, constraint for that query)
Pending = Dict[str, Tuple[Query, Optional[Constraint]]]


@dataclass
class FollowResult:
    queries: List[Query] = field(default_factory=list)
    # objects reached at the start of the last rule
    objects: List[Any] = field(default_factory=list)
    error: Optional[CorrelationError] = None

    @property
    def errors(self) -> List[Exception]:
        if self.error is None:
            return []
        return list(getattr(self.error, "errors", [self.error]))


def apply_rule(
    rule: Rule,
    objects: Iterable[Any],
    constraint: Optional[Constraint],
    errors: ErrorCollector,
) -> Pending:
    """Apply rule to each object, returning distinct queries in first-seen order."""
    out: Pending = {}
    for obj in objects:
        try:
            q = rule.apply(obj, constraint)
            c = rule.constraint(obj, constraint)
        except RuleNotApplicable as exc:
            log.debug("%s", exc)
            continue
        except RuleApplyError as exc:
            log.warning("%s", exc)
            errors.add(exc)
            continue
        out.setdefault(str(q), (q, c))
    return out


async def run_queries(
    engine: "Engine",
    pending: Pending,
    sink: ListResult,
    errors: ErrorCollector,
) -> Dict[str, int]:
    """Run pending queries concurrently into sink, return the object count per query."""
    sem = asyncio.Semaphore(max(1, int(settings.max_parallel_queries)))
    items = list(pending.items())

    async def _get(q: Query, c: Optional[Constraint]) -> int:
        async with sem:
            return await engine.get(q, c, sink)

    raw = await asyncio.gather(*[_get(q, c) for _, (q, c) in items], return_exceptions=True)
    counts: Dict[str, int] = {}
    for (key, (q, _)), r in zip(items, raw):
        if isinstance(r, BaseException) and not isinstance(r, Exception):
            raise r
        if isinstance(r, Exception):
            log.warning("get query=%s failed: %s", q, r)
            errors.add(r, store=True)
            counts[key] = 0
            continue
        errors.success()
        counts[key] = r
    return counts


class Follower:
    def __init__(self, engine: "Engine", constraint: Optional[Constraint] = None) -> None:
        self.engine = engine
        self.constraint = constraint
        # progress so far, still usable when the request is cut short
        self.result = FollowResult()

    def validate(self, path: Path) -> None:
        """Check the chain and that every intermediate goal has a store, before any I/O."""
        path.validate()
        for rule in path.rules[:-1]:
            self.engine.store(rule.goal.domain.name)

    async def follow(self, objects: Iterable[Any], path: Path) -> FollowResult:
        """Return the distinct queries produced by the last rule of path."""
        self.validate(path)
        current = new_result(path.start)
        current.append(*objects)
        errors = ErrorCollector()
        self.result = FollowResult(objects=current.list())
        if not path.rules:
            return self.result

        for rule in path.rules[:-1]:
            pending = apply_rule(rule, current.list(), self.constraint, errors)
            log.debug("follow %s: %d objects -> %d queries", rule, len(current), len(pending))
            current = new_result(rule.goal)
            await run_queries(self.engine, pending, current, errors)
            self.result.objects = current.list()
            self.result.error = errors.error()

        pending = apply_rule(path.rules[-1], current.list(), self.constraint, errors)
        self.result.queries = [q for q, _ in pending.values()]
        self.result.error = errors.error()
        return self.result
