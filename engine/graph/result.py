"""
Per-request result overlay on a RuleGraph.

Nodes collect the objects found for their class and the count contributed by
each query; edges collect per-query counts for each rule. Nothing here writes
back into the shared topology.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from engine.domain import Class, Query
from engine.errors import CorrelationError
from engine.graph.graph import RuleGraph
from engine.result import ListResult, new_result
from engine.rules.rule import Rule


@dataclass(frozen=True)
class QueryCount:
    query: Query
    count: int


class QueryCounts:
    """Query counts keyed by the query string, first insertion order preserved."""

    def __init__(self) -> None:
        self._counts: Dict[str, QueryCount] = {}

    def set(self, query: Query, count: int) -> None:
        self._counts[str(query)] = QueryCount(query, count)

    def has(self, query: Query) -> bool:
        return str(query) in self._counts

    def get(self, query: Query) -> Optional[QueryCount]:
        return self._counts.get(str(query))

    def items(self) -> List[QueryCount]:
        return list(self._counts.values())

    def total(self) -> int:
        return sum(qc.count for qc in self._counts.values())

    def as_dict(self) -> Dict[str, int]:
        return {k: v.count for k, v in self._counts.items()}

    def __len__(self) -> int:
        return len(self._counts)


@dataclass
class Node:
    class_: Class
    result: ListResult
    queries: QueryCounts = field(default_factory=QueryCounts)

    @property
    def count(self) -> int:
        return len(self.result)


@dataclass
class Line:
    rule: Rule
    queries: QueryCounts = field(default_factory=QueryCounts)


class ResultGraph:
    def __init__(self, topology: RuleGraph, start: Optional[Class] = None) -> None:
        self.topology = topology
        self.start = start
        self._nodes: Dict[Class, Node] = {}
        self._lines: Dict[Rule, Line] = {}
        # PartialResultError or StoreErrors when any store call failed
        self.error: Optional[CorrelationError] = None
        for c in topology.classes():
            self.node(c)
        if start is not None:
            self.node(start)

    def node(self, c: Class) -> Node:
        n = self._nodes.get(c)
        if n is None:
            n = Node(c, new_result(c))
            self._nodes[c] = n
        return n

    def line(self, rule: Rule) -> Line:
        ln = self._lines.get(rule)
        if ln is None:
            ln = Line(rule)
            self._lines[rule] = ln
        return ln

    def nodes(self) -> List[Node]:
        return list(self._nodes.values())

    def lines(self) -> List[Line]:
        return [self.line(r) for r in self.topology.rules()]

    def edges(self) -> Dict[tuple[Class, Class], List[Line]]:
        """Lines grouped by (start, goal) class pair."""
        out: Dict[tuple[Class, Class], List[Line]] = {}
        for ln in self.lines():
            out.setdefault((ln.rule.start, ln.rule.goal), []).append(ln)
        return out

    @property
    def errors(self) -> List[Exception]:
        if self.error is None:
            return []
        return list(getattr(self.error, "errors", [self.error]))

    def pruned(self) -> "ResultGraph":
        """Copy keeping the start node, nodes with objects, and lines whose queries found something."""
        keep = [
            ln.rule for ln in self.lines()
            if ln.queries.total() > 0 and self.node(ln.rule.goal).count > 0
        ]
        classes = [c for c, n in self._nodes.items() if n.count > 0 or c == self.start]
        g = ResultGraph(self.topology.subgraph(keep, classes), self.start)
        g._nodes = {c: n for c, n in self._nodes.items() if g.topology.has_class(c)}
        g._lines = {r: self._lines[r] for r in keep if r in self._lines}
        g.error = self.error
        return g

    def signature(self) -> tuple:
        """Order independent summary of nodes, lines and counts, for comparing results."""
        nodes = frozenset((str(n.class_), n.count, frozenset(n.queries.as_dict().items())) for n in self.nodes())
        lines = frozenset((str(ln.rule), frozenset(ln.queries.as_dict().items())) for ln in self.lines())
        return nodes, lines

    def __repr__(self) -> str:
        return f"<ResultGraph nodes={len(self._nodes)} lines={len(self.topology.rules())}>"

