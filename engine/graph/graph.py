"""
Rule graph: classes as nodes, rules as directed multi-edges, with path search.

The topology is fixed at construction. Per-request data lives in
``engine.graph.result.ResultGraph``, never here, so one RuleGraph can be shared
by any number of concurrent requests.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from collections import defaultdict, deque
from typing import Callable, Dict, Iterable, List, Optional, Set

from engine.domain import Class
from engine.errors import ClassNotFoundError
from engine.graph.path import Path
from engine.rules.rule import Rule

Visit = Callable[[Rule], bool]


class RuleGraph:
    def __init__(self, rules: Iterable[Rule], classes: Iterable[Class] = ()) -> None:
        self._rules: tuple[Rule, ...] = tuple(dict.fromkeys(rules))
        self._by_start: Dict[Class, List[int]] = defaultdict(list)
        self._by_goal: Dict[Class, List[int]] = defaultdict(list)
        # insertion ordered set of nodes
        self._classes: Dict[Class, None] = dict.fromkeys(classes)
        for i, r in enumerate(self._rules):
            self._by_start[r.start].append(i)
            self._by_goal[r.goal].append(i)
            self._classes.setdefault(r.start, None)
            self._classes.setdefault(r.goal, None)

    # -- topology ------------------------------------------------------------

    def rules(self) -> List[Rule]:
        return list(self._rules)

    def classes(self) -> List[Class]:
        return list(self._classes)

    def has_class(self, c: Class) -> bool:
        return c in self._classes

    def rules_from(self, c: Class) -> List[Rule]:
        return [self._rules[i] for i in self._by_start.get(c, ())]

    def rules_to(self, c: Class) -> List[Rule]:
        return [self._rules[i] for i in self._by_goal.get(c, ())]

    def rules_between(self, start: Class, goal: Class) -> List[Rule]:
        return [r for r in self.rules_from(start) if r.goal == goal]

    def subgraph(self, rules: Iterable[Rule], classes: Iterable[Class] = ()) -> "RuleGraph":
        return RuleGraph(rules, classes)

    def select(self, predicate: Callable[[Rule], bool]) -> "RuleGraph":
        return RuleGraph([r for r in self._rules if predicate(r)])

    def _check(self, *classes: Class) -> None:
        for c in classes:
            if c not in self._classes:
                raise ClassNotFoundError(c.domain.name, c.name)

    # -- path search ---------------------------------------------------------

    def find_paths(self, start: Class, goal: Class) -> List[Path]:
        """Every path from start to goal that uses no rule twice.

        Searches backwards from the goal. The used-rule guard is per branch, so a
        rule may appear in several returned paths but only once in each, which
        also bounds the recursion on cyclic graphs.
        """
        self._check(start, goal)
        if start == goal:
            return [Path(start)]

        paths: List[Path] = []
        stack: List[int] = []
        used: Set[int] = set()

        def visit(at: Class) -> None:
            for i in self._by_goal.get(at, ()):
                if i in used:
                    continue
                used.add(i)
                stack.append(i)
                rule = self._rules[i]
                if rule.start == start:
                    paths.append(Path(start, tuple(self._rules[j] for j in reversed(stack))))
                else:
                    visit(rule.start)
                stack.pop()
                used.discard(i)

        visit(goal)
        return paths

    def all_paths(self, start: Class, *goals: Class) -> List[Path]:
        out: Dict[Path, None] = {}
        for g in goals:
            out.update(dict.fromkeys(self.find_paths(start, g)))
        return list(out)

    def _distances_to(self, goal: Class) -> Dict[Class, int]:
        dist = {goal: 0}
        queue: deque[Class] = deque([goal])
        while queue:
            c = queue.popleft()
            for r in self.rules_to(c):
                if r.start not in dist:
                    dist[r.start] = dist[c] + 1
                    queue.append(r.start)
        return dist

    def shortest_paths(self, start: Class, *goals: Class) -> List[Path]:
        """All minimum-hop paths from start to each goal, unioned over the goals."""
        self._check(start, *goals)
        out: Dict[Path, None] = {}
        for goal in goals:
            if start == goal:
                out[Path(start)] = None
                continue
            dist = self._distances_to(goal)
            if start not in dist:
                continue

            def walk(at: Class, prefix: tuple[Rule, ...]) -> None:
                if at == goal:
                    out[Path(start, prefix)] = None
                    return
                for r in self.rules_from(at):
                    if dist.get(r.goal) == dist[at] - 1:
                        walk(r.goal, prefix + (r,))

            walk(start, ())
        return list(out)

    def k_shortest_paths(self, start: Class, goal: Class, k: int) -> List[Path]:
        # sorted() is stable, equal lengths keep discovery order
        paths = sorted(self.find_paths(start, goal), key=len)
        return paths if k <= 0 else paths[:k]

    # -- expansion -----------------------------------------------------------

    def goal_subgraph(self, start: Class, goals: Iterable[Class]) -> "RuleGraph":
        rules: Dict[Rule, None] = {}
        for p in self.shortest_paths(start, *goals):
            rules.update(dict.fromkeys(p.rules))
        return RuleGraph(rules, [start])

    def neighbours(self, start: Class, depth: int, visit: Optional[Visit] = None) -> "RuleGraph":
        """Breadth-first expansion up to ``depth`` rule hops from start.

        ``visit`` is called once per rule as it is reached; returning False leaves
        the rule out. Rules leading back to a class found at a shallower depth
        are not followed.
        """
        self._check(start)
        level: Dict[Class, int] = {start: 0}
        frontier: List[Class] = [start]
        kept: Dict[Rule, None] = {}
        for d in range(max(depth, 0)):
            nxt: List[Class] = []
            for c in frontier:
                for r in self.rules_from(c):
                    seen = level.get(r.goal)
                    if seen is not None and seen < d:
                        continue
                    if visit is not None and not visit(r):
                        continue
                    kept[r] = None
                    if seen is None:
                        level[r.goal] = d + 1
                        nxt.append(r.goal)
            if not nxt:
                break
            frontier = nxt
        return RuleGraph(kept, [start])

    def __repr__(self) -> str:
        return f"<RuleGraph classes={len(self._classes)} rules={len(self._rules)}>"
