"""
Rule contract: a typed edge from a start class to a goal class.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from engine.constraint import Constraint
from engine.domain import Class, Query
from engine.errors import GoalMismatchError, RuleNotApplicable


class Rule(ABC):
    """Stateless and shared. Identity is the instance, so equal-looking rules stay distinct edges."""

    def __init__(self, name: str, start: Class, goal: Class) -> None:
        self.name = name
        self.start = start
        self.goal = goal

    @abstractmethod
    def apply(self, obj: Any, constraint: Optional[Constraint] = None) -> Query:
        """Return the goal query for ``obj``.

        Raises RuleNotApplicable when the rule does not apply to this object,
        RuleApplyError when the generated query text is invalid and
        GoalMismatchError when the query is not of the goal class.
        """

    def constraint(self, obj: Any, constraint: Optional[Constraint]) -> Optional[Constraint]:
        return constraint

    def __str__(self) -> str:
        return f"{self.name}({self.start})->{self.goal}"

    def __repr__(self) -> str:
        return f"<Rule {self}>"


class FuncRule(Rule):
    """Rule backed by a plain function returning a Query, or None when it does not apply."""

    def __init__(
        self,
        name: str,
        start: Class,
        goal: Class,
        func: Callable[[Any, Optional[Constraint]], Optional[Query]],
    ) -> None:
        super().__init__(name, start, goal)
        self._func = func

    def apply(self, obj: Any, constraint: Optional[Constraint] = None) -> Query:
        q = self._func(obj, constraint)
        if q is None:
            raise RuleNotApplicable(self.name, "no query")
        if q.class_ != self.goal:
            raise GoalMismatchError(self.name, q.class_, self.goal)
        return q
