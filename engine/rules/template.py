"""
Template rules: query text generated by rendering a jinja2 template against the
start object.

The render context holds every top-level key of a mapping object plus ``this``
(the whole object). ``constraint()`` and ``rule()`` return the active constraint
and the rule being applied. A blank render, or a render error such as a missing
field, means the rule does not apply to the object.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

import jinja2

from engine.constraint import Constraint, parse_time
from engine.domain import Class, Query
from engine.errors import (
    CorrelationError,
    GoalMismatchError,
    RuleApplyError,
    RuleConfigError,
    RuleNotApplicable,
)
from engine.rules.rule import Rule

log = logging.getLogger(__name__)


def _to_json(value: Any) -> str:
    return json.dumps(value, sort_keys=True, default=str)


def _rfc3339(value: Any) -> str:
    t = value if isinstance(value, datetime) else parse_time(value)
    return t.isoformat().replace("+00:00", "Z") if t else ""


def _unix_nano(value: Any) -> int:
    t = value if isinstance(value, datetime) else parse_time(value)
    return int(t.timestamp()) * 1_000_000_000 + t.microsecond * 1000 if t else 0


def _quote_logql(value: Any) -> str:
    text = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{text}"'


def new_environment(globals_: Optional[Mapping[str, Callable[..., Any]]] = None) -> jinja2.Environment:
    env = jinja2.Environment(
        undefined=jinja2.StrictUndefined,
        autoescape=False,
        keep_trailing_newline=False,
    )
    env.filters["json"] = _to_json
    env.filters["rfc3339"] = _rfc3339
    env.filters["unix_nano"] = _unix_nano
    env.filters["quote_logql"] = _quote_logql
    if globals_:
        env.globals.update(globals_)
    return env


def compile_template(env: jinja2.Environment, rule_name: str, text: str) -> jinja2.Template:
    try:
        return env.from_string(text)
    except jinja2.TemplateSyntaxError as exc:
        raise RuleConfigError(rule_name, f"template syntax error line {exc.lineno}: {exc.message}") from exc


class TemplateRule(Rule):
    def __init__(
        self,
        name: str,
        start: Class,
        goal: Class,
        query: jinja2.Template,
        constraint: Optional[jinja2.Template] = None,
        siblings: Iterable[Class] = (),
    ) -> None:
        super().__init__(name, start, goal)
        self.query_template = query
        self.constraint_template = constraint
        # goals of rules expanded from the same definition; their queries are not ours to reject
        self.siblings = frozenset(siblings)

    def _render(self, template: jinja2.Template, obj: Any, constraint: Optional[Constraint]) -> str:
        ctx: Dict[str, Any] = {}
        if isinstance(obj, Mapping):
            ctx.update((str(k), v) for k, v in obj.items())
        ctx["this"] = obj
        ctx["constraint"] = lambda: constraint or Constraint()
        ctx["rule"] = lambda: self
        try:
            return template.render(ctx).strip()
        except jinja2.TemplateError as exc:
            raise RuleNotApplicable(self.name, str(exc)) from exc
        except (TypeError, ValueError, KeyError, AttributeError, IndexError, CorrelationError) as exc:
            raise RuleNotApplicable(self.name, f"{type(exc).__name__}: {exc}") from exc

    def apply(self, obj: Any, constraint: Optional[Constraint] = None) -> Query:
        text = self._render(self.query_template, obj, constraint)
        if not text:
            raise RuleNotApplicable(self.name, "blank query")
        try:
            q = self.goal.domain.query(text)
        except (CorrelationError, ValueError) as exc:
            raise RuleApplyError(self.name, text, exc) from exc
        if q.class_ != self.goal:
            if q.class_ in self.siblings:
                raise RuleNotApplicable(self.name, f"query is for {q.class_}")
            raise GoalMismatchError(self.name, q.class_, self.goal)
        return q

    def constraint(self, obj: Any, constraint: Optional[Constraint]) -> Optional[Constraint]:
        if self.constraint_template is None:
            return constraint
        text = self._render(self.constraint_template, obj, constraint)
        if not text:
            return constraint
        try:
            narrowed = Constraint.from_dict(json.loads(text))
        except (ValueError, TypeError, AttributeError, CorrelationError) as exc:
            raise RuleApplyError(self.name, text, exc) from exc
        log.debug("rule %s narrowed constraint to %s", self.name, narrowed)
        return (constraint or Constraint()).combine(narrowed)
