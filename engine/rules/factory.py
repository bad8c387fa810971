"""
Rule factory: expands rule specs into one TemplateRule per (start, goal) class pair.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Set

from engine.domain import Class, Domain, TemplateFuncProvider
from engine.errors import ClassNotFoundError, DomainNotFoundError, RuleConfigError
from engine.rules.rule import Rule
from engine.rules.spec import AliasSpec, ClassSpec, RuleSpec
from engine.rules.template import TemplateRule, compile_template, new_environment

log = logging.getLogger(__name__)


class RuleFactory:
    def __init__(
        self,
        domains: Mapping[str, Domain],
        aliases: Iterable[AliasSpec] = (),
        template_funcs: Optional[Mapping[str, Callable[..., Any]]] = None,
    ) -> None:
        self.domains = dict(domains)
        self.aliases: Dict[tuple[str, str], List[str]] = {}
        for a in aliases:
            key = (a.domain, a.name)
            if key in self.aliases:
                raise RuleConfigError(a.name, f"duplicate alias in domain {a.domain}")
            self.aliases[key] = list(a.classes)

        funcs: Dict[str, Callable[..., Any]] = dict(template_funcs or {})
        for d in self.domains.values():
            if isinstance(d, TemplateFuncProvider):
                funcs.update(d.template_funcs())
        self.env = new_environment(funcs)
        self._names: Set[str] = set()

    def _domain(self, rule: str, name: str) -> Domain:
        d = self.domains.get(name)
        if d is None:
            raise RuleConfigError(rule, str(DomainNotFoundError(name)))
        return d

    def _expand_alias(self, domain: str, name: str, seen: Set[str]) -> List[str]:
        members = self.aliases.get((domain, name))
        if members is None:
            return [name]
        if name in seen:
            return []
        seen.add(name)
        out: List[str] = []
        for m in members:
            out.extend(self._expand_alias(domain, m, seen))
        return out

    def expand_classes(self, rule: str, spec: ClassSpec) -> List[Class]:
        domain = self._domain(rule, spec.domain)
        if not spec.classes and not spec.matches:
            classes = domain.classes()
            if not classes:
                raise RuleConfigError(rule, f"domain {domain.name} has no classes")
            return classes

        found: Dict[Class, None] = {}
        for name in spec.classes:
            for cname in self._expand_alias(spec.domain, name, set()):
                c = domain.class_(cname)
                if c is None:
                    raise RuleConfigError(rule, str(ClassNotFoundError(domain.name, cname)))
                found[c] = None
        for pattern in spec.matches:
            try:
                rx = re.compile(pattern)
            except re.error as exc:
                raise RuleConfigError(rule, f"invalid match pattern {pattern!r}: {exc}") from exc
            matched = [c for c in domain.classes() if rx.search(c.name)]
            if not matched:
                raise RuleConfigError(rule, f"no class in domain {domain.name} matches {pattern!r}")
            found.update((c, None) for c in matched)
        return list(found)

    def _name(self, spec: RuleSpec) -> str:
        if spec.name:
            if spec.name in self._names:
                raise RuleConfigError(spec.name, "duplicate rule name")
            return spec.name
        base = f"{spec.start.domain}-{spec.goal.domain}"
        name, n = base, 1
        while name in self._names:
            n += 1
            name = f"{base}-{n}"
        return name

    def build(self, spec: RuleSpec) -> List[Rule]:
        name = self._name(spec)
        starts = self.expand_classes(name, spec.start)
        goals = self.expand_classes(name, spec.goal)
        query = compile_template(self.env, name, spec.result.query)
        constraint = None
        if spec.result.constraint:
            constraint = compile_template(self.env, name, spec.result.constraint)
        self._names.add(name)
        rules: List[Rule] = [
            TemplateRule(name, s, g, query, constraint, siblings=goals)
            for s in starts
            for g in goals
        ]
        log.debug("rule %s expanded to %d rules", name, len(rules))
        return rules

    def build_all(self, specs: Iterable[RuleSpec]) -> List[Rule]:
        rules: List[Rule] = []
        for spec in specs:
            rules.extend(self.build(spec))
        return rules
