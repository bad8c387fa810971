"""
Engine facade: registered domains and stores, the rule graph, and request
entry points with constraint and timeout handling.

An Engine is assembled once by ``EngineBuilder`` and then only read, so one
instance serves concurrent requests.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, TypeVar

from config import NAME_SEPARATOR, STORE_KEY_DOMAIN, settings
from datasources.exceptions import QueryTimeout
from engine.constraint import Constraint
from engine.domain import Appender, Class, ConsoleConvertible, Domain, Query, Store, split_class_name
from engine.errors import (
    ClassNotFoundError,
    ConfigError,
    DomainNotFoundError,
    InvalidNameError,
    RequestTimeout,
    RuleConfigError,
    RuleNotFoundError,
    StoreNotFoundError,
    ValidationError,
)
from engine.follower import Follower, FollowResult
from engine.graph.graph import RuleGraph
from engine.graph.path import Path
from engine.graph.result import ResultGraph
from engine.result import CountResult, new_result
from engine.rules.factory import RuleFactory
from engine.rules.rule import Rule
from engine.rules.spec import AliasSpec, EngineConfig, RuleSpec
from engine.stores import StoreGroup
from engine.traverse import Start, Traverser

log = logging.getLogger(__name__)

_T = TypeVar("_T")


class Engine:
    def __init__(
        self,
        domains: Mapping[str, Domain],
        stores: Mapping[str, StoreGroup],
        rules: Iterable[Rule],
    ) -> None:
        self._domains = dict(domains)
        self._stores = dict(stores)
        self._rules = list(rules)
        classes = [c for d in self._domains.values() for c in d.classes()]
        self._graph = RuleGraph(self._rules, classes)

    # -- lookup --------------------------------------------------------------

    def domain(self, name: str) -> Domain:
        d = self._domains.get(name)
        if d is None:
            raise DomainNotFoundError(name)
        return d

    def domains(self) -> List[Domain]:
        return list(self._domains.values())

    def class_(self, full_name: str) -> Class:
        dname, cname = split_class_name(full_name)
        c = self.domain(dname).class_(cname)
        if c is None:
            raise ClassNotFoundError(dname, cname)
        return c

    def query(self, text: str) -> Query:
        dname, sep, _ = text.strip().partition(NAME_SEPARATOR)
        if not sep or not dname:
            raise InvalidNameError(f"invalid query: {text!r}, expected DOMAIN{NAME_SEPARATOR}CLASS{NAME_SEPARATOR}DATA")
        # the domain parses the rest, some allow an empty class
        return self.domain(dname).query(text)

    def query_to_console(self, query: Query) -> str:
        d = query.class_.domain
        if not isinstance(d, ConsoleConvertible):
            raise ValidationError(f"domain {d.name} has no console view")
        return d.query_to_console(query)

    def console_to_query(self, domain: str, url: str) -> Query:
        d = self.domain(domain)
        if not isinstance(d, ConsoleConvertible):
            raise ValidationError(f"domain {d.name} has no console view")
        return d.console_to_query(url)

    def store(self, domain: str) -> StoreGroup:
        self.domain(domain)
        group = self._stores.get(domain)
        if group is None or not group.stores:
            raise StoreNotFoundError(domain)
        return group

    def store_configs(self, domain: str) -> List[Dict[str, Any]]:
        group = self._stores.get(domain)
        return list(group.configs) if group is not None else []

    def graph(self) -> RuleGraph:
        return self._graph

    def rules(self) -> List[Rule]:
        return list(self._rules)

    def rule(self, name: str) -> List[Rule]:
        found = [r for r in self._rules if r.name == name]
        if not found:
            raise RuleNotFoundError(name)
        return found

    # -- store access --------------------------------------------------------

    async def get(self, query: Query, constraint: Optional[Constraint], result: Appender) -> int:
        """Run one query against its domain store, return the number of objects it delivered."""
        store = self.store(query.class_.domain.name)
        c = (constraint or Constraint()).default()
        timeout = c.timeout if c.timeout is not None else settings.store_timeout
        counter = CountResult(result)
        try:
            if timeout and timeout > 0:
                async with asyncio.timeout(timeout):
                    await store.get(query, c, counter)
            else:
                await store.get(query, c, counter)
        except TimeoutError as exc:
            raise QueryTimeout(f"query {query} timed out after {timeout}s") from exc
        log.debug("get query=%s count=%d", query, counter.count)
        return counter.count

    async def objects(
        self,
        query: Query,
        constraint: Optional[Constraint] = None,
        timeout: Optional[float] = None,
    ) -> List[Any]:
        result = new_result(query.class_)
        await self._request(lambda: self.get(query, constraint, result), lambda: result.list(), timeout)
        return result.list()

    # -- correlation ---------------------------------------------------------

    def follower(self, constraint: Optional[Constraint] = None) -> Follower:
        return Follower(self, constraint)

    async def follow(
        self,
        objects: Iterable[Any],
        path: Path,
        constraint: Optional[Constraint] = None,
        timeout: Optional[float] = None,
    ) -> FollowResult:
        f = self.follower(constraint)
        objs = list(objects)
        return await self._request(lambda: f.follow(objs, path), lambda: f.result, timeout)

    def _start_graph(self, start: Class) -> RuleGraph:
        if self._graph.has_class(start):
            return self._graph
        return RuleGraph([], [start])

    async def goals(self, start: Start, goals: Iterable[Class], timeout: Optional[float] = None) -> ResultGraph:
        graph = self._start_graph(start.class_)
        targets = [g for g in goals if graph.has_class(g)]
        sub = graph.goal_subgraph(start.class_, targets)
        return await self._traverse(sub, start, timeout)

    async def neighbours(self, start: Start, depth: int, timeout: Optional[float] = None) -> ResultGraph:
        depth = min(depth, settings.neighbours_max_depth)
        sub = self._start_graph(start.class_).neighbours(start.class_, depth)
        return await self._traverse(sub, start, timeout)

    async def _traverse(self, graph: RuleGraph, start: Start, timeout: Optional[float]) -> ResultGraph:
        t = Traverser(self, graph, start)
        return await self._request(t.run, lambda: t.result, timeout)

    async def _request(
        self,
        run: Callable[[], Awaitable[_T]],
        partial: Callable[[], Any],
        timeout: Optional[float] = None,
    ) -> _T:
        """Run one logical request under its own timeout.

        A missing or zero ``timeout`` falls back to ``settings.request_timeout``,
        and when that is zero too the request is not limited.
        """
        if not timeout:
            timeout = settings.request_timeout
        if not timeout or timeout <= 0:
            return await run()
        try:
            async with asyncio.timeout(timeout):
                return await run()
        except TimeoutError as exc:
            log.warning("request timed out after %ss", timeout)
            raise RequestTimeout(timeout, partial()) from exc

    async def aclose(self) -> None:
        for group in self._stores.values():
            await group.aclose()

    def __repr__(self) -> str:
        return f"<Engine domains={len(self._domains)} rules={len(self._rules)}>"


class EngineBuilder:
    def __init__(self) -> None:
        self._domains: Dict[str, Domain] = {}
        self._stores: Dict[str, StoreGroup] = {}
        self._rules: List[Rule] = []
        self._specs: List[RuleSpec] = []
        self._aliases: List[AliasSpec] = []
        self._store_configs: List[Dict[str, Any]] = []
        self._template_funcs: Dict[str, Callable[..., Any]] = {}

    def domains(self, *domains: Domain) -> "EngineBuilder":
        for d in domains:
            if d.name in self._domains:
                raise ConfigError(f"duplicate domain name: {d.name}")
            self._domains[d.name] = d
        return self

    def _group(self, domain: str) -> StoreGroup:
        d = self._domains.get(domain)
        if d is None:
            raise ConfigError(f"store for unknown domain: {domain}")
        return self._stores.setdefault(domain, StoreGroup(d))

    def stores(self, *stores: Store) -> "EngineBuilder":
        for s in stores:
            self._group(s.domain.name).add(s)
        return self

    def store_configs(self, *configs: Mapping[str, Any]) -> "EngineBuilder":
        for cfg in configs:
            if not cfg.get(STORE_KEY_DOMAIN):
                raise ConfigError(f"store config has no {STORE_KEY_DOMAIN!r}: {dict(cfg)}")
            self._store_configs.append(dict(cfg))
        return self

    def rules(self, *rules: Rule) -> "EngineBuilder":
        self._rules.extend(rules)
        return self

    def template_funcs(self, funcs: Mapping[str, Callable[..., Any]]) -> "EngineBuilder":
        self._template_funcs.update(funcs)
        return self

    def config(self, config: EngineConfig) -> "EngineBuilder":
        self._specs.extend(config.rules)
        self._aliases.extend(config.aliases)
        return self.store_configs(*config.stores)

    def build(self) -> Engine:
        for cfg in self._store_configs:
            dname = cfg[STORE_KEY_DOMAIN]
            group = self._group(dname)
            group.add(self._domains[dname].store(cfg), cfg)
            log.info("store configured for domain %s", dname)

        factory = RuleFactory(self._domains, self._aliases, self._template_funcs)
        built = factory.build_all(self._specs)

        names: Dict[str, Rule] = {}
        for r in self._rules:
            for c in (r.start, r.goal):
                if self._domains.get(c.domain.name) is not c.domain:
                    raise RuleConfigError(r.name, f"class {c} is not in a registered domain")
            if r.name in names and names[r.name] is not r:
                raise RuleConfigError(r.name, "duplicate rule name")
            names[r.name] = r
        spec_names = {r.name for r in built}
        for name in names:
            if name in spec_names:
                raise RuleConfigError(name, "duplicate rule name")

        engine = Engine(self._domains, self._stores, [*self._rules, *built])
        log.info(
            "engine built: %d domains, %d rules, %d store groups",
            len(self._domains), len(engine.rules()), len(self._stores),
        )
        return engine


def build_engine(domains: Iterable[Domain], config: Optional[EngineConfig] = None) -> Engine:
    builder = EngineBuilder().domains(*domains)
    if config is not None:
        builder.config(config)
    return builder.build()
