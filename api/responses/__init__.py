"""
Response models for API endpoints.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, Field

from engine.domain import Class, Domain
from engine.graph.result import QueryCounts, ResultGraph


class QueryCountModel(BaseModel):
    query: str
    count: int


class RuleModel(BaseModel):
    name: str
    queries: List[QueryCountModel] = Field(default_factory=list)


class EdgeModel(BaseModel):
    start: str
    goal: str
    rules: List[RuleModel] = Field(default_factory=list)


class NodeModel(BaseModel):
    class_: str = Field(alias="class")
    queries: List[QueryCountModel] = Field(default_factory=list)
    count: int = 0

    model_config = {"populate_by_name": True}


class GraphResponse(BaseModel):
    nodes: List[NodeModel] = Field(default_factory=list)
    edges: List[EdgeModel] = Field(default_factory=list)
    # store failures; the graph holds whatever the other stores returned
    errors: List[str] = Field(default_factory=list)


class ClassModel(BaseModel):
    domain: str
    name: str
    description: str = ""


class DomainModel(BaseModel):
    name: str
    description: str = ""
    stores: List[Dict[str, Any]] = Field(default_factory=list)


def _counts(qc: QueryCounts) -> List[QueryCountModel]:
    return [QueryCountModel(query=str(q.query), count=q.count) for q in qc.items()]


def class_model(c: Class) -> ClassModel:
    return ClassModel(domain=c.domain.name, name=c.name, description=c.description)


def domain_model(d: Domain, stores: List[Dict[str, Any]]) -> DomainModel:
    return DomainModel(name=d.name, description=d.description, stores=stores)


def node_models(g: ResultGraph) -> List[NodeModel]:
    return [NodeModel(class_=str(n.class_), queries=_counts(n.queries), count=n.count) for n in g.nodes()]


def graph_response(g: ResultGraph, with_rules: bool = True) -> GraphResponse:
    edges: List[EdgeModel] = []
    for (start, goal), lines in g.edges().items():
        rules = [RuleModel(name=ln.rule.name, queries=_counts(ln.queries)) for ln in lines] if with_rules else []
        edges.append(EdgeModel(start=str(start), goal=str(goal), rules=rules))
    return GraphResponse(
        nodes=node_models(g),
        edges=edges,
        errors=[str(e) for e in g.errors],
    )
