"""
Correlation routes: goal-directed and neighbourhood graphs with live data.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends

from api.requests import GoalsRequest, NeighboursRequest
from api.responses import GraphResponse, NodeModel, graph_response, node_models
from api.routes.common import get_engine, resolve_classes, resolve_start
from api.routes.exception import handle_exceptions
from engine.core import Engine

log = logging.getLogger(__name__)

router = APIRouter(tags=["Graphs"])


@router.post("/graphs/goals", response_model=GraphResponse)
@handle_exceptions
async def graph_goals(req: GoalsRequest, rules: bool = False, engine: Engine = Depends(get_engine)) -> GraphResponse:
    start = resolve_start(engine, req.start)
    goals = resolve_classes(engine, req.goals)
    g = await engine.goals(start, goals, timeout=req.timeout)
    return graph_response(g.pruned(), with_rules=rules)


@router.post("/graphs/neighbours", response_model=GraphResponse)
@handle_exceptions
async def graph_neighbours(
    req: NeighboursRequest, rules: bool = False, engine: Engine = Depends(get_engine)
) -> GraphResponse:
    start = resolve_start(engine, req.start)
    g = await engine.neighbours(start, req.depth, timeout=req.timeout)
    return graph_response(g.pruned(), with_rules=rules)


@router.post("/lists/goals", response_model=List[NodeModel])
@handle_exceptions
async def list_goals(req: GoalsRequest, engine: Engine = Depends(get_engine)) -> List[NodeModel]:
    start = resolve_start(engine, req.start)
    goals = resolve_classes(engine, req.goals)
    g = await engine.goals(start, goals, timeout=req.timeout)
    if g.error is not None:
        log.warning("goal list from %s: %s", start.class_, g.error)
    wanted = {str(c) for c in goals}
    return [n for n in node_models(g) if n.class_ in wanted and n.count > 0]
