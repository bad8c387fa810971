"""
Shared utilities and dependencies for API route modules.

Provides the engine dependency and the translation of request models into
engine values, so individual route files stay thin.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from typing import List

from fastapi import HTTPException, Request

from api.requests import StartRequest
from engine.core import Engine
from engine.domain import Class
from engine.errors import ValidationError
from engine.traverse import Start


def get_engine(request: Request) -> Engine:
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise HTTPException(status_code=503, detail="engine is not ready")
    return engine


def resolve_start(engine: Engine, req: StartRequest) -> Start:
    queries = [engine.query(q) for q in req.queries]
    if req.class_:
        class_ = engine.class_(req.class_)
    elif queries:
        class_ = queries[0].class_
    else:
        raise ValidationError("start needs a class or at least one query")
    return Start(
        class_=class_,
        objects=list(req.objects),
        queries=queries,
        constraint=req.constraint.to_constraint() if req.constraint else None,
    )


def resolve_classes(engine: Engine, names: List[str]) -> List[Class]:
    return [engine.class_(n) for n in names]
