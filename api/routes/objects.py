from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends

from api.routes.common import get_engine
from api.routes.exception import handle_exceptions
from engine.constraint import Constraint
from engine.core import Engine

router = APIRouter(tags=["Objects"])


@router.get("/objects", response_model=List[Any])
@handle_exceptions
async def get_objects(
    query: str,
    limit: Optional[int] = None,
    timeout: Optional[float] = None,
    engine: Engine = Depends(get_engine),
) -> List[Any]:
    q = engine.query(query)
    return await engine.objects(q, Constraint(limit=limit), timeout=timeout)


@router.get("/console/url")
@handle_exceptions
async def console_url(query: str, engine: Engine = Depends(get_engine)) -> Dict[str, str]:
    return {"url": engine.query_to_console(engine.query(query))}


@router.get("/console/query")
@handle_exceptions
async def console_query(domain: str, url: str, engine: Engine = Depends(get_engine)) -> Dict[str, str]:
    return {"query": str(engine.console_to_query(domain, url))}
