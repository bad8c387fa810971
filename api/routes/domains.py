from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from api.responses import ClassModel, DomainModel, class_model, domain_model
from api.routes.common import get_engine
from api.routes.exception import handle_exceptions
from engine.core import Engine

router = APIRouter(tags=["Domains"])


@router.get("/domains", response_model=List[DomainModel])
@handle_exceptions
async def list_domains(engine: Engine = Depends(get_engine)) -> List[DomainModel]:
    return [domain_model(d, engine.store_configs(d.name)) for d in engine.domains()]


@router.get("/domains/{domain}/classes", response_model=List[ClassModel])
@handle_exceptions
async def list_classes(domain: str, engine: Engine = Depends(get_engine)) -> List[ClassModel]:
    return [class_model(c) for c in engine.domain(domain).classes()]
