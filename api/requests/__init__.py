from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from config import settings
from engine.constraint import Constraint


class ConstraintModel(BaseModel):
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    limit: Optional[int] = Field(default=None, ge=0)
    timeout: Optional[float] = Field(default=None, ge=0)

    def to_constraint(self) -> Constraint:
        return Constraint.from_dict(self.model_dump(exclude_none=True))


class StartRequest(BaseModel):
    # may be empty when every query names its class
    class_: str = Field(default="", alias="class")
    queries: List[str] = Field(default_factory=list)
    objects: List[Any] = Field(default_factory=list)
    constraint: Optional[ConstraintModel] = None

    model_config = {"populate_by_name": True}


class GoalsRequest(BaseModel):
    start: StartRequest
    goals: List[str] = Field(min_length=1)
    # seconds for the whole request, unset or 0 uses the server default
    timeout: Optional[float] = Field(default=None, ge=0)


class NeighboursRequest(BaseModel):
    start: StartRequest
    depth: int = Field(default_factory=lambda: settings.neighbours_default_depth, ge=0)
    timeout: Optional[float] = Field(default=None, ge=0)
