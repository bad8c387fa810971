"""
Declarative rule and engine configuration, as decoded values.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from engine.errors import ConfigError

log = logging.getLogger(__name__)


class ClassSpec(BaseModel):
    domain: str
    # names or alias names; empty classes and matches means every class in the domain
    classes: List[str] = Field(default_factory=list)
    matches: List[str] = Field(default_factory=list)

    model_config = {"extra": "forbid"}


class ResultSpec(BaseModel):
    query: str
    constraint: Optional[str] = None

    model_config = {"extra": "forbid"}


class RuleSpec(BaseModel):
    name: str = ""
    start: ClassSpec
    goal: ClassSpec
    result: ResultSpec

    model_config = {"extra": "forbid"}


class AliasSpec(BaseModel):
    name: str
    domain: str
    classes: List[str] = Field(default_factory=list)

    model_config = {"extra": "forbid"}


class EngineConfig(BaseModel):
    rules: List[RuleSpec] = Field(default_factory=list)
    aliases: List[AliasSpec] = Field(default_factory=list)
    # each store entry names its domain under "domain"; other keys belong to the domain
    stores: List[Dict[str, Any]] = Field(default_factory=list)
    # other config files, relative to the including file
    include: List[str] = Field(default_factory=list)

    model_config = {"extra": "forbid"}

    @classmethod
    def load(cls, path: str, _loaded: Optional[Set[Path]] = None) -> "EngineConfig":
        loaded = _loaded if _loaded is not None else set()
        file = Path(path).resolve()
        if file in loaded:
            return cls()
        loaded.add(file)
        try:
            text = file.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"cannot read config {path}: {exc}") from exc
        try:
            config = cls.model_validate_json(text)
        except PydanticValidationError as exc:
            raise ConfigError(f"invalid config {path}: {exc}") from exc
        log.info("loaded config %s: %d rules, %d aliases, %d stores",
                 file, len(config.rules), len(config.aliases), len(config.stores))
        for inc in config.include:
            config = config.merge(cls.load(str(file.parent / inc), loaded))
        return config.model_copy(update={"include": []})

    def merge(self, other: "EngineConfig") -> "EngineConfig":
        return EngineConfig(
            rules=[*self.rules, *other.rules],
            aliases=[*self.aliases, *other.aliases],
            stores=[*self.stores, *other.stores],
        )
