"""
Store groups: several stores serving one domain.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional

from engine.constraint import Constraint
from engine.domain import Appender, Domain, Query, Store
from engine.errors import StoreErrors

log = logging.getLogger(__name__)


class StoreGroup(Store):
    """Queries every member concurrently. Succeeds if any member does."""

    def __init__(self, domain: Domain, stores: Optional[List[Store]] = None) -> None:
        self.domain = domain
        self.stores: List[Store] = list(stores or [])
        self.configs: List[Dict[str, Any]] = []

    def add(self, store: Store, config: Optional[Mapping[str, Any]] = None) -> None:
        self.stores.append(store)
        self.configs.append(dict(config or {}))

    async def get(self, query: Query, constraint: Optional[Constraint], result: Appender) -> None:
        if len(self.stores) == 1:
            await self.stores[0].get(query, constraint, result)
            return

        raw = await asyncio.gather(
            *[s.get(query, constraint, result) for s in self.stores],
            return_exceptions=True,
        )
        errors: List[Exception] = []
        for store, r in zip(self.stores, raw):
            if isinstance(r, BaseException) and not isinstance(r, Exception):
                raise r
            if isinstance(r, Exception):
                log.warning("store %s query=%s failed: %s", type(store).__name__, query, r)
                errors.append(r)
        if errors and len(errors) == len(self.stores):
            raise StoreErrors(errors)

    async def aclose(self) -> None:
        for s in self.stores:
            await s.aclose()

    def __len__(self) -> int:
        return len(self.stores)
