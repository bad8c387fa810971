"""
Entry point for the Crosslink correlation API server.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import uvicorn
from fastapi import FastAPI

from api.routes import router
from config import settings
from domains import all_domains
from engine.core import Engine, build_engine
from engine.errors import ConfigError
from engine.rules.spec import EngineConfig

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    stream=sys.stdout,
)
log = logging.getLogger(__name__)


def load_engine(config_file: Optional[str] = None) -> Engine:
    path = config_file if config_file is not None else settings.config_file
    if not path:
        log.warning("no config file set, starting with built-in domains and no rules")
    try:
        config = EngineConfig.load(path) if path else None
        return build_engine(all_domains(), config)
    except ConfigError as exc:
        log.error("invalid configuration %s: %s", path, exc)
        raise


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    engine = load_engine()
    app.state.engine = engine
    try:
        yield
    finally:
        app.state.engine = None
        await engine.aclose()


app = FastAPI(
    title="Crosslink Correlation Engine",
    description="Follows correlation rules between logs, metrics, traces and cluster objects across stores.",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(router, prefix="/api/v1")


if __name__ == "__main__":
    uvicorn_kwargs = {
        "host": settings.host,
        "port": settings.port,
        "log_level": settings.log_level.lower(),
        "access_log": True,
    }
    if settings.ssl_certfile and settings.ssl_keyfile:
        uvicorn_kwargs["ssl_certfile"] = settings.ssl_certfile
        uvicorn_kwargs["ssl_keyfile"] = settings.ssl_keyfile

    uvicorn.run(
        "main:app",
        **uvicorn_kwargs,
    )
