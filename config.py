"""
Constants and configuration for Crosslink.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

import os
from typing import Optional

from pydantic_settings import BaseSettings


CROSSLINK_CONFIG_FILE = os.getenv("CROSSLINK_CONFIG_FILE", "")
CROSSLINK_REQUEST_TIMEOUT = float(os.getenv("CROSSLINK_REQUEST_TIMEOUT", "0"))
CROSSLINK_STORE_TIMEOUT = float(os.getenv("CROSSLINK_STORE_TIMEOUT", "30"))
CROSSLINK_LOG_LEVEL = os.getenv("CROSSLINK_LOG_LEVEL", "INFO").upper()

# separator used in DOMAIN:CLASS and DOMAIN:CLASS:DATA names
NAME_SEPARATOR = ":"

# store config keys understood by every domain
STORE_KEY_DOMAIN = "domain"
STORE_KEY_MOCK = "mockData"
STORE_KEY_LOKI = "loki"

HEALTH_PATH = "/ready"
DATASOURCE_TIMEOUT = 30


class Settings(BaseSettings):
    config_file: str = CROSSLINK_CONFIG_FILE

    # per logical request; 0 disables the timeout
    request_timeout: float = CROSSLINK_REQUEST_TIMEOUT
    # per store call, used when the constraint has no timeout of its own
    store_timeout: float = CROSSLINK_STORE_TIMEOUT

    # constraint defaults applied before each store call
    default_duration_seconds: float = 600.0
    default_limit: int = 10_000

    # traversal tuning
    max_parallel_queries: int = 8
    neighbours_default_depth: int = 2
    neighbours_max_depth: int = 10

    # retry policy for HTTP backed stores
    store_retry_attempts: int = 3
    store_retry_delay: float = 0.5

    log_level: str = CROSSLINK_LOG_LEVEL
    host: str = "0.0.0.0"
    port: int = 8080
    ssl_certfile: Optional[str] = None
    ssl_keyfile: Optional[str] = None

    model_config = {
        "env_prefix": "CROSSLINK_",
        "extra": "ignore",
    }


settings = Settings()
