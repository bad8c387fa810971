"""
Base connectors shared by HTTP backed stores.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from config import DATASOURCE_TIMEOUT


class BaseConnector(ABC):
    health_path: str = ""

    def __init__(
        self,
        base_url: str,
        tenant_id: str = "",
        timeout: float = DATASOURCE_TIMEOUT,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.base_url = str(base_url).rstrip("/")
        self.tenant_id = tenant_id
        self.timeout = timeout
        self.headers = headers or {}

    @property
    def health_url(self) -> str:
        if not self.health_path:
            raise NotImplementedError("connector must define health_path")
        return f"{self.base_url}{self.health_path}"

    def _headers(self) -> Dict[str, str]:
        """Header set applied to every outbound request; the tenant header only when a tenant is set."""
        if not self.tenant_id:
            return dict(self.headers)
        return {**self.headers, "X-Scope-OrgID": self.tenant_id}


class LogsConnector(BaseConnector):
    @abstractmethod
    async def query_range(
        self,
        query: str,
        start: int,
        end: int,
        limit: Optional[int] = None,
        direction: str = "backward",
    ) -> Dict[str, Any]: ...
