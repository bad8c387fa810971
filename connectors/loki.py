from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from config import HEALTH_PATH
from datasources.base import LogsConnector
from datasources.exceptions import DataSourceUnavailable, InvalidResponse, QueryTimeout
from datasources.helpers import fetch_json
from datasources.retry import retry

log = logging.getLogger(__name__)


class LokiConnector(LogsConnector):
    health_path = HEALTH_PATH

    @retry(exceptions=(DataSourceUnavailable, QueryTimeout))
    async def query_range(
        self,
        query: str,
        start: int,
        end: int,
        limit: Optional[int] = None,
        direction: str = "backward",
    ) -> Dict[str, Any]:
        url = f"{self.base_url}/loki/api/v1/query_range"
        params: Dict[str, Any] = {"query": query, "start": start, "end": end, "direction": direction}
        if limit is not None:
            params["limit"] = limit
        return await fetch_json(
            url,
            params=params,
            headers=self._headers(),
            timeout=self.timeout,
            invalid_msg="Loki query failed",
            timeout_msg="Loki query timed out",
            unavailable_msg="Cannot reach Loki at",
        )

    @staticmethod
    def entries(payload: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Flatten a streams response into log records: stream labels plus timestamp and body."""
        data = payload.get("data") or {}
        if data.get("resultType", "streams") != "streams":
            raise InvalidResponse(f"expected streams result, got {data.get('resultType')}")
        out: List[Dict[str, Any]] = []
        for stream in data.get("result") or []:
            labels = stream.get("stream") or {}
            for value in stream.get("values") or []:
                if len(value) < 2:
                    continue
                out.append({**labels, "timestamp": str(value[0]), "body": value[1]})
        log.debug("loki returned %d entries", len(out))
        return out
