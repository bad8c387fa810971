"""
Log domain: LogQL queries over Loki, one class per log type.

Queries look like ``log:application:{kubernetes_namespace_name="ns"}``. The
class may be left empty (``log::{...}``), in which case it is taken from a
``log_type`` matcher in the selector, defaulting to application.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Dict, Mapping, Optional

import httpx

from config import DATASOURCE_TIMEOUT, NAME_SEPARATOR, STORE_KEY_LOKI
from connectors.loki import LokiConnector
from datasources.helpers import to_nanoseconds
from engine.constraint import Constraint
from engine.domain import (
    Appender,
    BaseDomain,
    Class,
    ConsoleConvertible,
    PreviewableClass,
    Query,
    Store,
    TemplateFuncProvider,
)
from engine.errors import ConfigError, InvalidNameError, ValidationError

log = logging.getLogger(__name__)

APPLICATION = "application"
INFRASTRUCTURE = "infrastructure"
AUDIT = "audit"
LOG_CLASSES = (APPLICATION, INFRASTRUCTURE, AUDIT)

CONSOLE_LOGS_PATH = "/monitoring/logs"

_LOG_TYPE_RE = re.compile(r'\{[^}]*log_type\s*(=~|=)\s*"([^"]+)"')
_JSON_STAGE_RE = re.compile(r"\|\s*json\b")
_BAD_LABEL_RE = re.compile(r"^[^a-zA-Z_:]|[^a-zA-Z0-9_:]")
_INFRA_NS_RE = re.compile(r"^(default|kube.*|openshift.*)$")


def fix_label(label: str) -> str:
    """Make a valid Loki stream label by replacing illegal characters with '_'."""
    return _BAD_LABEL_RE.sub("_", label)


def log_type_for_namespace(namespace: str) -> str:
    return INFRASTRUCTURE if _INFRA_NS_RE.match(namespace or "") else APPLICATION


def with_json_stage(logql: str) -> str:
    if _JSON_STAGE_RE.search(logql):
        return logql
    return logql + " | json"


class LogClass(Class, PreviewableClass):
    def preview(self, obj: Any) -> str:
        if isinstance(obj, Mapping):
            return str(obj.get("body", ""))
        return str(obj)


class LogDomain(BaseDomain, TemplateFuncProvider, ConsoleConvertible):
    class_type = LogClass

    def __init__(self) -> None:
        super().__init__("log", LOG_CLASSES, description="Log records stored in Loki.")

    def query(self, text: str) -> Query:
        parts = text.strip().split(NAME_SEPARATOR, 2)
        if len(parts) != 3:
            raise InvalidNameError(f"invalid query: {text!r}, expected log:CLASS:LOGQL")
        domain, cname, data = parts
        if domain != self.name:
            raise InvalidNameError(f"query {text!r} is not in domain {self.name}")
        if not cname:
            cname = self.class_for_logql(data)
        c = self.class_(cname)
        if c is None:
            raise InvalidNameError(f"unknown log type {cname!r} in query {text!r}")
        return self.parse_query(c, data)

    def class_for_logql(self, logql: str) -> str:
        m = _LOG_TYPE_RE.search(logql)
        if m is None:
            return APPLICATION
        op, value = m.groups()
        if op == "=":
            return value
        try:
            rx = re.compile(value)
        except re.error:
            return APPLICATION
        for c in self.classes():
            if rx.fullmatch(c.name):
                return c.name
        return APPLICATION

    def parse_query(self, class_: Class, data: str) -> Query:
        logql = data.strip()
        if not logql.startswith("{"):
            raise ValidationError(f"invalid LogQL, expected a stream selector: {logql!r}")
        return super().parse_query(class_, logql)

    def template_funcs(self) -> Dict[str, Callable[..., Any]]:
        return {
            "loki_fix_label": fix_label,
            "log_type_for_namespace": log_type_for_namespace,
        }

    def query_to_console(self, query: Query) -> str:
        params = httpx.QueryParams({"q": query.data, "tenant": query.class_.name})
        return f"{CONSOLE_LOGS_PATH}?{params}"

    def console_to_query(self, url: str) -> Query:
        """Parse a console logs link, the tenant parameter names the log type."""
        u = httpx.URL(url)
        c = self.class_(u.params.get("tenant", ""))
        if c is None or u.path != CONSOLE_LOGS_PATH:
            raise ValidationError(f"not a console logs URL: {url!r}")
        return self.parse_query(c, u.params.get("q", ""))

    def store(self, config: Mapping[str, Any]) -> Store:
        url = config.get(STORE_KEY_LOKI)
        if not url:
            raise ConfigError(f"log store config needs {STORE_KEY_LOKI!r}: {dict(config)}")
        connector = LokiConnector(
            url,
            tenant_id=str(config.get("tenant", "")),
            timeout=float(config.get("timeout", DATASOURCE_TIMEOUT)),
        )
        return LokiStore(self, connector)


def to_record(entry: Dict[str, Any]) -> Dict[str, Any]:
    """Normalise a Loki entry: ViaQ logs carry their text in ``message``."""
    rec = dict(entry)
    if rec.get("message") and rec.get("@timestamp"):
        rec["body"] = rec["message"]
    if not rec.get("observed_timestamp"):
        rec["observed_timestamp"] = rec.get("timestamp", "")
    if rec.get("__error__") == "JSONParserErr":
        rec.pop("__error__", None)
        rec.pop("__error_details__", None)
    return rec


class LokiStore(Store):
    def __init__(self, domain: LogDomain, connector: LokiConnector) -> None:
        self.domain = domain
        self.connector = connector

    async def get(self, query: Query, constraint: Optional[Constraint], result: Appender) -> None:
        c = (constraint or Constraint()).default()
        payload = await self.connector.query_range(
            with_json_stage(query.data),
            start=to_nanoseconds(c.start),
            end=to_nanoseconds(c.end),
            limit=c.limit,
        )
        entries = [to_record(e) for e in LokiConnector.entries(payload)]
        log.debug("loki query=%s entries=%d", query, len(entries))
        result.append(*entries)
