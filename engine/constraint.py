"""
Query constraints: time window, result limit and per-store timeout.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Mapping, Optional, Union

from config import settings
from engine.errors import ValidationError

TimeLike = Union[datetime, str, int, float, None]


def parse_time(value: TimeLike) -> Optional[datetime]:
    """Accept a datetime, an RFC 3339 string or epoch seconds."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, bool):
        raise ValidationError(f"invalid time: {value!r}")
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    try:
        t = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError as exc:
        raise ValidationError(f"invalid time: {value!r}") from exc
    return t if t.tzinfo else t.replace(tzinfo=timezone.utc)


def _later(a: Optional[datetime], b: Optional[datetime]) -> Optional[datetime]:
    if a is None:
        return b
    if b is None:
        return a
    return max(a, b)


def _earlier(a: Any, b: Any) -> Any:
    if a is None:
        return b
    if b is None:
        return a
    return min(a, b)


@dataclass(frozen=True)
class Constraint:
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    limit: Optional[int] = None
    timeout: Optional[float] = None

    def __post_init__(self) -> None:
        if self.limit is not None and self.limit < 0:
            raise ValidationError(f"invalid limit: {self.limit}")
        if self.timeout is not None and self.timeout < 0:
            raise ValidationError(f"invalid timeout: {self.timeout}")
        if self.start and self.end and self.start > self.end:
            raise ValidationError(f"constraint start {self.start} is after end {self.end}")

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "Constraint":
        if not data:
            return cls()
        unknown = set(data) - {"start", "end", "limit", "timeout"}
        if unknown:
            raise ValidationError(f"unknown constraint fields: {sorted(unknown)}")
        limit = data.get("limit")
        timeout = data.get("timeout")
        return cls(
            start=parse_time(data.get("start")),
            end=parse_time(data.get("end")),
            limit=int(limit) if limit is not None else None,
            timeout=float(timeout) if timeout is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self.start is not None:
            out["start"] = self.start.isoformat()
        if self.end is not None:
            out["end"] = self.end.isoformat()
        if self.limit is not None:
            out["limit"] = self.limit
        if self.timeout is not None:
            out["timeout"] = self.timeout
        return out

    def combine(self, other: Optional["Constraint"]) -> "Constraint":
        """Return the intersection of both constraints. Neither operand changes."""
        if other is None:
            return self
        start = _later(self.start, other.start)
        end = _earlier(self.end, other.end)
        if start and end and start > end:
            # disjoint windows collapse to an empty window at the end
            start = end
        return Constraint(
            start=start,
            end=end,
            limit=_earlier(self.limit, other.limit),
            timeout=_earlier(self.timeout, other.timeout),
        )

    def default(self, now: Optional[datetime] = None) -> "Constraint":
        end = self.end or now or datetime.now(timezone.utc)
        start = self.start or end - timedelta(seconds=settings.default_duration_seconds)
        if start > end:
            start = end
        limit = self.limit if self.limit is not None else settings.default_limit
        return replace(self, start=start, end=end, limit=limit)

    def compare_time(self, t: datetime) -> int:
        """-1 if t is before the window, +1 if after, 0 if inside or unbounded."""
        t = parse_time(t) or t
        if self.start is not None and t < self.start:
            return -1
        if self.end is not None and t > self.end:
            return 1
        return 0

    def __str__(self) -> str:
        return str(self.to_dict())
