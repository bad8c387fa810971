"""
Paths: chains of rules where each goal is the next rule's start.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Sequence, Tuple

from engine.domain import Class
from engine.errors import InvalidPathError
from engine.rules.rule import Rule


@dataclass(frozen=True)
class Path:
    # origin makes the zero-length path from a class to itself representable
    origin: Class
    rules: Tuple[Rule, ...] = ()

    @classmethod
    def of(cls, rules: Sequence[Rule]) -> "Path":
        if not rules:
            raise InvalidPathError("a path without rules needs an explicit origin class")
        return cls(rules[0].start, tuple(rules))

    @property
    def start(self) -> Class:
        return self.origin

    @property
    def goal(self) -> Class:
        return self.rules[-1].goal if self.rules else self.origin

    def validate(self) -> None:
        if self.rules and self.rules[0].start != self.origin:
            raise InvalidPathError(f"path starts at {self.origin} but first rule is {self.rules[0]}")
        for prev, nxt in zip(self.rules, self.rules[1:]):
            if prev.goal != nxt.start:
                raise InvalidPathError(f"broken path: {prev} does not lead to {nxt}")

    def __len__(self) -> int:
        return len(self.rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self.rules)

    def __str__(self) -> str:
        if not self.rules:
            return f"[{self.origin}]"
        return "[" + ", ".join(str(r) for r in self.rules) + "]"
