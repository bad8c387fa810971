"""
Exception hierarchy for the correlation engine.

Configuration errors are raised while building an engine, validation errors
before any store is called, store errors are collected during traversal and
reported alongside partial results.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from typing import Any, Iterable, List, Optional


class CorrelationError(Exception):
    pass


# -- not found -------------------------------------------------------------

class NotFoundError(CorrelationError):
    pass


class DomainNotFoundError(NotFoundError):
    def __init__(self, domain: str) -> None:
        super().__init__(f"domain not found: {domain}")
        self.domain = domain


class ClassNotFoundError(NotFoundError):
    def __init__(self, domain: str, name: str) -> None:
        super().__init__(f"class not found: {domain}:{name}")
        self.domain = domain
        self.name = name


class StoreNotFoundError(NotFoundError):
    def __init__(self, domain: str) -> None:
        super().__init__(f"no store for domain: {domain}")
        self.domain = domain


class RuleNotFoundError(NotFoundError):
    def __init__(self, name: str) -> None:
        super().__init__(f"rule not found: {name}")
        self.name = name


# -- configuration ---------------------------------------------------------

class ConfigError(CorrelationError):
    pass


class RuleConfigError(ConfigError):
    def __init__(self, rule: str, message: str) -> None:
        super().__init__(f"rule {rule}: {message}")
        self.rule = rule


class GoalMismatchError(ConfigError):
    """A rendered rule produced a query for a class other than the rule goal."""

    def __init__(self, rule: str, got: Any, want: Any) -> None:
        super().__init__(f"rule {rule}: query class {got} does not match goal {want}")
        self.rule = rule
        self.got = got
        self.want = want


# -- request validation ----------------------------------------------------

class ValidationError(CorrelationError):
    pass


class InvalidNameError(ValidationError):
    pass


class InvalidPathError(ValidationError):
    pass


# -- rule application ------------------------------------------------------

class RuleNotApplicable(CorrelationError):
    """The rule does not apply to this object. Callers skip, never abort."""

    def __init__(self, rule: str, reason: str) -> None:
        super().__init__(f"rule {rule} does not apply: {reason}")
        self.rule = rule
        self.reason = reason


class RuleApplyError(CorrelationError):
    """The rule rendered text the goal domain could not parse as a query."""

    def __init__(self, rule: str, text: str, cause: Exception) -> None:
        super().__init__(f"rule {rule}: invalid query {text!r}: {cause}")
        self.rule = rule
        self.text = text


# -- traversal outcome -----------------------------------------------------

class PartialResultError(CorrelationError):
    """Some store calls or rule applications failed; the other results are still valid."""

    def __init__(self, errors: Iterable[Exception]) -> None:
        self.errors: List[Exception] = list(errors)
        joined = "; ".join(str(e) for e in self.errors)
        super().__init__(f"results may be incomplete, there were errors: {joined}")


class StoreErrors(CorrelationError):
    """Every store call failed, there are no results."""

    def __init__(self, errors: Iterable[Exception]) -> None:
        self.errors: List[Exception] = list(errors)
        super().__init__("; ".join(str(e) for e in self.errors))


class RequestTimeout(CorrelationError):
    """The request was cut short. ``partial`` holds whatever was collected."""

    def __init__(self, timeout: Optional[float], partial: Any = None) -> None:
        super().__init__(f"request timed out after {timeout}s")
        self.timeout = timeout
        self.partial = partial


class ErrorCollector:
    """Collects errors with unique messages, remembers whether any store call succeeded or failed."""

    def __init__(self) -> None:
        self._errors: List[Exception] = []
        self._seen: set[str] = set()
        self.ok = 0
        self.failed = 0

    def success(self) -> None:
        self.ok += 1

    def add(self, err: Exception, store: bool = False) -> bool:
        """Record err; ``store`` marks the failure of a store call rather than of a rule."""
        if store:
            self.failed += 1
        key = f"{type(err).__name__}: {err}"
        if key in self._seen:
            return False
        self._seen.add(key)
        self._errors.append(err)
        return True

    @property
    def errors(self) -> List[Exception]:
        return list(self._errors)

    def error(self) -> Optional[CorrelationError]:
        if not self._errors:
            return None
        # store calls ran and none succeeded
        if self.failed and not self.ok:
            return StoreErrors(self._errors)
        return PartialResultError(self._errors)

    def __bool__(self) -> bool:
        return bool(self._errors)
