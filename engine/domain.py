"""
Domain model: the contracts every signal domain implements.

A Domain owns a set of Classes and parses query text into Queries. Stores run
Queries against a backend and push Objects into an Appender. Optional
capabilities (object identity, previews, console links, template helpers) are
separate ABCs so the engine can test for them with ``isinstance``.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from config import NAME_SEPARATOR
from engine.errors import ClassNotFoundError, ConfigError, InvalidNameError

if TYPE_CHECKING:
    from engine.constraint import Constraint


class Domain(ABC):
    name: str = ""
    description: str = ""

    @abstractmethod
    def class_(self, name: str) -> Optional["Class"]: ...

    @abstractmethod
    def classes(self) -> List["Class"]: ...

    @abstractmethod
    def query(self, text: str) -> "Query":
        """Parse a full ``DOMAIN:CLASS:DATA`` query string."""

    def store(self, config: Mapping[str, Any]) -> "Store":
        raise ConfigError(f"domain {self.name} cannot create a store from config")

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"<Domain {self.name}>"


class Class:
    """A schema of objects within a domain. Equal by (domain name, class name)."""

    def __init__(self, domain: Domain, name: str, description: str = "") -> None:
        self.domain = domain
        self.name = name
        self.description = description

    def new(self) -> Any:
        return {}

    @property
    def full_name(self) -> str:
        return join_name(self.domain.name, self.name)

    def __str__(self) -> str:
        return self.full_name

    def __repr__(self) -> str:
        return f"<Class {self.full_name}>"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Class):
            return NotImplemented
        return (self.domain.name, self.name) == (other.domain.name, other.name)

    def __hash__(self) -> int:
        return hash((self.domain.name, self.name))


class Query(ABC):
    @property
    @abstractmethod
    def class_(self) -> Class: ...

    @property
    @abstractmethod
    def data(self) -> str: ...

    def __str__(self) -> str:
        return join_name(self.class_.domain.name, self.class_.name, self.data)

    def __repr__(self) -> str:
        return f"<Query {self}>"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Query):
            return NotImplemented
        return str(self) == str(other)

    def __hash__(self) -> int:
        return hash(str(self))


class Appender(ABC):
    @abstractmethod
    def append(self, *objects: Any) -> None: ...


class Store(ABC):
    """Runs queries for one domain. Implementations must tolerate concurrent calls."""

    domain: Domain

    @abstractmethod
    async def get(self, query: Query, constraint: Optional["Constraint"], result: Appender) -> None: ...

    async def aclose(self) -> None:
        return None


# optional capabilities -------------------------------------------------------

class IdentifiableClass(ABC):
    @abstractmethod
    def id(self, obj: Any) -> Any: ...


class PreviewableClass(ABC):
    @abstractmethod
    def preview(self, obj: Any) -> str: ...


class ConsoleConvertible(ABC):
    @abstractmethod
    def query_to_console(self, query: Query) -> str: ...

    @abstractmethod
    def console_to_query(self, url: str) -> Query: ...


class TemplateFuncProvider(ABC):
    @abstractmethod
    def template_funcs(self) -> Dict[str, Callable[..., Any]]: ...


def get_id(class_: Class, obj: Any) -> Any:
    if isinstance(class_, IdentifiableClass):
        return class_.id(obj)
    return None


def preview(class_: Class, obj: Any) -> str:
    if isinstance(class_, PreviewableClass):
        return class_.preview(obj)
    return json.dumps(obj, sort_keys=True, default=str)


# names -----------------------------------------------------------------------

def join_name(*parts: str) -> str:
    return NAME_SEPARATOR.join(parts)


def split_class_name(text: str) -> Tuple[str, str]:
    domain, sep, name = text.strip().partition(NAME_SEPARATOR)
    if not sep or not domain or not name or NAME_SEPARATOR in name:
        raise InvalidNameError(f"invalid class name: {text!r}, expected DOMAIN{NAME_SEPARATOR}CLASS")
    return domain, name


def split_query_name(text: str) -> Tuple[str, str, str]:
    parts = text.strip().split(NAME_SEPARATOR, 2)
    if len(parts) != 3 or not parts[0] or not parts[1]:
        raise InvalidNameError(
            f"invalid query: {text!r}, expected DOMAIN{NAME_SEPARATOR}CLASS{NAME_SEPARATOR}DATA"
        )
    return parts[0], parts[1], parts[2]


# base implementations --------------------------------------------------------

class SimpleQuery(Query):
    def __init__(self, class_: Class, data: str) -> None:
        self._class = class_
        self._data = data

    @property
    def class_(self) -> Class:
        return self._class

    @property
    def data(self) -> str:
        return self._data


class BaseDomain(Domain):
    """Domain with a fixed class list and ``SimpleQuery`` parsing."""

    class_type: type = Class

    def __init__(self, name: str, class_names: Iterable[str] = (), description: str = "") -> None:
        self.name = name
        self.description = description
        self._classes: Dict[str, Class] = {}
        for cname in class_names:
            self._classes[cname] = self.class_type(self, cname)

    def class_(self, name: str) -> Optional[Class]:
        return self._classes.get(name)

    def classes(self) -> List[Class]:
        return list(self._classes.values())

    def query(self, text: str) -> Query:
        domain, cname, data = split_query_name(text)
        if domain != self.name:
            raise InvalidNameError(f"query {text!r} is not in domain {self.name}")
        c = self.class_(cname)
        if c is None:
            raise ClassNotFoundError(self.name, cname)
        return self.parse_query(c, data)

    def parse_query(self, class_: Class, data: str) -> Query:
        return SimpleQuery(class_, data.strip())
