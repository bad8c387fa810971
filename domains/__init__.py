"""
Built-in signal domains.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from typing import List

from domains.log import LogDomain
from domains.mock import MockDomain
from engine.domain import Domain


def all_domains() -> List[Domain]:
    """Fresh instances of every built-in domain."""
    return [LogDomain(), MockDomain()]


__all__ = ["LogDomain", "MockDomain", "all_domains"]
