"""
Correlation engine packages for Crosslink.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from engine.constraint import Constraint
from engine.core import Engine, EngineBuilder, build_engine
from engine.graph import Path, ResultGraph, RuleGraph
from engine.traverse import Start

__all__ = [
    "Constraint",
    "Engine",
    "EngineBuilder",
    "Path",
    "ResultGraph",
    "RuleGraph",
    "Start",
    "build_engine",
]
