"""
Rule package exports.

Rules are typed edges between classes. Template rules render their goal query
from the start object; the factory expands declarative specs into rules.
"""

from engine.rules.factory import RuleFactory
from engine.rules.rule import FuncRule, Rule
from engine.rules.spec import AliasSpec, ClassSpec, EngineConfig, ResultSpec, RuleSpec
from engine.rules.template import TemplateRule, new_environment

__all__ = [
    "AliasSpec",
    "ClassSpec",
    "EngineConfig",
    "FuncRule",
    "ResultSpec",
    "Rule",
    "RuleFactory",
    "RuleSpec",
    "TemplateRule",
    "new_environment",
]
