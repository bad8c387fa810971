"""
Rule graph package exports.

``RuleGraph`` holds the shared, read-only rule topology and its path search.
``ResultGraph`` is the per-request overlay that traversal fills with objects
and query counts.
"""

from engine.graph.graph import RuleGraph
from engine.graph.path import Path
from engine.graph.result import Line, Node, QueryCount, QueryCounts, ResultGraph

__all__ = ["RuleGraph", "Path", "ResultGraph", "Node", "Line", "QueryCount", "QueryCounts"]
