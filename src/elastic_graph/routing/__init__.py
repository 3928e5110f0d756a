"""Routing strategies: where elements live and which indices a search hits.

Public API:
    RoutingStrategy: Abstract base all strategies implement.
    AddElementResult: Placement of a new element.
    SearchResult: Target indices plus compiled filter.
    build_source: Assemble a document source for a new element.
    DefaultRoutingStrategy: Single-index implementation.
    register_routing_strategy / load_routing_strategy: Named registry.
"""

from __future__ import annotations

from .base import AddElementResult, RoutingStrategy, SearchResult, build_source
from .default import DefaultRoutingStrategy, validate_label
from .registry import (
    available_routing_strategies,
    load_routing_strategy,
    register_routing_strategy,
    unregister_routing_strategy,
)

__all__ = [
    "RoutingStrategy",
    "AddElementResult",
    "SearchResult",
    "build_source",
    "DefaultRoutingStrategy",
    "validate_label",
    "register_routing_strategy",
    "unregister_routing_strategy",
    "available_routing_strategies",
    "load_routing_strategy",
]
