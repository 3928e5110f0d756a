"""Named registry of routing strategies.

A strategy is selected at start-up either by its registered name or by a
dotted import path (``pkg.module.Class`` or ``pkg.module:Class``).
"""

from __future__ import annotations

import importlib
import logging

from ..exceptions import ConfigurationError, StrategyLoadError
from .base import RoutingStrategy
from .default import DefaultRoutingStrategy

logger = logging.getLogger(__name__)

_STRATEGIES: dict[str, type[RoutingStrategy]] = {
    "default": DefaultRoutingStrategy,
}


def register_routing_strategy(name: str, strategy_cls: type[RoutingStrategy]) -> None:
    """Make *strategy_cls* loadable under *name*.

    Raises:
        TypeError: If *strategy_cls* is not a RoutingStrategy subclass.
    """
    if not (isinstance(strategy_cls, type) and issubclass(strategy_cls, RoutingStrategy)):
        raise TypeError(f"{strategy_cls!r} is not a RoutingStrategy subclass")
    _STRATEGIES[name] = strategy_cls


def unregister_routing_strategy(name: str) -> None:
    _STRATEGIES.pop(name, None)


def available_routing_strategies() -> list[str]:
    return sorted(_STRATEGIES)


def _import_strategy(path: str) -> type:
    if ":" in path:
        module_name, _, attr = path.partition(":")
    else:
        module_name, _, attr = path.rpartition(".")
    if not module_name or not attr:
        raise StrategyLoadError(f"failed to load routing strategy: {path}")
    try:
        module = importlib.import_module(module_name)
        return getattr(module, attr)
    except (ImportError, AttributeError) as e:
        raise StrategyLoadError(f"failed to load routing strategy: {path}") from e


def load_routing_strategy(name: str) -> RoutingStrategy:
    """Construct the routing strategy registered as (or importable at) *name*.

    Raises:
        ConfigurationError: If *name* is neither registered nor a dotted path.
        StrategyLoadError: If import or construction fails, or the loaded
            object is not a RoutingStrategy.
    """
    strategy_cls = _STRATEGIES.get(name)
    if strategy_cls is None:
        if "." not in name and ":" not in name:
            raise ConfigurationError(
                f"Unknown routing strategy: {name!r}.  "
                f"Choose from: {', '.join(available_routing_strategies())} "
                f"or give a dotted import path"
            )
        strategy_cls = _import_strategy(name)

    try:
        strategy = strategy_cls()
    except Exception as e:
        raise StrategyLoadError(f"failed to construct routing strategy: {name}") from e

    if not isinstance(strategy, RoutingStrategy):
        raise StrategyLoadError(f"{name} does not implement RoutingStrategy")
    logger.debug("Loaded routing strategy %r", strategy)
    return strategy


__all__ = [
    "register_routing_strategy",
    "unregister_routing_strategy",
    "available_routing_strategies",
    "load_routing_strategy",
]
