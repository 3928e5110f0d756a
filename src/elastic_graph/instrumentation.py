"""Per-operation latency and event counters on prometheus_client.

Purely observational: nothing here influences control flow, and an
exception inside a timed block is re-raised unchanged after the elapsed
time and the error are recorded.

Each ``Instrumentation`` owns its own ``CollectorRegistry`` so several
services (and tests) never share metric state.  Pass ``registry`` to
expose the metrics through an existing exporter instead.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from prometheus_client import CollectorRegistry, Counter, Histogram

logger = logging.getLogger(__name__)

NAMESPACE = "elastic_graph"
LATENCY = f"{NAMESPACE}_op_latency_seconds"
ERRORS = f"{NAMESPACE}_op_errors"
EVENTS = f"{NAMESPACE}_events"


class Instrumentation:
    """Latency histogram and error counter labelled by ``op``, plus named event counters.

    Args:
        registry: Registry to register the metrics in; a private one when None.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()
        self._latency = Histogram(
            "op_latency_seconds",
            "Latency of graph service operations",
            ("op",),
            namespace=NAMESPACE,
            registry=self.registry,
        )
        self._errors = Counter(
            "op_errors",
            "Graph service operations that raised",
            ("op",),
            namespace=NAMESPACE,
            registry=self.registry,
        )
        self._events = Counter(
            "events",
            "Named event counts (search hits, bulk operations)",
            ("event",),
            namespace=NAMESPACE,
            registry=self.registry,
        )

    def counter(self, name: str) -> Counter:
        """Event counter child for *name*; call ``inc(amount)`` on it."""
        return self._events.labels(name)

    @contextmanager
    def time(self, name: str) -> Iterator[None]:
        """Time one call under *name*, counting it as an error if it raises."""
        try:
            with self._latency.labels(name).time():
                yield
        except Exception:
            self._errors.labels(name).inc()
            raise

    def snapshot(self) -> dict[str, dict[str, float]]:
        """Current values keyed by operation or event name.

        Operations map to ``count``, ``total_s``, ``avg_s`` and ``errors``;
        events map to ``count``.
        """
        data: dict[str, dict[str, float]] = {}
        for metric in self.registry.collect():
            for sample in metric.samples:
                if metric.name == LATENCY:
                    stats = data.setdefault(sample.labels["op"], {"count": 0, "total_s": 0.0})
                    if sample.name == f"{LATENCY}_count":
                        stats["count"] = int(sample.value)
                    elif sample.name == f"{LATENCY}_sum":
                        stats["total_s"] = sample.value
                elif metric.name == ERRORS and sample.name == f"{ERRORS}_total":
                    stats = data.setdefault(sample.labels["op"], {"count": 0, "total_s": 0.0})
                    stats["errors"] = int(sample.value)
                elif metric.name == EVENTS and sample.name == f"{EVENTS}_total":
                    data[sample.labels["event"]] = {"count": int(sample.value)}

        for stats in data.values():
            if "total_s" in stats:
                stats.setdefault("errors", 0)
                stats["avg_s"] = stats["total_s"] / stats["count"] if stats["count"] else 0.0
        return data

    def report(self) -> dict[str, dict[str, float]]:
        """Log every operation and event at INFO and return the snapshot."""
        data = self.snapshot()
        for name in sorted(data):
            stats = data[name]
            if "total_s" in stats:
                logger.info(
                    "timer %s: count=%d errors=%d total=%.3fs avg=%.4fs",
                    name, stats["count"], stats["errors"], stats["total_s"], stats["avg_s"],
                )
            else:
                logger.info("counter %s: %d", name, stats["count"])
        return data


__all__ = ["Instrumentation", "NAMESPACE"]
