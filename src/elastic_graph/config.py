"""Service configuration.

Public API:
    ClientMode: How the service reaches its document backend.
    ElasticGraphConfig: Validated configuration dataclass.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .exceptions import ConfigurationError


class ClientMode(str, Enum):
    """Backend connection mode."""

    HTTP = "http"  # remote cluster via the elasticsearch client
    MEMORY = "memory"  # in-process document store


_TRUE = {"true", "1", "yes", "on"}
_FALSE = {"false", "0", "no", "off"}


def _as_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in _TRUE | _FALSE:
        return value.strip().lower() in _TRUE
    raise ConfigurationError(f"{key} must be a boolean, got {value!r}")


def _as_int(key: str, value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{key} must be an integer, got {value!r}") from e


@dataclass
class ElasticGraphConfig:
    """Configuration for ElasticGraphService.

    Attributes:
        hosts: Cluster host names or addresses.
        port: HTTP port used for hosts given without a scheme.
        cluster_name: Expected cluster name; verified at start-up when set.
        client_mode: How to reach the backend.
        refresh: Force an index refresh before every search.
        batch: Stage mutations until commit() instead of sending them immediately.
        routing_strategy: Registry name or dotted import path of the strategy.
        index_name: Index used by the default routing strategy.
        max_results: Result window of a single search request.
        request_timeout: Per-request timeout in seconds (http mode).
    """

    hosts: list[str] = field(default_factory=lambda: ["127.0.0.1"])
    port: int = 9200
    cluster_name: str | None = None
    client_mode: ClientMode = ClientMode.HTTP
    refresh: bool = True
    batch: bool = False
    routing_strategy: str = "default"
    index_name: str = "graph"
    max_results: int = 10000
    request_timeout: float = 30.0

    def __post_init__(self):
        """Validate configuration values."""
        try:
            self.client_mode = ClientMode(self.client_mode)
        except ValueError as e:
            raise ConfigurationError(
                f"client mode unknown: {self.client_mode!r} "
                f"(choose from {', '.join(m.value for m in ClientMode)})"
            ) from e

        if not self.hosts:
            raise ConfigurationError("at least one host is required")

        if not isinstance(self.port, int) or not 0 < self.port < 65536:
            raise ConfigurationError(f"port out of range: {self.port!r}")

        if not isinstance(self.max_results, int) or self.max_results <= 0:
            raise ConfigurationError("max_results must be positive integer")

        if (
            isinstance(self.request_timeout, bool)
            or not isinstance(self.request_timeout, (int, float))
            or self.request_timeout <= 0
        ):
            raise ConfigurationError(f"request_timeout must be a positive number, got {self.request_timeout!r}")

        if not self.routing_strategy:
            raise ConfigurationError("routing_strategy cannot be empty")

    def host_urls(self) -> list[str]:
        """Hosts as URLs, adding scheme and port where missing."""
        urls = []
        for host in self.hosts:
            if "://" in host:
                urls.append(host)
            elif ":" in host:
                urls.append(f"http://{host}")
            else:
                urls.append(f"http://{host}:{self.port}")
        return urls

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> ElasticGraphConfig:
        """Build a config from dotted ``elasticsearch.*`` keys.

        Missing keys fall back to the dataclass defaults.
        """
        kwargs: dict[str, Any] = {}

        if "elasticsearch.cluster.address" in mapping:
            raw = mapping["elasticsearch.cluster.address"]
            if isinstance(raw, str):
                raw = raw.split(",")
            kwargs["hosts"] = [h.strip() for h in raw if h and h.strip()]
        if "elasticsearch.port" in mapping:
            kwargs["port"] = _as_int("elasticsearch.port", mapping["elasticsearch.port"])
        if "elasticsearch.cluster.name" in mapping:
            kwargs["cluster_name"] = mapping["elasticsearch.cluster.name"]
        if "elasticsearch.client" in mapping:
            kwargs["client_mode"] = str(mapping["elasticsearch.client"]).strip().lower()
        if "elasticsearch.refresh" in mapping:
            kwargs["refresh"] = _as_bool("elasticsearch.refresh", mapping["elasticsearch.refresh"])
        if "elasticsearch.batch" in mapping:
            kwargs["batch"] = _as_bool("elasticsearch.batch", mapping["elasticsearch.batch"])
        if "elasticsearch.routing_strategy" in mapping:
            kwargs["routing_strategy"] = mapping["elasticsearch.routing_strategy"]
        if "elasticsearch.index.name" in mapping:
            kwargs["index_name"] = mapping["elasticsearch.index.name"]
        if "elasticsearch.search.max_results" in mapping:
            kwargs["max_results"] = _as_int(
                "elasticsearch.search.max_results", mapping["elasticsearch.search.max_results"]
            )
        if "elasticsearch.request_timeout" in mapping:
            try:
                kwargs["request_timeout"] = float(mapping["elasticsearch.request_timeout"])
            except (TypeError, ValueError) as e:
                raise ConfigurationError(
                    f"elasticsearch.request_timeout must be a number, got "
                    f"{mapping['elasticsearch.request_timeout']!r}"
                ) from e

        return cls(**kwargs)


__all__ = ["ClientMode", "ElasticGraphConfig"]
