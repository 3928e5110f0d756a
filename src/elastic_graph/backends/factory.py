"""Factory for document backends."""

from __future__ import annotations

import logging

from ..config import ClientMode, ElasticGraphConfig
from ..exceptions import ConfigurationError
from .elasticsearch_backend import ElasticsearchBackend
from .memory_backend import InMemoryBackend
from .protocol import DocumentBackend

logger = logging.getLogger(__name__)


def create_backend(config: ElasticGraphConfig) -> DocumentBackend:
    """Create the backend selected by ``config.client_mode``.

    Raises:
        ConfigurationError: If the mode is unrecognised or the connected
            cluster does not match ``config.cluster_name``.
    """
    if config.client_mode is ClientMode.HTTP:
        backend = ElasticsearchBackend.from_config(config)
        if config.cluster_name is not None:
            backend.verify_cluster(config.cluster_name)
        logger.debug("Using Elasticsearch at %s", ", ".join(config.host_urls()))
        return backend
    elif config.client_mode is ClientMode.MEMORY:
        logger.debug("Using in-memory document backend")
        return InMemoryBackend()
    else:
        raise ConfigurationError(
            f"Unknown client mode: {config.client_mode!r}.  "
            f"Choose from: {', '.join(repr(m.value) for m in ClientMode)}"
        )


__all__ = ["create_backend"]
