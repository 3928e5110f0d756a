"""Document backends the graph service runs on.

Public API:
    DocumentHit: A document returned by get or search.
    DocumentBackend: Protocol all backends implement.
    ElasticsearchBackend: Elasticsearch 8.x implementation.
    InMemoryBackend: Dict-based implementation for tests and embedded use.
    create_backend: Factory selecting a backend from configuration.
"""

from __future__ import annotations

from .elasticsearch_backend import ElasticsearchBackend
from .factory import create_backend
from .memory_backend import InMemoryBackend
from .protocol import DocumentBackend, DocumentHit

__all__ = [
    "DocumentHit",
    "DocumentBackend",
    "ElasticsearchBackend",
    "InMemoryBackend",
    "create_backend",
]
