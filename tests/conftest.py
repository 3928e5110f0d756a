"""Pytest configuration and fixtures for elastic-graph-lib tests."""

import pytest

from elastic_graph import ClientMode, ElasticGraphConfig, ElasticGraphService, InMemoryBackend


@pytest.fixture
def backend():
    """Fresh in-memory document backend for each test."""
    return InMemoryBackend()


@pytest.fixture
def config():
    """Immediate (non-batched) config with refresh-before-search enabled."""
    return ElasticGraphConfig(client_mode=ClientMode.MEMORY, index_name="test-graph")


@pytest.fixture
def service(config, backend):
    """Service over the in-memory backend, closed after the test."""
    svc = ElasticGraphService(config=config, backend=backend)
    yield svc
    if not svc._closed:
        svc.close()


@pytest.fixture
def batch_service(backend):
    """Service with mutation batching enabled."""
    cfg = ElasticGraphConfig(client_mode=ClientMode.MEMORY, index_name="test-graph", batch=True)
    svc = ElasticGraphService(config=cfg, backend=backend)
    yield svc
    if not svc._closed:
        svc.close()
