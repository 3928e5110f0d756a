"""Tests for ElasticsearchBackend against a mocked client.

No cluster is needed: the ``elasticsearch.Elasticsearch`` client is
replaced by a MagicMock and only the request shapes and the handling of
responses and client errors are checked.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from elastic_transport import ApiResponseMeta, HttpHeaders, NodeConfig
from elasticsearch import ConnectionError as ESConnectionError
from elasticsearch import Elasticsearch, NotFoundError

from elastic_graph import ClientMode, ElasticGraphConfig, create_backend
from elastic_graph.backends import ElasticsearchBackend, InMemoryBackend
from elastic_graph.backends import elasticsearch_backend as es_module
from elastic_graph.backends import factory
from elastic_graph.batch import (
    REMOVE_FIELD_SCRIPT,
    DeleteOperation,
    IndexOperation,
    UpdateOperation,
)
from elastic_graph.exceptions import BackendOperationError, ConfigurationError
from elastic_graph.filters import TermFilter


def _api_error(cls, status: int, error_type: str = "error"):
    meta = ApiResponseMeta(
        status=status,
        http_version="1.1",
        headers=HttpHeaders(),
        duration=0.0,
        node=NodeConfig("http", "localhost", 9200),
    )
    return cls(message=error_type, meta=meta, body={"error": {"type": error_type}})


@pytest.fixture
def client() -> MagicMock:
    return MagicMock()


@pytest.fixture
def es(client: MagicMock) -> ElasticsearchBackend:
    return ElasticsearchBackend(client)


# ── Construction ────────────────────────────────────────────────────


class TestConstruction:
    def test_from_config_builds_client(self) -> None:
        cfg = ElasticGraphConfig(hosts=["es1"], port=9201)
        backend = ElasticsearchBackend.from_config(cfg)
        assert isinstance(backend.client, Elasticsearch)
        backend.close()

    def test_factory_selects_backend(self) -> None:
        assert isinstance(create_backend(ElasticGraphConfig(client_mode=ClientMode.MEMORY)), InMemoryBackend)
        backend = create_backend(ElasticGraphConfig())
        assert isinstance(backend, ElasticsearchBackend)
        backend.close()

    def test_factory_checks_cluster_name(self, client: MagicMock, monkeypatch) -> None:
        client.info.return_value = {"cluster_name": "other"}
        monkeypatch.setattr(
            factory.ElasticsearchBackend, "from_config", classmethod(lambda cls, _cfg: cls(client))
        )
        with pytest.raises(ConfigurationError, match="expected 'graphs'"):
            create_backend(ElasticGraphConfig(cluster_name="graphs"))
        client.info.assert_called_once_with()

    def test_verify_cluster(self, es: ElasticsearchBackend, client: MagicMock) -> None:
        client.info.return_value = {"cluster_name": "graphs"}
        es.verify_cluster("graphs")
        with pytest.raises(ConfigurationError, match="expected 'other'"):
            es.verify_cluster("other")


# ── Index management ────────────────────────────────────────────────


class TestEnsureIndex:
    def test_existing_index_is_left_alone(self, es: ElasticsearchBackend, client: MagicMock) -> None:
        client.indices.exists.return_value = True
        es.ensure_index("g")
        client.indices.create.assert_not_called()

    def test_missing_index_is_created(self, es: ElasticsearchBackend, client: MagicMock) -> None:
        client.indices.exists.return_value = False
        es.ensure_index("g", mappings={"properties": {}}, settings={"index": {}})
        client.indices.create.assert_called_once_with(
            index="g", mappings={"properties": {}}, settings={"index": {}}
        )


# ── Writes ──────────────────────────────────────────────────────────


class TestExecute:
    def test_create(self, es: ElasticsearchBackend, client: MagicMock) -> None:
        es.execute(IndexOperation("g", "1", {"a": 1}))
        client.create.assert_called_once_with(index="g", id="1", document={"a": 1})

    def test_conflict_is_wrapped(self, es: ElasticsearchBackend, client: MagicMock) -> None:
        from elasticsearch import ConflictError

        client.create.side_effect = _api_error(ConflictError, 409, "version_conflict_engine_exception")
        with pytest.raises(BackendOperationError) as exc_info:
            es.execute(IndexOperation("g", "1", {}))
        assert exc_info.value.status == 409
        assert exc_info.value.operation == "create"

    def test_delete_missing_is_ignored(self, es: ElasticsearchBackend, client: MagicMock) -> None:
        client.delete.side_effect = _api_error(NotFoundError, 404, "not_found")
        es.execute(DeleteOperation("g", "1"))
        client.delete.assert_called_once_with(index="g", id="1")

    def test_transport_error_is_wrapped(self, es: ElasticsearchBackend, client: MagicMock) -> None:
        client.delete.side_effect = ESConnectionError("connection refused")
        with pytest.raises(BackendOperationError) as exc_info:
            es.execute(DeleteOperation("g", "1"))
        assert exc_info.value.status is None

    def test_update_doc(self, es: ElasticsearchBackend, client: MagicMock) -> None:
        es.execute(UpdateOperation("g", "1", set_fields={"a": 2}))
        client.update.assert_called_once_with(index="g", id="1", doc={"a": 2})

    def test_remove_field_is_a_parameter(self, es: ElasticsearchBackend, client: MagicMock) -> None:
        key = "x'); ctx._source.clear(); ('"
        es.execute(UpdateOperation("g", "1", remove_field=key))
        script = client.update.call_args.kwargs["script"]
        assert script["source"] == REMOVE_FIELD_SCRIPT
        assert script["params"] == {"field": key}


class TestBulk:
    def test_bulk(self, es: ElasticsearchBackend, monkeypatch) -> None:
        calls = {}

        def fake_bulk(client, actions, **kwargs):
            calls["actions"] = actions
            calls["kwargs"] = kwargs
            return 2, [
                {"delete": {"_id": "9", "status": 404}},
                {"create": {"_id": "1", "status": 409}},
            ]

        monkeypatch.setattr(es_module, "es_bulk", fake_bulk)
        result = es.bulk(
            [
                IndexOperation("g", "1", {"a": 1}),
                DeleteOperation("g", "9"),
                UpdateOperation("g", "2", remove_field="a"),
            ]
        )
        assert [a["_op_type"] for a in calls["actions"]] == ["create", "delete", "update"]
        assert calls["kwargs"] == {"raise_on_error": False, "stats_only": False}
        assert result.succeeded == 2
        assert result.errors == [{"create": {"_id": "1", "status": 409}}]

    def test_empty_bulk_sends_nothing(self, es: ElasticsearchBackend, monkeypatch) -> None:
        def fail(*_args, **_kwargs):
            raise AssertionError("bulk must not be sent")

        monkeypatch.setattr(es_module, "es_bulk", fail)
        assert es.bulk([]).ok


# ── Reads ───────────────────────────────────────────────────────────


class TestReads:
    def test_mget(self, es: ElasticsearchBackend, client: MagicMock) -> None:
        client.mget.return_value = {
            "docs": [
                {"_index": "g", "_id": "1", "found": True, "_source": {"a": 1}},
                {"_index": "g", "_id": "2", "found": False},
                {"_index": "gone", "_id": "3", "error": {"type": "index_not_found_exception"}},
            ]
        }
        hits = es.mget([("g", "1"), ("g", "2"), ("gone", "3")])
        client.mget.assert_called_once_with(
            docs=[
                {"_index": "g", "_id": "1"},
                {"_index": "g", "_id": "2"},
                {"_index": "gone", "_id": "3"},
            ]
        )
        assert [h.found for h in hits] == [True, False, False]
        assert hits[0].source == {"a": 1}

    def test_mget_other_errors_raise(self, es: ElasticsearchBackend, client: MagicMock) -> None:
        client.mget.return_value = {
            "docs": [{"_index": "g", "_id": "1", "error": {"type": "shard_failure"}}]
        }
        with pytest.raises(BackendOperationError):
            es.mget([("g", "1")])

    def test_mget_no_refs(self, es: ElasticsearchBackend, client: MagicMock) -> None:
        assert es.mget([]) == []
        client.mget.assert_not_called()

    def test_search(self, es: ElasticsearchBackend, client: MagicMock) -> None:
        client.search.return_value = {
            "hits": {"hits": [{"_index": "g", "_id": "1", "_source": {"name": "marko"}}]}
        }
        hits = es.search(["g"], TermFilter("name", "marko"), 50)
        client.search.assert_called_once_with(
            index=["g"],
            query={"bool": {"must": {"match_all": {}}, "filter": {"term": {"name": "marko"}}}},
            from_=0,
            size=50,
        )
        assert hits[0].doc_id == "1"
        assert hits[0].source == {"name": "marko"}

    def test_refresh(self, es: ElasticsearchBackend, client: MagicMock) -> None:
        es.refresh(("a", "b"))
        client.indices.refresh.assert_called_once_with(index=["a", "b"])
