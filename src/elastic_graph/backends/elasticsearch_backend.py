"""ElasticsearchBackend -- DocumentBackend over the official elasticsearch client.

Every client call goes through ``_call`` so that client exceptions are
logged once and re-raised as ``BackendOperationError``.  No retries are
attempted here; configure timeouts on the client instead.

Public API:
    ElasticsearchBackend: DocumentBackend implementation for Elasticsearch 8.x.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Any

from elasticsearch import ApiError, Elasticsearch, TransportError
from elasticsearch.helpers import bulk as es_bulk

from ..batch import BulkResult, DeleteOperation, IndexOperation, Operation, UpdateOperation
from ..exceptions import BackendOperationError, ConfigurationError
from ..filters import Filter
from .protocol import DocumentHit

logger = logging.getLogger(__name__)


def _filtered_match_all(filter_: Filter) -> dict[str, Any]:
    return {"bool": {"must": {"match_all": {}}, "filter": filter_.to_query()}}


def _is_missing_delete(item: dict[str, Any]) -> bool:
    """True for a bulk error item that only reports a delete of a missing doc."""
    info = item.get("delete")
    return info is not None and info.get("status") == 404


class ElasticsearchBackend:
    """Elasticsearch implementation of the DocumentBackend protocol.

    Args:
        client: A configured ``elasticsearch.Elasticsearch`` instance.
    """

    def __init__(self, client: Elasticsearch) -> None:
        self._client = client

    @classmethod
    def from_config(cls, config: Any) -> ElasticsearchBackend:
        """Build a client for ``config.host_urls()`` (no I/O happens here)."""
        client = Elasticsearch(
            hosts=config.host_urls(),
            request_timeout=config.request_timeout,
        )
        return cls(client)

    @property
    def client(self) -> Elasticsearch:
        return self._client

    def _call(self, operation: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        try:
            return fn(*args, **kwargs)
        except ApiError as exc:
            status = getattr(getattr(exc, "meta", None), "status", None)
            logger.error("Elasticsearch %s failed (status=%s): %s", operation, status, exc)
            raise BackendOperationError(operation, str(exc), status=status) from exc
        except TransportError as exc:
            logger.error("Elasticsearch %s failed: %s", operation, exc)
            raise BackendOperationError(operation, str(exc)) from exc

    def verify_cluster(self, expected_name: str) -> None:
        """Check that the connected cluster reports *expected_name*.

        Raises:
            ConfigurationError: On a cluster name mismatch.
        """
        info = self._call("info", self._client.info)
        actual = info.get("cluster_name")
        if actual != expected_name:
            raise ConfigurationError(
                f"connected to cluster {actual!r}, expected {expected_name!r}"
            )
        logger.info("Connected to Elasticsearch cluster %s", actual)

    # ── index management ─────────────────────────────────────

    def ensure_index(
        self,
        index: str,
        mappings: dict[str, Any] | None = None,
        settings: dict[str, Any] | None = None,
    ) -> None:
        if self._call("indices.exists", self._client.indices.exists, index=index):
            return
        try:
            self._call(
                "indices.create",
                self._client.indices.create,
                index=index,
                mappings=mappings,
                settings=settings,
            )
        except BackendOperationError as e:
            # Another writer created it between the exists check and create.
            if e.status == 400 and "resource_already_exists" in str(e):
                return
            raise
        logger.info("Created index %s", index)

    # ── writes ───────────────────────────────────────────────

    def execute(self, operation: Operation) -> None:
        if isinstance(operation, IndexOperation):
            self._call(
                "create",
                self._client.create,
                index=operation.index,
                id=operation.doc_id,
                document=operation.source,
            )
        elif isinstance(operation, DeleteOperation):
            try:
                self._call(
                    "delete", self._client.delete, index=operation.index, id=operation.doc_id
                )
            except BackendOperationError as e:
                if e.status != 404:
                    raise
                logger.debug(
                    "delete of missing document %s/%s ignored", operation.index, operation.doc_id
                )
        elif isinstance(operation, UpdateOperation):
            script = operation.script()
            if script is not None:
                self._call(
                    "update",
                    self._client.update,
                    index=operation.index,
                    id=operation.doc_id,
                    script=script,
                )
            else:
                self._call(
                    "update",
                    self._client.update,
                    index=operation.index,
                    id=operation.doc_id,
                    doc=operation.set_fields,
                )
        else:
            raise TypeError(f"Unsupported operation: {operation!r}")

    def bulk(self, operations: Sequence[Operation]) -> BulkResult:
        if not operations:
            return BulkResult()
        actions = [op.to_action() for op in operations]
        succeeded, errors = self._call(
            "bulk", es_bulk, self._client, actions, raise_on_error=False, stats_only=False
        )
        errors = [item for item in errors if not _is_missing_delete(item)]
        if errors:
            logger.warning("bulk request: %d of %d operations failed", len(errors), len(actions))
        return BulkResult(succeeded=succeeded, errors=errors)

    # ── reads ────────────────────────────────────────────────

    def mget(self, refs: Sequence[tuple[str, str]]) -> list[DocumentHit]:
        if not refs:
            return []
        response = self._call(
            "mget",
            self._client.mget,
            docs=[{"_index": index, "_id": doc_id} for index, doc_id in refs],
        )
        hits: list[DocumentHit] = []
        for (index, doc_id), doc in zip(refs, response["docs"]):
            error = doc.get("error")
            if error is not None:
                error_type = error.get("type") if isinstance(error, dict) else str(error)
                if error_type != "index_not_found_exception":
                    raise BackendOperationError("mget", f"{index}/{doc_id}: {error}")
            if not doc.get("found"):
                hits.append(DocumentHit(index=index, doc_id=doc_id, found=False))
                continue
            hits.append(
                DocumentHit(
                    index=doc.get("_index", index),
                    doc_id=doc.get("_id", doc_id),
                    source=doc.get("_source") or {},
                )
            )
        return hits

    def search(self, indices: Sequence[str], filter_: Filter, size: int) -> list[DocumentHit]:
        response = self._call(
            "search",
            self._client.search,
            index=list(indices),
            query=_filtered_match_all(filter_),
            from_=0,
            size=size,
        )
        # TODO: page with search_after/PIT instead of one bounded window.
        return [
            DocumentHit(index=hit["_index"], doc_id=hit["_id"], source=hit.get("_source") or {})
            for hit in response["hits"]["hits"]
        ]

    def refresh(self, indices: Sequence[str]) -> None:
        self._call("indices.refresh", self._client.indices.refresh, index=list(indices))

    # ── lifecycle ────────────────────────────────────────────

    def close(self) -> None:
        self._client.close()

    def __repr__(self) -> str:
        return f"ElasticsearchBackend(client={self._client!r})"


__all__ = ["ElasticsearchBackend"]
