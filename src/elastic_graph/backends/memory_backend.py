"""InMemoryBackend -- dict-based document store for tests and embedded use.

Mimics the parts of Elasticsearch's behaviour the service relies on:

- create-only indexing fails on an existing id,
- multi-get is realtime,
- search only sees documents as of the last ``refresh`` of that index.

Public API:
    InMemoryBackend: DocumentBackend implementation over plain dicts.
"""

from __future__ import annotations

import copy
import logging
import threading
from collections.abc import Sequence
from typing import Any

from ..batch import BulkResult, DeleteOperation, IndexOperation, Operation, UpdateOperation
from ..exceptions import BackendOperationError
from ..filters import Filter
from .protocol import DocumentHit

logger = logging.getLogger(__name__)


class InMemoryBackend:
    """Dict-based DocumentBackend.  Thread-safe via a reentrant lock.

    Args:
        auto_create_index: Create unknown indices on first write, as
            Elasticsearch does by default.
    """

    def __init__(self, auto_create_index: bool = True) -> None:
        self._auto_create_index = auto_create_index
        self._live: dict[str, dict[str, dict[str, Any]]] = {}  # index -> id -> source
        self._visible: dict[str, dict[str, dict[str, Any]]] = {}  # last refreshed state
        self._lock = threading.RLock()
        self._closed = False

    # ── index management ─────────────────────────────────────

    def ensure_index(
        self,
        index: str,
        mappings: dict[str, Any] | None = None,
        settings: dict[str, Any] | None = None,
    ) -> None:
        with self._lock:
            self._live.setdefault(index, {})
            self._visible.setdefault(index, {})

    def indices(self) -> list[str]:
        with self._lock:
            return sorted(self._live)

    def _docs_for_write(self, operation: str, index: str) -> dict[str, dict[str, Any]]:
        docs = self._live.get(index)
        if docs is None:
            if not self._auto_create_index:
                raise BackendOperationError(operation, f"no such index [{index}]", status=404)
            self.ensure_index(index)
            docs = self._live[index]
        return docs

    # ── writes ───────────────────────────────────────────────

    def execute(self, operation: Operation) -> None:
        with self._lock:
            self._apply(operation)

    def _apply(self, op: Operation) -> bool:
        """Apply one operation; returns False for a delete of a missing doc."""
        if isinstance(op, IndexOperation):
            docs = self._docs_for_write("create", op.index)
            if op.doc_id in docs:
                raise BackendOperationError(
                    "create",
                    f"[{op.doc_id}]: version conflict, document already exists",
                    status=409,
                )
            docs[op.doc_id] = copy.deepcopy(op.source)
            return True

        if isinstance(op, DeleteOperation):
            docs = self._live.get(op.index, {})
            if docs.pop(op.doc_id, None) is None:
                logger.debug("delete of missing document %s/%s ignored", op.index, op.doc_id)
                return False
            return True

        if isinstance(op, UpdateOperation):
            docs = self._live.get(op.index, {})
            source = docs.get(op.doc_id)
            if source is None:
                raise BackendOperationError(
                    "update", f"[{op.doc_id}]: document missing", status=404
                )
            if op.remove_field is not None:
                source.pop(op.remove_field, None)
            else:
                source.update(copy.deepcopy(op.set_fields))
            return True

        raise TypeError(f"Unsupported operation: {op!r}")

    def bulk(self, operations: Sequence[Operation]) -> BulkResult:
        result = BulkResult()
        with self._lock:
            for op in operations:
                try:
                    applied = self._apply(op)
                except BackendOperationError as e:
                    result.errors.append(
                        {
                            op.op_type: {
                                "_index": op.index,
                                "_id": op.doc_id,
                                "status": e.status,
                                "error": str(e),
                            }
                        }
                    )
                    continue
                if applied:
                    result.succeeded += 1
        return result

    # ── reads ────────────────────────────────────────────────

    def mget(self, refs: Sequence[tuple[str, str]]) -> list[DocumentHit]:
        hits: list[DocumentHit] = []
        with self._lock:
            for index, doc_id in refs:
                source = self._live.get(index, {}).get(doc_id)
                if source is None:
                    hits.append(DocumentHit(index=index, doc_id=doc_id, found=False))
                else:
                    hits.append(
                        DocumentHit(index=index, doc_id=doc_id, source=copy.deepcopy(source))
                    )
        return hits

    def search(self, indices: Sequence[str], filter_: Filter, size: int) -> list[DocumentHit]:
        hits: list[DocumentHit] = []
        with self._lock:
            for index in indices:
                for doc_id, source in self._visible.get(index, {}).items():
                    if not filter_.matches(doc_id, source):
                        continue
                    hits.append(
                        DocumentHit(index=index, doc_id=doc_id, source=copy.deepcopy(source))
                    )
                    if len(hits) >= size:
                        return hits
        return hits

    def refresh(self, indices: Sequence[str]) -> None:
        with self._lock:
            for index in indices:
                if index in self._live:
                    self._visible[index] = copy.deepcopy(self._live[index])

    # ── lifecycle ────────────────────────────────────────────

    def close(self) -> None:
        with self._lock:
            self._live.clear()
            self._visible.clear()
            self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def __repr__(self) -> str:
        return f"InMemoryBackend(indices={self.indices()!r})"


__all__ = ["InMemoryBackend"]
