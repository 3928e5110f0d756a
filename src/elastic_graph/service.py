"""ElasticGraphService -- graph element operations over a document backend.

Composes a routing strategy, the query planner, an optional mutation
batch and the element materializer into the public graph API.

Concurrency: every call blocks on the backend.  Staging into the batch
and swapping it out on commit are serialised by a lock, so concurrent
callers may share one service; they get no cross-call ordering
guarantee beyond staging order.

Public API:
    ElasticGraphService: The orchestrator.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Iterable, Iterator, Sequence
from typing import Any

from .backends import DocumentBackend, DocumentHit, create_backend
from .batch import (
    BulkResult,
    DeleteOperation,
    IndexOperation,
    MutationBatch,
    Operation,
    UpdateOperation,
)
from .config import ElasticGraphConfig
from .exceptions import ElementNotFoundError, PropertyValidationError
from .filters import AndFilter, Filter, TermsFilter
from .instrumentation import Instrumentation
from .materializer import materialize
from .planner import QueryPlanner
from .routing import RoutingStrategy, load_routing_strategy
from .types import (
    ENDPOINT_KEYS,
    IN_ID,
    LABEL_FIELD,
    OUT_ID,
    TYPE_FIELD,
    Edge,
    Element,
    ElementType,
    Vertex,
    validate_property,
)

logger = logging.getLogger(__name__)


class ElasticGraphService:
    """Graph element store backed by a document search engine.

    Args:
        config: Service configuration; defaults to ``ElasticGraphConfig()``.
        backend: Document backend; built from ``config.client_mode`` when None.
        routing_strategy: Strategy instance; loaded by ``config.routing_strategy``
            name when None.
        instrumentation: Operation metrics; a fresh private registry when None.

    Raises:
        ConfigurationError: If the backend or routing strategy cannot be set up.
    """

    def __init__(
        self,
        config: ElasticGraphConfig | None = None,
        backend: DocumentBackend | None = None,
        routing_strategy: RoutingStrategy | None = None,
        instrumentation: Instrumentation | None = None,
    ):
        self.config = config or ElasticGraphConfig()
        self.instrumentation = instrumentation or Instrumentation()

        with self.instrumentation.time("initialization"):
            self._backend = backend if backend is not None else create_backend(self.config)
            try:
                if routing_strategy is None:
                    routing_strategy = load_routing_strategy(self.config.routing_strategy)
                self.routing_strategy = routing_strategy
                self.routing_strategy.init(self._backend, self.config)
            except Exception:
                logger.error("ElasticGraphService start-up failed, closing backend")
                self._backend.close()
                raise

        self._planner = QueryPlanner()
        self._batch_lock = threading.Lock()
        self._batch: MutationBatch | None = MutationBatch() if self.config.batch else None
        self._closed = False
        logger.info(
            "ElasticGraphService started (routing=%r, batch=%s, refresh=%s)",
            self.routing_strategy,
            self.config.batch,
            self.config.refresh,
        )

    @property
    def backend(self) -> DocumentBackend:
        return self._backend

    @property
    def batching(self) -> bool:
        return self._batch is not None

    @property
    def pending_operations(self) -> int:
        """Number of staged, uncommitted operations (0 when not batching)."""
        with self._batch_lock:
            return len(self._batch) if self._batch is not None else 0

    # ── mutation plumbing ────────────────────────────────────

    def _submit(self, operation: Operation) -> None:
        """Stage *operation* when batching, otherwise run it now."""
        with self._batch_lock:
            if self._batch is not None:
                self._batch.stage(operation)
                return
        self._backend.execute(operation)

    def commit(self) -> BulkResult | None:
        """Send every staged operation as one bulk request.

        The batch is replaced by an empty one before sending, so staged
        operations are dropped even if the request fails; re-stage them
        to retry.

        Returns:
            The bulk outcome, or None when batching is disabled.
        """
        if self._batch is None:
            return None
        with self.instrumentation.time("bulk execute"):
            with self._batch_lock:
                pending, self._batch = self._batch, MutationBatch()
            operations = pending.drain()
            if not operations:
                return BulkResult()
            self.instrumentation.counter("bulk operations").inc(len(operations))
            result = self._backend.bulk(operations)
        logger.debug(
            "committed %d operations (%d ok, %d failed)",
            len(operations), result.succeeded, len(result.errors),
        )
        return result

    # ── element mutation ─────────────────────────────────────

    def add_element(
        self,
        label: str,
        element_id: Any = None,
        element_type: ElementType | str = ElementType.VERTEX,
        properties: dict[str, Any] | None = None,
        *,
        out_id: Any = None,
        in_id: Any = None,
    ) -> str:
        """Create a vertex or edge document.

        Properties are validated before any I/O.  The index request is
        create-only: an existing document with the same id in the target
        index makes it fail instead of being overwritten.

        Args:
            label: Element label.
            element_id: Explicit id; a new uuid is generated when None.
            element_type: Vertex or edge.
            properties: User properties.
            out_id: Source vertex id (edges only, required).
            in_id: Target vertex id (edges only, required).

        Returns:
            The resolved element id.

        Raises:
            PropertyValidationError: On a malformed property or missing
                edge endpoint.
            RoutingError: If the routing strategy rejects *label*.
            BackendOperationError: If the immediate index request fails.
        """
        element_type = ElementType(element_type)
        properties = properties or {}

        with self.instrumentation.time("add element"):
            for key, value in properties.items():
                validate_property(key, value)

            endpoints = None
            if element_type is ElementType.EDGE:
                reserved = sorted(ENDPOINT_KEYS.intersection(properties))
                if reserved:
                    raise PropertyValidationError(
                        f"Edge property keys are reserved: {', '.join(reserved)}"
                    )
                if out_id is None or in_id is None:
                    raise PropertyValidationError("An edge requires out_id and in_id")
                endpoints = (str(out_id), str(in_id))

            if element_id is None:
                element_id = uuid.uuid4().hex

            result = self.routing_strategy.resolve_for_create(
                label, str(element_id), element_type, properties, endpoints
            )
            self._submit(IndexOperation(result.index, result.doc_id, result.source))

        logger.debug("add %s %s/%s", element_type.value, result.index, result.doc_id)
        return result.doc_id

    def add_vertex(
        self,
        label: str,
        properties: dict[str, Any] | None = None,
        vertex_id: Any = None,
    ) -> Vertex:
        """Create a vertex and return it without reading it back."""
        properties = dict(properties or {})
        vid = self.add_element(label, vertex_id, ElementType.VERTEX, properties)
        return Vertex(id=vid, label=label, properties=properties)

    def add_edge(
        self,
        label: str,
        out_id: Any,
        in_id: Any,
        properties: dict[str, Any] | None = None,
        edge_id: Any = None,
    ) -> Edge:
        """Create an edge and return it without reading it back."""
        properties = dict(properties or {})
        eid = self.add_element(
            label, edge_id, ElementType.EDGE, properties, out_id=out_id, in_id=in_id
        )
        edge = Edge(id=eid, label=label, properties=properties, out_id=str(out_id), in_id=str(in_id))
        edge.add_property_local(OUT_ID, edge.out_id)
        edge.add_property_local(IN_ID, edge.in_id)
        return edge

    def delete_element(self, element: Element) -> None:
        """Delete *element*'s document.  Deleting a missing document is not an error."""
        with self.instrumentation.time("remove element"):
            index = self.routing_strategy.index_for(element)
            self._submit(DeleteOperation(index, str(element.id)))

    def delete_elements(self, elements: Iterable[Element]) -> None:
        for element in elements:
            self.delete_element(element)

    def add_property(self, element: Element, key: str, value: Any) -> None:
        """Set one field on the stored document (partial update, no validation)."""
        with self.instrumentation.time("update property"):
            index = self.routing_strategy.index_for(element)
            self._submit(UpdateOperation(index, str(element.id), set_fields={key: value}))

    def remove_property(self, element: Element, key: str) -> None:
        """Remove one field from the stored document.

        The field name travels as a script parameter, never as script source.

        Raises:
            PropertyValidationError: If *key* is not a non-empty string.
        """
        if not isinstance(key, str) or not key:
            raise PropertyValidationError(f"Invalid property key for removal: {key!r}")
        with self.instrumentation.time("remove property"):
            index = self.routing_strategy.index_for(element)
            self._submit(UpdateOperation(index, str(element.id), remove_field=key))

    # ── point lookups ────────────────────────────────────────

    def _get(self, ids: Sequence[Any]) -> list[DocumentHit]:
        with self.instrumentation.time("get"):
            refs = [(self.routing_strategy.index_for(str(i)), str(i)) for i in ids]
            return self._backend.mget(refs)

    @staticmethod
    def _is_kind(hit: DocumentHit, element_type: ElementType, label: str | None) -> bool:
        """Whether a multi-get hit is a stored element of the requested kind/label."""
        if not hit.found:
            return False
        stored_type = hit.source.get(TYPE_FIELD)
        if stored_type is not None and stored_type != element_type.value:
            return False
        stored_label = hit.source.get(LABEL_FIELD)
        if label is not None and stored_label is not None and stored_label != label:
            return False
        return True

    def _materialize_hit(
        self, element_type: ElementType, hit: DocumentHit, label: str | None = None
    ) -> Element:
        stored_label = hit.source.get(LABEL_FIELD, label or "")
        return materialize(element_type, hit.doc_id, stored_label, hit.source)

    def get_vertices(self, label: str | None, *ids: Any) -> list[Vertex]:
        """Fetch vertices by id.  Missing ids are silently omitted."""
        if not ids:
            return []
        vertices: list[Vertex] = []
        for hit in self._get(ids):
            if not self._is_kind(hit, ElementType.VERTEX, label):
                logger.debug("vertex %s not found, omitted", hit.doc_id)
                continue
            vertices.append(self._materialize_hit(ElementType.VERTEX, hit, label))
        return vertices

    def get_edges(self, label: str | None, *ids: Any) -> list[Edge]:
        """Fetch edges by id.

        Raises:
            ElementNotFoundError: If any requested edge does not exist.
        """
        if not ids:
            return []
        edges: list[Edge] = []
        for hit in self._get(ids):
            if not self._is_kind(hit, ElementType.EDGE, label):
                raise ElementNotFoundError("Edge", hit.doc_id)
            edges.append(self._materialize_hit(ElementType.EDGE, hit, label))
        return edges

    # ── search ───────────────────────────────────────────────

    def _search(
        self, filter_: Filter | None, element_type: ElementType, labels: Sequence[str]
    ) -> list[DocumentHit]:
        with self.instrumentation.time("search"):
            plan = self.routing_strategy.plan_search(filter_, element_type, labels)
            final_filter = plan.filter
            if labels:
                final_filter = AndFilter(final_filter, TermsFilter(LABEL_FIELD, labels))
            if self.config.refresh:
                self._backend.refresh(plan.indices)
            hits = self._backend.search(plan.indices, final_filter, self.config.max_results)
        self.instrumentation.counter("search hits").inc(len(hits))
        return hits

    def _search_elements(
        self,
        element_type: ElementType,
        filter_: Filter | None,
        ids: Sequence[Any] | None,
        labels: Sequence[str] | None,
    ) -> Iterator[Element]:
        plan = self._planner.plan(filter_, ids, labels)
        if plan.fast_path:
            logger.debug("%s search by ids only, using direct lookup", element_type.value)
            if element_type is ElementType.EDGE:
                return iter(self.get_edges(plan.label, *plan.ids))
            return iter(self.get_vertices(plan.label, *plan.ids))

        hits = self._search(plan.filter, element_type, plan.labels)
        return (self._materialize_hit(element_type, hit) for hit in hits)

    def search_vertices(
        self,
        filter_: Filter | None = None,
        ids: Sequence[Any] | None = None,
        labels: Sequence[str] | None = None,
    ) -> Iterator[Vertex]:
        """Search vertices.

        Returns a one-shot iterator: once consumed it stays exhausted.
        """
        return self._search_elements(ElementType.VERTEX, filter_, ids, labels)

    def search_edges(
        self,
        filter_: Filter | None = None,
        ids: Sequence[Any] | None = None,
        labels: Sequence[str] | None = None,
    ) -> Iterator[Edge]:
        """Search edges.

        An ids-only request takes the direct lookup path, where a missing
        id raises ElementNotFoundError.  Returns a one-shot iterator.
        """
        return self._search_elements(ElementType.EDGE, filter_, ids, labels)

    # ── lifecycle ────────────────────────────────────────────

    def collect_data(self) -> dict[str, dict[str, float]]:
        """Log and return the accumulated timers and counters."""
        return self.instrumentation.report()

    def close(self) -> None:
        """Release the backend and routing strategy, then report timings."""
        if self._closed:
            logger.warning("ElasticGraphService.close() called more than once")
            return
        self._closed = True
        self._backend.close()
        self.routing_strategy.close()
        self.instrumentation.report()
        logger.info("ElasticGraphService closed")

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, *args):
        """Context manager exit."""
        self.close()

    def __repr__(self) -> str:
        return (
            f"ElasticGraphService(routing={self.routing_strategy!r}, "
            f"backend={self._backend!r})"
        )


__all__ = ["ElasticGraphService"]
