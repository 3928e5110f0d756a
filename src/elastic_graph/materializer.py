"""Turn backend documents into graph elements.

No I/O happens here; every field of the document source becomes a local
property, except the routing bookkeeping fields.
"""

from __future__ import annotations

from typing import Any

from .exceptions import MaterializationError
from .types import BOOKKEEPING_FIELDS, IN_ID, OUT_ID, Edge, Element, ElementType, Vertex


def _install(element: Element, fields: dict[str, Any]) -> Element:
    for key, value in fields.items():
        if key in BOOKKEEPING_FIELDS:
            continue
        element.add_property_local(key, value)
    return element


def materialize_vertex(doc_id: str, label: str, fields: dict[str, Any]) -> Vertex:
    return _install(Vertex(id=doc_id, label=label), fields)


def materialize_edge(doc_id: str, label: str, fields: dict[str, Any]) -> Edge:
    """Build an Edge; endpoint fields also stay in the property map.

    Raises:
        MaterializationError: If either endpoint field is missing.
    """
    missing = [key for key in (OUT_ID, IN_ID) if fields.get(key) is None]
    if missing:
        raise MaterializationError(
            f"Edge document {doc_id!r} is missing endpoint field(s): {', '.join(missing)}"
        )
    edge = Edge(id=doc_id, label=label, out_id=str(fields[OUT_ID]), in_id=str(fields[IN_ID]))
    return _install(edge, fields)


def materialize(
    element_type: ElementType, doc_id: str, label: str, fields: dict[str, Any]
) -> Element:
    if element_type is ElementType.EDGE:
        return materialize_edge(doc_id, label, fields)
    return materialize_vertex(doc_id, label, fields)


__all__ = ["materialize", "materialize_vertex", "materialize_edge"]
