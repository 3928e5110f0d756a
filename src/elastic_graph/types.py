"""Graph element types stored as documents.

Public API:
    ElementType: Vertex or edge.
    Element: Base class carrying id, label and local properties.
    Vertex: A graph vertex.
    Edge: A graph edge with out/in vertex references.
    validate_property: Reject malformed property key/value pairs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .exceptions import PropertyValidationError

# Edge endpoint keys, stored on the edge document as regular fields.
OUT_ID = "outId"
IN_ID = "inId"
ENDPOINT_KEYS = frozenset({OUT_ID, IN_ID})

# Bookkeeping fields written by routing strategies; never user properties.
HIDDEN_PREFIX = "~"
LABEL_FIELD = "~label"
TYPE_FIELD = "~type"
BOOKKEEPING_FIELDS = frozenset({LABEL_FIELD, TYPE_FIELD})


class ElementType(str, Enum):
    """Kind of graph element a document represents."""

    VERTEX = "vertex"
    EDGE = "edge"


@dataclass
class Element:
    """A graph element materialized from (or destined for) a document.

    Attributes:
        id: Opaque element identifier (the document id).
        label: Element category, mapped to a document label.
        properties: Key/value properties, keys unique per element.
    """

    id: str
    label: str
    properties: dict[str, Any] = field(default_factory=dict)

    element_type = ElementType.VERTEX

    def property(self, key: str, default: Any = None) -> Any:
        return self.properties.get(key, default)

    def keys(self) -> list[str]:
        return list(self.properties)

    def add_property_local(self, key: str, value: Any) -> None:
        """Set a property on this instance only; nothing is sent to the backend."""
        self.properties[key] = value


@dataclass
class Vertex(Element):
    """A vertex. Carries no endpoint references."""

    element_type = ElementType.VERTEX


@dataclass
class Edge(Element):
    """An edge between two vertices.

    Attributes:
        out_id: Identity of the source (tail) vertex.
        in_id: Identity of the target (head) vertex.
    """

    out_id: str = ""
    in_id: str = ""

    element_type = ElementType.EDGE


def validate_property(key: Any, value: Any) -> None:
    """Validate a single property pair before it is persisted.

    Raises:
        PropertyValidationError: If the key is not a non-empty string, is a
            hidden (``~``-prefixed) key, or the value is None.
    """
    if not isinstance(key, str):
        raise PropertyValidationError(f"Property key must be a string, got {type(key).__name__}")
    if not key:
        raise PropertyValidationError("Property key can not be empty")
    if key.startswith(HIDDEN_PREFIX):
        raise PropertyValidationError(f"Property key can not be a hidden key: {key}")
    if value is None:
        raise PropertyValidationError(f"Property value can not be null: {key}")


__all__ = [
    "ElementType",
    "Element",
    "Vertex",
    "Edge",
    "validate_property",
    "OUT_ID",
    "IN_ID",
    "ENDPOINT_KEYS",
    "LABEL_FIELD",
    "TYPE_FIELD",
    "BOOKKEEPING_FIELDS",
]
