"""DefaultRoutingStrategy -- every element in one index.

Vertices and edges of all labels share a single index; label and element
type are stored as keyword fields.  Searches are narrowed to the
requested element type with a term filter.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from typing import Any

from ..exceptions import ConfigurationError, RoutingError
from ..filters import AndFilter, Filter, TermFilter, is_empty
from ..types import LABEL_FIELD, TYPE_FIELD, Element, ElementType
from .base import AddElementResult, RoutingStrategy, SearchResult, build_source

logger = logging.getLogger(__name__)

_INVALID_LABEL = re.compile(r"[\s,*#]")

# Strings are mapped as keywords so term filters match exact values.
INDEX_MAPPINGS = {
    "dynamic_templates": [
        {
            "strings_as_keywords": {
                "match_mapping_type": "string",
                "mapping": {"type": "keyword"},
            }
        }
    ],
    "properties": {
        LABEL_FIELD: {"type": "keyword"},
        TYPE_FIELD: {"type": "keyword"},
    },
}


def validate_label(label: Any) -> str:
    if not isinstance(label, str) or not label:
        raise RoutingError(f"Label must be a non-empty string, got {label!r}")
    if _INVALID_LABEL.search(label):
        raise RoutingError(f"Label contains characters not allowed by routing: {label!r}")
    return label


class DefaultRoutingStrategy(RoutingStrategy):
    """Single-index routing.

    The index name comes from ``config.index_name`` at ``init`` time.
    """

    def __init__(self) -> None:
        self._index: str | None = None

    @property
    def index(self) -> str:
        if self._index is None:
            raise ConfigurationError("DefaultRoutingStrategy used before init()")
        return self._index

    def init(self, backend: Any, config: Any) -> None:
        self._index = config.index_name
        backend.ensure_index(
            self._index,
            mappings=INDEX_MAPPINGS,
            settings={"index": {"max_result_window": config.max_results}},
        )
        logger.debug("Default routing initialised on index %s", self._index)

    def resolve_for_create(
        self,
        label: str,
        element_id: str,
        element_type: ElementType,
        properties: dict[str, Any],
        endpoints: tuple[str, str] | None = None,
    ) -> AddElementResult:
        validate_label(label)
        return AddElementResult(
            index=self.index,
            doc_id=str(element_id),
            source=build_source(label, element_type, properties, endpoints),
        )

    def index_for(self, element_or_id: Element | str) -> str:
        return self.index

    def plan_search(
        self,
        filter_: Filter | None,
        element_type: ElementType,
        labels: Sequence[str] | None,
    ) -> SearchResult:
        # One index holds every label, so labels never narrow the targets.
        by_type = TermFilter(TYPE_FIELD, element_type.value)
        if is_empty(filter_):
            return SearchResult(indices=[self.index], filter=by_type)
        return SearchResult(indices=[self.index], filter=AndFilter(filter_, by_type))

    def close(self) -> None:
        self._index = None

    def __repr__(self) -> str:
        return f"DefaultRoutingStrategy(index={self._index!r})"


__all__ = ["DefaultRoutingStrategy", "validate_label", "INDEX_MAPPINGS"]
