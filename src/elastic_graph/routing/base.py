"""RoutingStrategy -- the pluggable index placement and search routing contract.

Public API:
    AddElementResult: Placement of a new element.
    SearchResult: Target indices and compiled filter for a search.
    RoutingStrategy: Abstract base every strategy implements.
    build_source: Assemble the document source for a new element.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from ..exceptions import PropertyValidationError
from ..filters import Filter
from ..types import IN_ID, LABEL_FIELD, OUT_ID, TYPE_FIELD, Element, ElementType


@dataclass(frozen=True)
class AddElementResult:
    """Where and what to persist for a new element.

    Attributes:
        index: Resolved physical index.
        doc_id: Resolved document id.
        source: Final field map, endpoint and bookkeeping fields included.
    """

    index: str
    doc_id: str
    source: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SearchResult:
    """Indices to query and the filter to run against them.

    ``indices`` must cover every index that could hold a match;
    over-inclusion is allowed, under-inclusion is a bug.
    """

    indices: list[str]
    filter: Filter


def build_source(
    label: str,
    element_type: ElementType,
    properties: dict[str, Any],
    endpoints: tuple[str, str] | None = None,
) -> dict[str, Any]:
    """Copy *properties* and merge in endpoint and bookkeeping fields.

    The caller's dict is never modified.
    """
    source = dict(properties)
    if element_type is ElementType.EDGE:
        if endpoints is None:
            raise PropertyValidationError("An edge requires out and in vertex ids")
        out_id, in_id = endpoints
        source[OUT_ID] = out_id
        source[IN_ID] = in_id
    source[LABEL_FIELD] = label
    source[TYPE_FIELD] = element_type.value
    return source


class RoutingStrategy(ABC):
    """Decides physical placement of elements and the targets of searches.

    A strategy is constructed once (with no arguments) and initialised
    once via ``init``; afterwards it holds no per-request state.  The
    documents it produces must carry the label and element type under
    ``LABEL_FIELD`` and ``TYPE_FIELD``; ``build_source`` does this.
    """

    def init(self, backend: Any, config: Any) -> None:
        """Acquire resources (e.g. create indices).  Called once at start-up."""

    @abstractmethod
    def resolve_for_create(
        self,
        label: str,
        element_id: str,
        element_type: ElementType,
        properties: dict[str, Any],
        endpoints: tuple[str, str] | None = None,
    ) -> AddElementResult:
        """Resolve index, id and source for a new element.

        *element_id* is always given; the service generates one when the
        caller does not.

        Must be deterministic for the same inputs and must not mutate
        *properties*.

        Raises:
            RoutingError: If *label* is invalid for this scheme.
        """

    @abstractmethod
    def index_for(self, element_or_id: Element | str) -> str:
        """Index holding the element, consistent with ``resolve_for_create``."""

    @abstractmethod
    def plan_search(
        self,
        filter_: Filter | None,
        element_type: ElementType,
        labels: Sequence[str] | None,
    ) -> SearchResult:
        """Target indices and compiled filter for a search."""

    def close(self) -> None:
        """Release whatever ``init`` acquired.  Must be idempotent."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


__all__ = ["AddElementResult", "SearchResult", "RoutingStrategy", "build_source"]
