"""Query planning: direct id lookup versus filtered search.

A request that names ids, carries no filter clauses and at most one
label can be answered with a multi-get (fast path).  Anything else runs
a filtered search (slow path), with any requested ids merged into the
caller's filter by conjunction.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from .filters import Filter, ids_filter, is_empty


@dataclass(frozen=True)
class QueryPlan:
    """Outcome of planning one search request.

    Attributes:
        fast_path: True when the request is served by a direct id lookup.
        ids: Requested ids as strings (possibly empty).
        label: Label used for the direct lookup, if any.
        labels: Labels restricting the search path.
        filter: Filter for the search path (ids merged in); None on the fast path.
    """

    fast_path: bool
    ids: list[str] = field(default_factory=list)
    label: str | None = None
    labels: list[str] = field(default_factory=list)
    filter: Filter | None = None


def first_or_default_label(labels: Sequence[str] | None) -> str | None:
    if not labels:
        return None
    return labels[0]


def is_ids_only(
    filter_: Filter | None,
    ids: Sequence[Any] | None,
    labels: Sequence[str] | None,
) -> bool:
    return is_empty(filter_) and len(labels or ()) <= 1 and bool(ids)


class QueryPlanner:
    """Stateless fast-path / slow-path decision procedure."""

    def plan(
        self,
        filter_: Filter | None,
        ids: Sequence[Any] | None,
        labels: Sequence[str] | None,
    ) -> QueryPlan:
        str_ids = [str(i) for i in ids or ()]
        label_list = [label for label in labels or () if label is not None]

        if is_ids_only(filter_, str_ids, label_list):
            return QueryPlan(
                fast_path=True,
                ids=str_ids,
                label=first_or_default_label(label_list),
                labels=label_list,
            )

        final_filter = ids_filter(filter_, str_ids) if str_ids else filter_
        return QueryPlan(fast_path=False, ids=str_ids, labels=label_list, filter=final_filter)


__all__ = ["QueryPlan", "QueryPlanner", "is_ids_only", "first_or_default_label"]
