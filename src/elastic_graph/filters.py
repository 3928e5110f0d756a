"""Composable filter expressions for element search.

A filter is a small predicate tree.  Every node can render itself as
Elasticsearch query DSL (``to_query``) and can also be evaluated against
a document in process (``matches``), which the in-memory backend uses.

Public API:
    Filter: Abstract base for all filter nodes.
    MatchAllFilter: The empty / no-op filter.
    IdsFilter: Document id membership.
    TermFilter, TermsFilter, RangeFilter, ExistsFilter: Field predicates.
    BoolFilter: Caller-facing builder of must / must_not / should clauses.
    AndFilter: Conjunction of filters.
    ids_filter: Merge an id-membership predicate into an existing filter.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any


def _values_of(source: dict[str, Any], field: str) -> list[Any]:
    """Field values as a list; multi-valued fields match on any element."""
    if field not in source:
        return []
    value = source[field]
    if isinstance(value, (list, tuple, set)):
        return list(value)
    return [value]


class Filter(ABC):
    """A node in a filter expression tree."""

    @abstractmethod
    def to_query(self) -> dict[str, Any]:
        """Render as an Elasticsearch query clause."""

    @abstractmethod
    def matches(self, doc_id: str, source: dict[str, Any]) -> bool:
        """Evaluate against a document id and its source map."""

    def has_clauses(self) -> bool:
        """True if the filter actually restricts anything."""
        return True

    def __and__(self, other: Filter) -> Filter:
        return AndFilter(self, other)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.to_query()!r})"


class MatchAllFilter(Filter):
    def to_query(self) -> dict[str, Any]:
        return {"match_all": {}}

    def matches(self, doc_id: str, source: dict[str, Any]) -> bool:
        return True

    def has_clauses(self) -> bool:
        return False


class IdsFilter(Filter):
    def __init__(self, ids: Iterable[Any]):
        self.ids = [str(i) for i in ids]

    def to_query(self) -> dict[str, Any]:
        return {"ids": {"values": list(self.ids)}}

    def matches(self, doc_id: str, source: dict[str, Any]) -> bool:
        return doc_id in set(self.ids)


class TermFilter(Filter):
    def __init__(self, field: str, value: Any):
        self.field = field
        self.value = value

    def to_query(self) -> dict[str, Any]:
        return {"term": {self.field: self.value}}

    def matches(self, doc_id: str, source: dict[str, Any]) -> bool:
        return self.value in _values_of(source, self.field)


class TermsFilter(Filter):
    def __init__(self, field: str, values: Iterable[Any]):
        self.field = field
        self.values = list(values)

    def to_query(self) -> dict[str, Any]:
        return {"terms": {self.field: list(self.values)}}

    def matches(self, doc_id: str, source: dict[str, Any]) -> bool:
        return any(v in self.values for v in _values_of(source, self.field))


class RangeFilter(Filter):
    """Range predicate; any combination of gt / gte / lt / lte bounds."""

    _OPS = {
        "gt": lambda a, b: a > b,
        "gte": lambda a, b: a >= b,
        "lt": lambda a, b: a < b,
        "lte": lambda a, b: a <= b,
    }

    def __init__(self, field: str, **bounds: Any):
        unknown = set(bounds) - set(self._OPS)
        if unknown:
            raise ValueError(f"Unknown range bounds: {sorted(unknown)}")
        if not bounds:
            raise ValueError("RangeFilter needs at least one bound")
        self.field = field
        self.bounds = bounds

    def to_query(self) -> dict[str, Any]:
        return {"range": {self.field: dict(self.bounds)}}

    def matches(self, doc_id: str, source: dict[str, Any]) -> bool:
        for value in _values_of(source, self.field):
            try:
                if all(self._OPS[op](value, bound) for op, bound in self.bounds.items()):
                    return True
            except TypeError:
                continue
        return False


class ExistsFilter(Filter):
    def __init__(self, field: str):
        self.field = field

    def to_query(self) -> dict[str, Any]:
        return {"exists": {"field": self.field}}

    def matches(self, doc_id: str, source: dict[str, Any]) -> bool:
        return any(v is not None for v in _values_of(source, self.field))


class BoolFilter(Filter):
    """Caller-facing boolean filter builder.

    Clauses are added fluently::

        f = BoolFilter().must(TermFilter("name", "marko")).must_not(ExistsFilter("age"))

    An instance with no clauses is equivalent to match-all and reports
    ``has_clauses() == False``.
    """

    def __init__(self) -> None:
        self.must_clauses: list[Filter] = []
        self.must_not_clauses: list[Filter] = []
        self.should_clauses: list[Filter] = []

    def must(self, clause: Filter) -> BoolFilter:
        self.must_clauses.append(clause)
        return self

    def must_not(self, clause: Filter) -> BoolFilter:
        self.must_not_clauses.append(clause)
        return self

    def should(self, clause: Filter) -> BoolFilter:
        self.should_clauses.append(clause)
        return self

    def has_clauses(self) -> bool:
        return bool(self.must_clauses or self.must_not_clauses or self.should_clauses)

    def to_query(self) -> dict[str, Any]:
        if not self.has_clauses():
            return {"match_all": {}}
        body: dict[str, Any] = {}
        if self.must_clauses:
            body["filter"] = [c.to_query() for c in self.must_clauses]
        if self.must_not_clauses:
            body["must_not"] = [c.to_query() for c in self.must_not_clauses]
        if self.should_clauses:
            body["should"] = [c.to_query() for c in self.should_clauses]
            body["minimum_should_match"] = 1
        return {"bool": body}

    def matches(self, doc_id: str, source: dict[str, Any]) -> bool:
        if not all(c.matches(doc_id, source) for c in self.must_clauses):
            return False
        if any(c.matches(doc_id, source) for c in self.must_not_clauses):
            return False
        if self.should_clauses:
            return any(c.matches(doc_id, source) for c in self.should_clauses)
        return True


class AndFilter(Filter):
    """Conjunction: a document must satisfy every operand."""

    def __init__(self, *filters: Filter):
        self.filters = list(filters)

    def to_query(self) -> dict[str, Any]:
        return {"bool": {"filter": [f.to_query() for f in self.filters]}}

    def matches(self, doc_id: str, source: dict[str, Any]) -> bool:
        return all(f.matches(doc_id, source) for f in self.filters)

    def has_clauses(self) -> bool:
        return any(f.has_clauses() for f in self.filters)


def is_empty(filter_: Filter | None) -> bool:
    """True for a missing filter or one with no predicate clauses."""
    return filter_ is None or not filter_.has_clauses()


def ids_filter(filter_: Filter | None, ids: Iterable[Any]) -> Filter:
    """Merge an id-membership predicate into *filter_*.

    A non-empty *filter_* is always kept and ANDed with the id predicate,
    never replaced by it.
    """
    by_id = IdsFilter(ids)
    if is_empty(filter_):
        return by_id
    return AndFilter(filter_, by_id)


__all__ = [
    "Filter",
    "MatchAllFilter",
    "IdsFilter",
    "TermFilter",
    "TermsFilter",
    "RangeFilter",
    "ExistsFilter",
    "BoolFilter",
    "AndFilter",
    "is_empty",
    "ids_filter",
]
