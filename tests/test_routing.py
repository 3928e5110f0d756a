"""Tests for routing strategies and the strategy registry."""

from __future__ import annotations

import pytest

from elastic_graph import ClientMode, ElasticGraphConfig, InMemoryBackend
from elastic_graph.exceptions import (
    ConfigurationError,
    PropertyValidationError,
    RoutingError,
    StrategyLoadError,
)
from elastic_graph.filters import AndFilter, BoolFilter, TermFilter
from elastic_graph.routing import (
    DefaultRoutingStrategy,
    RoutingStrategy,
    available_routing_strategies,
    build_source,
    load_routing_strategy,
    register_routing_strategy,
    unregister_routing_strategy,
)
from elastic_graph.routing.default import INDEX_MAPPINGS, validate_label
from elastic_graph.types import ElementType, Vertex


@pytest.fixture
def strategy() -> DefaultRoutingStrategy:
    s = DefaultRoutingStrategy()
    s.init(InMemoryBackend(), ElasticGraphConfig(client_mode=ClientMode.MEMORY, index_name="g"))
    return s


class BrokenStrategy(RoutingStrategy):
    def __init__(self) -> None:
        raise RuntimeError("cannot build")

    def resolve_for_create(self, label, element_id, element_type, properties, endpoints=None):
        raise NotImplementedError

    def index_for(self, element_or_id):
        raise NotImplementedError

    def plan_search(self, filter_, element_type, labels):
        raise NotImplementedError


class NotAStrategy:
    pass


# ── build_source ────────────────────────────────────────────────────


class TestBuildSource:
    def test_vertex(self) -> None:
        props = {"name": "marko"}
        source = build_source("person", ElementType.VERTEX, props)
        assert source == {"name": "marko", "~label": "person", "~type": "vertex"}
        assert props == {"name": "marko"}

    def test_edge(self) -> None:
        source = build_source("knows", ElementType.EDGE, {}, ("1", "2"))
        assert source == {"outId": "1", "inId": "2", "~label": "knows", "~type": "edge"}

    def test_edge_requires_endpoints(self) -> None:
        with pytest.raises(PropertyValidationError):
            build_source("knows", ElementType.EDGE, {})


# ── DefaultRoutingStrategy ──────────────────────────────────────────


class TestDefaultRoutingStrategy:
    def test_init_creates_index(self) -> None:
        backend = InMemoryBackend()
        DefaultRoutingStrategy().init(backend, ElasticGraphConfig(client_mode="memory", index_name="people"))
        assert backend.indices() == ["people"]

    def test_use_before_init(self) -> None:
        with pytest.raises(ConfigurationError):
            DefaultRoutingStrategy().index_for("1")

    def test_resolve_for_create(self, strategy: DefaultRoutingStrategy) -> None:
        result = strategy.resolve_for_create("person", "1", ElementType.VERTEX, {"a": 1})
        assert result.index == "g"
        assert result.doc_id == "1"
        assert result.source["~label"] == "person"

    def test_resolve_is_deterministic(self, strategy: DefaultRoutingStrategy) -> None:
        a = strategy.resolve_for_create("person", "1", ElementType.VERTEX, {"a": 1})
        b = strategy.resolve_for_create("person", "1", ElementType.VERTEX, {"a": 1})
        assert a == b

    def test_id_is_used_verbatim(self, strategy: DefaultRoutingStrategy) -> None:
        result = strategy.resolve_for_create("person", "v:42", ElementType.VERTEX, {})
        assert result.doc_id == "v:42"

    def test_index_for_matches_create(self, strategy: DefaultRoutingStrategy) -> None:
        result = strategy.resolve_for_create("person", "1", ElementType.VERTEX, {})
        assert strategy.index_for(Vertex(id="1", label="person")) == result.index
        assert strategy.index_for("1") == result.index

    def test_plan_search_type_only(self, strategy: DefaultRoutingStrategy) -> None:
        plan = strategy.plan_search(BoolFilter(), ElementType.EDGE, ["knows"])
        assert plan.indices == ["g"]
        assert plan.filter.to_query() == {"term": {"~type": "edge"}}

    def test_plan_search_keeps_caller_filter(self, strategy: DefaultRoutingStrategy) -> None:
        caller = TermFilter("name", "marko")
        plan = strategy.plan_search(caller, ElementType.VERTEX, None)
        assert isinstance(plan.filter, AndFilter)
        assert plan.filter.filters[0] is caller

    def test_close(self, strategy: DefaultRoutingStrategy) -> None:
        strategy.close()
        strategy.close()
        assert repr(strategy) == "DefaultRoutingStrategy(index=None)"

    def test_mappings_keep_bookkeeping_as_keywords(self) -> None:
        assert INDEX_MAPPINGS["properties"]["~label"] == {"type": "keyword"}

    @pytest.mark.parametrize("label", ["", "has space", "a,b", "star*", "hash#", None])
    def test_invalid_labels(self, label) -> None:
        with pytest.raises(RoutingError):
            validate_label(label)

    def test_valid_label(self) -> None:
        assert validate_label("person_v2") == "person_v2"


# ── Registry ────────────────────────────────────────────────────────


class TestRegistry:
    def test_default_is_registered(self) -> None:
        assert "default" in available_routing_strategies()
        assert isinstance(load_routing_strategy("default"), DefaultRoutingStrategy)

    def test_register_and_unregister(self) -> None:
        register_routing_strategy("single", DefaultRoutingStrategy)
        try:
            assert isinstance(load_routing_strategy("single"), DefaultRoutingStrategy)
        finally:
            unregister_routing_strategy("single")
        assert "single" not in available_routing_strategies()

    def test_register_rejects_non_strategy(self) -> None:
        with pytest.raises(TypeError):
            register_routing_strategy("bad", NotAStrategy)  # type: ignore[arg-type]

    def test_unknown_name(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown routing strategy"):
            load_routing_strategy("sharded")

    @pytest.mark.parametrize(
        "path",
        [
            "elastic_graph.routing.default.DefaultRoutingStrategy",
            "elastic_graph.routing.default:DefaultRoutingStrategy",
        ],
    )
    def test_load_by_path(self, path) -> None:
        assert isinstance(load_routing_strategy(path), DefaultRoutingStrategy)

    @pytest.mark.parametrize(
        "path",
        [
            "no_such_package.Strategy",
            "elastic_graph.routing.default:Missing",
            f"{__name__}:BrokenStrategy",
            f"{__name__}:NotAStrategy",
        ],
    )
    def test_load_failures(self, path) -> None:
        with pytest.raises(StrategyLoadError):
            load_routing_strategy(path)
