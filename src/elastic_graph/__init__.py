"""elastic-graph-lib: property graph storage on a document search backend."""

__version__ = "0.1.0"

from .backends import (
    DocumentBackend,
    DocumentHit,
    ElasticsearchBackend,
    InMemoryBackend,
    create_backend,
)
from .batch import BulkResult, DeleteOperation, IndexOperation, MutationBatch, UpdateOperation
from .config import ClientMode, ElasticGraphConfig
from .exceptions import (
    BackendOperationError,
    ConfigurationError,
    ElasticGraphError,
    ElementNotFoundError,
    MaterializationError,
    PropertyValidationError,
    RoutingError,
    StrategyLoadError,
)
from .filters import (
    AndFilter,
    BoolFilter,
    ExistsFilter,
    Filter,
    IdsFilter,
    MatchAllFilter,
    RangeFilter,
    TermFilter,
    TermsFilter,
    ids_filter,
)
from .instrumentation import Instrumentation
from .materializer import materialize
from .planner import QueryPlan, QueryPlanner
from .routing import (
    AddElementResult,
    DefaultRoutingStrategy,
    RoutingStrategy,
    SearchResult,
    load_routing_strategy,
    register_routing_strategy,
)
from .service import ElasticGraphService
from .types import Edge, Element, ElementType, Vertex, validate_property

__all__ = [
    # Service
    "ElasticGraphService",
    "ElasticGraphConfig",
    "ClientMode",
    # Graph elements
    "Element",
    "Vertex",
    "Edge",
    "ElementType",
    "validate_property",
    "materialize",
    # Filters and planning
    "Filter",
    "MatchAllFilter",
    "IdsFilter",
    "TermFilter",
    "TermsFilter",
    "RangeFilter",
    "ExistsFilter",
    "BoolFilter",
    "AndFilter",
    "ids_filter",
    "QueryPlan",
    "QueryPlanner",
    # Routing
    "RoutingStrategy",
    "AddElementResult",
    "SearchResult",
    "DefaultRoutingStrategy",
    "register_routing_strategy",
    "load_routing_strategy",
    # Backends and batching
    "DocumentBackend",
    "DocumentHit",
    "ElasticsearchBackend",
    "InMemoryBackend",
    "create_backend",
    "MutationBatch",
    "IndexOperation",
    "DeleteOperation",
    "UpdateOperation",
    "BulkResult",
    # Instrumentation
    "Instrumentation",
    # Exceptions
    "ElasticGraphError",
    "ConfigurationError",
    "StrategyLoadError",
    "RoutingError",
    "PropertyValidationError",
    "ElementNotFoundError",
    "MaterializationError",
    "BackendOperationError",
]
