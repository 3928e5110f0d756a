"""Custom exceptions for elastic-graph-lib."""


class ElasticGraphError(Exception):
    """Base exception for graph-over-document operations."""


class ConfigurationError(ElasticGraphError):
    """Raised when the service cannot be configured (fatal at start-up)."""


class StrategyLoadError(ConfigurationError):
    """Raised when a routing strategy cannot be imported or constructed."""


class RoutingError(ConfigurationError):
    """Raised when a label is not valid for the configured routing scheme."""


class PropertyValidationError(ElasticGraphError, ValueError):
    """Raised when a property key/value pair fails validation."""


class ElementNotFoundError(ElasticGraphError, KeyError):
    """Raised when a requested element does not exist."""

    def __init__(self, element_kind: str, element_id: str):
        super().__init__(f"{element_kind} with id {element_id!r} does not exist")
        self.element_kind = element_kind
        self.element_id = element_id

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message.
        return self.args[0]


class MaterializationError(ElasticGraphError):
    """Raised when a backend document cannot be turned into an element."""


class BackendOperationError(ElasticGraphError):
    """Raised when a request to the document backend fails.

    Attributes:
        operation: Name of the backend call (e.g. "create", "mget").
        status: HTTP status reported by the backend, if any.
    """

    def __init__(self, operation: str, message: str, status: int | None = None):
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation
        self.status = status
