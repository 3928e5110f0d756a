"""DocumentBackend protocol -- the document API the service consumes.

Public API:
    DocumentHit: A document returned by get or search.
    DocumentBackend: Runtime-checkable protocol all backends implement.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from ..batch import BulkResult, Operation
from ..filters import Filter


@dataclass(frozen=True)
class DocumentHit:
    """A document as returned by the backend.

    Attributes:
        index: Index the document lives in.
        doc_id: Document id.
        source: Stored field map (empty when not found).
        found: False for a multi-get slot whose document does not exist.
    """

    index: str
    doc_id: str
    source: dict[str, Any] = field(default_factory=dict)
    found: bool = True


@runtime_checkable
class DocumentBackend(Protocol):
    """Document index/search operations backing the graph service.

    Every call is synchronous and blocking.  Failures surface as
    ``BackendOperationError``; no implementation retries on its own.
    """

    def ensure_index(
        self,
        index: str,
        mappings: dict[str, Any] | None = None,
        settings: dict[str, Any] | None = None,
    ) -> None:
        """Create *index* unless it already exists."""
        ...

    def execute(self, operation: Operation) -> None:
        """Run one write operation immediately.

        Create conflicts and updates of missing documents raise;
        deleting a missing document does not.
        """
        ...

    def bulk(self, operations: Sequence[Operation]) -> BulkResult:
        """Submit operations as one unit, applied in order."""
        ...

    def mget(self, refs: Sequence[tuple[str, str]]) -> list[DocumentHit]:
        """Fetch documents by ``(index, doc_id)``, one hit per ref, in order."""
        ...

    def search(self, indices: Sequence[str], filter_: Filter, size: int) -> list[DocumentHit]:
        """Return up to *size* documents in *indices* matching *filter_*."""
        ...

    def refresh(self, indices: Sequence[str]) -> None:
        """Make all prior writes to *indices* visible to search."""
        ...

    def close(self) -> None:
        """Release the connection."""
        ...


__all__ = ["DocumentHit", "DocumentBackend"]
