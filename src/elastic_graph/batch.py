"""Write operations and the mutation batch that accumulates them.

Public API:
    IndexOperation: Create-only document index request.
    DeleteOperation: Delete-by-id request.
    UpdateOperation: Partial update (set fields and/or remove one field).
    BulkResult: Outcome of a bulk submission.
    MutationBatch: Ordered, lock-guarded accumulator of pending operations.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Union

# Painless script for field removal.  The field name is always passed as a
# parameter, never concatenated into the script source.
REMOVE_FIELD_SCRIPT = "ctx._source.remove(params.field)"


@dataclass(frozen=True)
class IndexOperation:
    """Index a new document; fails if the id already exists in the index."""

    index: str
    doc_id: str
    source: dict[str, Any]

    op_type = "create"

    def to_action(self) -> dict[str, Any]:
        return {
            "_op_type": self.op_type,
            "_index": self.index,
            "_id": self.doc_id,
            "_source": dict(self.source),
        }


@dataclass(frozen=True)
class DeleteOperation:
    index: str
    doc_id: str

    op_type = "delete"

    def to_action(self) -> dict[str, Any]:
        return {"_op_type": self.op_type, "_index": self.index, "_id": self.doc_id}


@dataclass(frozen=True)
class UpdateOperation:
    """Partial update of an existing document.

    Attributes:
        set_fields: Fields to merge into the stored source.
        remove_field: Name of a single field to remove server-side.
    """

    index: str
    doc_id: str
    set_fields: dict[str, Any] = field(default_factory=dict)
    remove_field: str | None = None

    op_type = "update"

    def script(self) -> dict[str, Any] | None:
        if self.remove_field is None:
            return None
        return {
            "source": REMOVE_FIELD_SCRIPT,
            "lang": "painless",
            "params": {"field": self.remove_field},
        }

    def to_action(self) -> dict[str, Any]:
        action: dict[str, Any] = {
            "_op_type": self.op_type,
            "_index": self.index,
            "_id": self.doc_id,
        }
        script = self.script()
        if script is not None:
            action["script"] = script
        else:
            action["doc"] = dict(self.set_fields)
        return action


Operation = Union[IndexOperation, DeleteOperation, UpdateOperation]


@dataclass
class BulkResult:
    """Outcome of a bulk submission.

    Attributes:
        succeeded: Number of operations the backend applied.
        errors: Per-item error records as reported by the backend.
    """

    succeeded: int = 0
    errors: list[dict[str, Any]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class MutationBatch:
    """Ordered accumulator of pending write operations.

    Staging never performs I/O.  ``drain`` hands the staged operations to
    the caller and leaves the batch empty; the service replaces its batch
    with a fresh instance on every commit, so a drained batch is discarded.
    A lock guards staging so concurrent callers cannot interleave a stage
    with a drain.
    """

    def __init__(self) -> None:
        self._operations: list[Operation] = []
        self._lock = threading.Lock()

    def stage(self, operation: Operation) -> None:
        with self._lock:
            self._operations.append(operation)

    def drain(self) -> list[Operation]:
        with self._lock:
            operations, self._operations = self._operations, []
        return operations

    @property
    def operations(self) -> list[Operation]:
        with self._lock:
            return list(self._operations)

    def __len__(self) -> int:
        with self._lock:
            return len(self._operations)


__all__ = [
    "IndexOperation",
    "DeleteOperation",
    "UpdateOperation",
    "Operation",
    "BulkResult",
    "MutationBatch",
    "REMOVE_FIELD_SCRIPT",
]
