"""In-memory stand-ins for the few PyMongo collection methods the app calls."""
from __future__ import annotations

from typing import Any

from pymongo.errors import PyMongoError


class FakeCursor:
    def __init__(self, docs: list[dict[str, Any]]) -> None:
        self.docs = docs
        self.sort_spec: Any = None

    def sort(self, spec: Any) -> "FakeCursor":
        self.sort_spec = spec
        return self

    def __iter__(self):
        return iter(self.docs)


class FakeCollection:
    def __init__(self, docs: list[dict[str, Any]] | None = None, fail_writes: bool = False) -> None:
        self.name = "fake"
        self.docs = docs or []
        self.fail_writes = fail_writes
        self.finds: list[tuple[Any, Any]] = []
        self.pipelines: list[list[dict[str, Any]]] = []
        self.batches: list[int] = []

    def find(self, query: Any, projection: Any = None) -> FakeCursor:
        self.finds.append((query, projection))
        return FakeCursor(list(self.docs))

    def aggregate(self, pipeline: list[dict[str, Any]]):
        self.pipelines.append(pipeline)
        return iter(self.docs)

    def bulk_write(self, ops: list[Any], ordered: bool = True) -> None:
        if self.fail_writes:
            raise PyMongoError("write failed")
        self.batches.append(len(ops))
