"""Shared fixtures: an in-memory ``CollectionDriver`` for engine tests."""

from collections.abc import Mapping
from typing import Any

import pytest

from mongo_drift.errors import DriverError


def id_index() -> dict[str, Any]:
    """The ``_id_`` index record every collection carries."""
    return {"v": 2, "key": {"_id": 1}, "name": "_id_"}


class InMemoryDriver:
    """Dict-backed ``CollectionDriver`` mimicking pymongo behavior.

    - Counting or listing indexes of a missing collection returns 0 / [].
    - Creating an index on a missing collection creates the collection.
    - The ``_id_`` index cannot be dropped.
    - ``fail`` maps ``(method, collection_or_index)`` to an exception
      raised instead of performing the call.

    Args:
        database_name: Name reported by ``database_name``.
        collections: Collection name -> list of index records.
        documents: Collection name -> list of documents (for counts).
    """

    def __init__(
        self,
        database_name: str = "db",
        collections: dict[str, list[dict[str, Any]]] | None = None,
        documents: dict[str, list[dict[str, Any]]] | None = None,
    ):
        self._name = database_name
        self.indexes: dict[str, dict[str, dict[str, Any]]] = {}
        for collection, records in (collections or {}).items():
            self.indexes[collection] = {record["name"]: record for record in records}
        self.documents: dict[str, list[dict[str, Any]]] = dict(documents or {})
        for collection in self.documents:
            self.indexes.setdefault(collection, {"_id_": id_index()})
        self.fail: dict[tuple[str, str], Exception] = {}
        self.calls: list[tuple[str, ...]] = []

    @property
    def database_name(self) -> str:
        return self._name

    def _check(self, method: str, subject: str) -> None:
        error = self.fail.get((method, subject))
        if error is not None:
            raise error

    def list_collection_names(self) -> list[str]:
        self._check("list_collection_names", self._name)
        return list(self.indexes)

    def count_documents(self, collection: str, filter: Mapping[str, Any]) -> int:
        self._check("count_documents", collection)
        docs = self.documents.get(collection, [])
        return sum(
            1 for doc in docs
            if all(doc.get(field) == value for field, value in filter.items())
        )

    def list_indexes(self, collection: str) -> list[Mapping[str, Any]]:
        self._check("list_indexes", collection)
        return list(self.indexes.get(collection, {}).values())

    def create_index(
        self,
        collection: str,
        keys: list[tuple[str, Any]],
        options: Mapping[str, Any],
    ) -> None:
        self.calls.append(("create_index", collection, options["name"]))
        self._check("create_index", options["name"])
        indexes = self.indexes.setdefault(collection, {"_id_": id_index()})
        if options["name"] in indexes:
            raise DriverError(f"Index already exists with a different name: {options['name']}")
        record: dict[str, Any] = {"v": 2, "key": dict(keys)}
        record.update(options)
        indexes[options["name"]] = record

    def drop_index(self, collection: str, name: str) -> None:
        self.calls.append(("drop_index", collection, name))
        self._check("drop_index", name)
        if name == "_id_":
            raise DriverError("cannot drop _id index")
        indexes = self.indexes.get(collection, {})
        if name not in indexes:
            raise DriverError(f"index not found with name [{name}]")
        del indexes[name]


@pytest.fixture
def make_driver():
    """Factory fixture building ``InMemoryDriver`` instances."""
    return InMemoryDriver
