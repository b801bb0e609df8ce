"""pymongo implementation of the ``CollectionDriver`` protocol.

Wraps a ``pymongo.database.Database`` and translates every
``PyMongoError`` into ``DriverError``.  Errors that pymongo flags as
timeouts (``PyMongoError.timeout``) become ``DeadlineExceededError`` so the
caller can abort the run when the shared ``pymongo.timeout()`` deadline
elapses.

Usage:
    from pymongo import MongoClient
    from mongo_drift.adapters.mongo import MongoCollectionDriver

    client = MongoClient("mongodb://localhost:27017")
    driver = MongoCollectionDriver(client["app"])
    names = driver.list_collection_names()
"""

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from pymongo.database import Database
from pymongo.errors import PyMongoError

from mongo_drift.errors import DeadlineExceededError, DriverError


@contextmanager
def _driver_errors(action: str) -> Iterator[None]:
    """Re-raise pymongo failures as driver errors."""
    try:
        yield
    except PyMongoError as e:
        if e.timeout:
            raise DeadlineExceededError(f"{action}: {e}") from e
        raise DriverError(f"{action}: {e}") from e


class MongoCollectionDriver:
    """Collection driver bound to one MongoDB database.

    Only regular collections are listed; views and collections whose name
    starts with one of ``excluded_prefixes`` are skipped.

    Args:
        database: pymongo ``Database`` handle.
        excluded_prefixes: Collection name prefixes to leave out of
            ``list_collection_names()``.
    """

    DEFAULT_EXCLUDED_PREFIXES = ("system.",)

    def __init__(
        self,
        database: Database,
        excluded_prefixes: tuple[str, ...] = DEFAULT_EXCLUDED_PREFIXES,
    ):
        self._database = database
        self._excluded_prefixes = excluded_prefixes

    @property
    def database_name(self) -> str:
        return self._database.name

    def list_collection_names(self) -> list[str]:
        with _driver_errors(f"list collections in '{self.database_name}'"):
            names = self._database.list_collection_names(
                filter={"type": "collection"}
            )
        return [
            name for name in names
            if not name.startswith(self._excluded_prefixes)
        ]

    def count_documents(self, collection: str, filter: Mapping[str, Any]) -> int:
        with _driver_errors(f"count documents in '{collection}'"):
            return self._database[collection].count_documents(dict(filter))

    def list_indexes(self, collection: str) -> list[Mapping[str, Any]]:
        # The cursor is drained inside the guard: iteration can fail too.
        with _driver_errors(f"list indexes of '{collection}'"):
            return list(self._database[collection].list_indexes())

    def create_index(
        self,
        collection: str,
        keys: list[tuple[str, Any]],
        options: Mapping[str, Any],
    ) -> None:
        with _driver_errors(f"create index on '{collection}'"):
            self._database[collection].create_index(list(keys), **options)

    def drop_index(self, collection: str, name: str) -> None:
        with _driver_errors(f"drop index '{name}' on '{collection}'"):
            self._database[collection].drop_index(name)
