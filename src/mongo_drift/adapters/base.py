"""Collection driver protocol definition.

Defines the ``CollectionDriver`` Protocol that the audit engine calls for
every database operation.  One driver instance is bound to one database on
one side (source or target).  All methods are blocking -- the run is
sequential and bounded by a single shared deadline.

Usage:
    from mongo_drift.adapters.base import CollectionDriver

    def do_work(driver: CollectionDriver) -> None:
        for name in driver.list_collection_names():
            count = driver.count_documents(name, {})
            records = driver.list_indexes(name)
        driver.create_index("users", [("email", 1)], {"name": "idx_email"})
        driver.drop_index("users", "idx_email")
"""

from collections.abc import Mapping
from typing import Any, Protocol

from mongo_drift.errors import DeadlineExceededError, DriverError

__all__ = ["CollectionDriver", "DeadlineExceededError", "DriverError"]


class CollectionDriver(Protocol):
    """Per-collection database primitives used by the audit engine.

    Implementations raise ``DriverError`` on failure and
    ``DeadlineExceededError`` when the run deadline has elapsed.
    """

    @property
    def database_name(self) -> str:
        """Name of the database this driver is bound to."""
        ...

    def list_collection_names(self) -> list[str]:
        """List collection names in listing order.

        Returns:
            Collection names.  System collections are excluded.
        """
        ...

    def count_documents(self, collection: str, filter: Mapping[str, Any]) -> int:
        """Count documents in a collection matching a filter.

        Args:
            collection: Collection name.
            filter: Query predicate (``{}`` for all documents).

        Returns:
            Number of matching documents.

        Raises:
            DriverError: If the predicate is invalid or the count fails.
        """
        ...

    def list_indexes(self, collection: str) -> list[Mapping[str, Any]]:
        """List raw index records for a collection.

        Each record contains at least a ``name`` field; the remaining fields
        are whatever the server reports (``key``, ``unique``, ...).

        Raises:
            DriverError: If the listing fails (e.g. the collection does not
                exist).
        """
        ...

    def create_index(
        self,
        collection: str,
        keys: list[tuple[str, Any]],
        options: Mapping[str, Any],
    ) -> None:
        """Create an index.

        Args:
            collection: Collection name.
            keys: Ordered (field, direction-or-type) pairs.
            options: Index options (``name``, ``unique``, ...).  Only the
                options present are sent to the server.

        Raises:
            DriverError: If the server rejects the index.
        """
        ...

    def drop_index(self, collection: str, name: str) -> None:
        """Drop an index by name.

        Raises:
            DriverError: If the index or collection does not exist.
        """
        ...
