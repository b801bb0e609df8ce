"""Tests for the pymongo ``CollectionDriver`` implementation."""

import inspect
from unittest.mock import MagicMock

import pytest
from pymongo.errors import ExecutionTimeout, NetworkTimeout, OperationFailure

from mongo_drift.adapters.base import CollectionDriver
from mongo_drift.adapters.mongo import MongoCollectionDriver
from mongo_drift.errors import DeadlineExceededError, DriverError


@pytest.fixture
def database() -> MagicMock:
    db = MagicMock()
    db.name = "app"
    return db


class TestMongoCollectionDriver:
    def test_implements_protocol_methods(self) -> None:
        members = [
            name for name in vars(CollectionDriver)
            if not name.startswith("_")
        ]
        assert members
        for name in members:
            assert hasattr(MongoCollectionDriver, name), name
            if callable(getattr(CollectionDriver, name)):
                assert not inspect.iscoroutinefunction(getattr(MongoCollectionDriver, name))

    def test_database_name(self, database) -> None:
        assert MongoCollectionDriver(database).database_name == "app"

    def test_lists_regular_collections_without_system(self, database) -> None:
        database.list_collection_names.return_value = ["users", "system.profile", "orders"]

        names = MongoCollectionDriver(database).list_collection_names()

        assert names == ["users", "orders"]
        database.list_collection_names.assert_called_once_with(
            filter={"type": "collection"}
        )

    def test_custom_excluded_prefixes(self, database) -> None:
        database.list_collection_names.return_value = ["users", "tmp_a", "system.js"]

        driver = MongoCollectionDriver(database, excluded_prefixes=("tmp_",))

        assert driver.list_collection_names() == ["users", "system.js"]

    def test_count_documents(self, database) -> None:
        database.__getitem__.return_value.count_documents.return_value = 4

        count = MongoCollectionDriver(database).count_documents("users", {"a": 1})

        assert count == 4
        database.__getitem__.assert_called_with("users")
        database.__getitem__.return_value.count_documents.assert_called_once_with({"a": 1})

    def test_list_indexes_drains_cursor(self, database) -> None:
        records = [{"name": "_id_", "key": {"_id": 1}}]
        database.__getitem__.return_value.list_indexes.return_value = iter(records)

        assert MongoCollectionDriver(database).list_indexes("users") == records

    def test_create_index_passes_options(self, database) -> None:
        MongoCollectionDriver(database).create_index(
            "users", [("email", 1)], {"name": "idx_email", "unique": True}
        )

        database.__getitem__.return_value.create_index.assert_called_once_with(
            [("email", 1)], name="idx_email", unique=True
        )

    def test_drop_index_by_name(self, database) -> None:
        MongoCollectionDriver(database).drop_index("users", "idx_email")

        database.__getitem__.return_value.drop_index.assert_called_once_with("idx_email")


class TestErrorMapping:
    def test_operation_failure_is_driver_error(self, database) -> None:
        database.__getitem__.return_value.drop_index.side_effect = OperationFailure(
            "cannot drop _id index", code=72
        )

        with pytest.raises(DriverError, match="cannot drop _id index") as exc_info:
            MongoCollectionDriver(database).drop_index("users", "_id_")

        assert not isinstance(exc_info.value, DeadlineExceededError)
        assert isinstance(exc_info.value.__cause__, OperationFailure)

    @pytest.mark.parametrize(
        "error",
        [
            ExecutionTimeout("operation exceeded time limit", code=50),
            NetworkTimeout("timed out"),
        ],
    )
    def test_timeouts_are_deadline_errors(self, database, error) -> None:
        database.list_collection_names.side_effect = error

        with pytest.raises(DeadlineExceededError):
            MongoCollectionDriver(database).list_collection_names()

    def test_iteration_failure_is_mapped(self, database) -> None:
        def cursor():
            yield {"name": "_id_"}
            raise OperationFailure("cursor killed")

        database.__getitem__.return_value.list_indexes.return_value = cursor()

        with pytest.raises(DriverError, match="cursor killed"):
            MongoCollectionDriver(database).list_indexes("users")
