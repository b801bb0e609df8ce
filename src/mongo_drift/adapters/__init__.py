"""Collection driver package.

Provides the ``CollectionDriver`` Protocol and the pymongo-backed
``MongoCollectionDriver``.

Usage:
    from mongo_drift.adapters import CollectionDriver, MongoCollectionDriver
"""

from mongo_drift.adapters.base import CollectionDriver
from mongo_drift.adapters.mongo import MongoCollectionDriver

__all__ = [
    "CollectionDriver",
    "MongoCollectionDriver",
]
