"""mongo-drift: audit and repair index drift between two MongoDB databases.

Compares document counts and secondary indexes collection by collection,
reports every mismatch, and -- when authorized -- drops and recreates
indexes on the target until it matches the source.

Usage:
    from mongo_drift import MongoCollectionDriver, AuditOptions, run_audit
    from mongo_drift import IndexDefinition, diff_index, diff_index_set
    from mongo_drift import render_create_index
"""

__version__ = "0.1.0"

# Drivers
from mongo_drift.adapters.base import CollectionDriver
from mongo_drift.adapters.mongo import MongoCollectionDriver

# Config
from mongo_drift.config.loader import load_drift_config
from mongo_drift.config.models import DriftConfig, DriftProfile

# Errors
from mongo_drift.errors import (
    ConnectionFailedError,
    DeadlineExceededError,
    DriverError,
    FilterParseError,
    IndexDecodeError,
    MongoDriftError,
    ProfileNotFoundError,
)

# Schema
from mongo_drift.schema.audit import AuditOptions, run_audit
from mongo_drift.schema.comparator import diff_index, diff_index_set
from mongo_drift.schema.models import IndexDefinition, MismatchReport
from mongo_drift.schema.statement import render_create_index

__all__ = [
    # Drivers
    "CollectionDriver",
    "MongoCollectionDriver",
    # Config
    "load_drift_config",
    "DriftConfig",
    "DriftProfile",
    # Errors
    "MongoDriftError",
    "DriverError",
    "DeadlineExceededError",
    "IndexDecodeError",
    "FilterParseError",
    "ConnectionFailedError",
    "ProfileNotFoundError",
    # Schema
    "AuditOptions",
    "run_audit",
    "IndexDefinition",
    "MismatchReport",
    "diff_index",
    "diff_index_set",
    "render_create_index",
]
