"""Connection factory for audit runs.

Resolves each side's settings (CLI flags over profile values over
built-in defaults), parses document filters, and opens one pinged
``MongoClient`` per side for the duration of a run.

Usage:
    from mongo_drift.factory import open_drivers, resolve_endpoint

    source = resolve_endpoint("source", uri="mongodb://a:27017", database="app")
    target = resolve_endpoint("target", uri="mongodb://b:27017", database="app")

    with pymongo.timeout(60):
        with open_drivers(source, target) as (source_driver, target_driver):
            ...
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Literal
from urllib.parse import quote

from bson import json_util
from bson.errors import BSONError
from pydantic import BaseModel, Field
from pymongo import MongoClient
from pymongo.errors import PyMongoError

from mongo_drift.adapters.mongo import MongoCollectionDriver
from mongo_drift.config.models import DriftConfig, DriftProfile
from mongo_drift.errors import (
    ConnectionFailedError,
    FilterParseError,
    ProfileNotFoundError,
)

logger = logging.getLogger(__name__)

DEFAULT_URI = "mongodb://localhost:27017"
DEFAULT_DATABASES = {"source": "source-db", "target": "target-db"}
APP_NAME = "mongo-drift"


class Endpoint(BaseModel):
    """Resolved connection settings for one side of an audit."""

    side: Literal["source", "target"]
    uri: str
    database: str
    filter: dict[str, Any] = Field(default_factory=dict)
    filter_text: str = "{}"


# ============================================================================
# Settings resolution
# ============================================================================


def resolve_uri(profile: DriftProfile) -> str:
    """Resolve a profile URI with password substitution.

    Replaces the ``[YOUR-PASSWORD]`` placeholder with the URL-encoded
    ``password`` when the profile provides one.

    Example:
        >>> profile = DriftProfile(
        ...     uri="mongodb://app:[YOUR-PASSWORD]@db:27017",
        ...     database="app",
        ...     password="p@ss",
        ... )
        >>> resolve_uri(profile)
        'mongodb://app:p%40ss@db:27017'
    """
    uri = profile.uri
    if profile.password and "[YOUR-PASSWORD]" in uri:
        uri = uri.replace("[YOUR-PASSWORD]", quote(profile.password, safe=""))
    return uri


def get_profile(config: DriftConfig, profile_name: str) -> DriftProfile:
    """Look up a profile by name.

    Raises:
        ProfileNotFoundError: If the profile is not in the config.
    """
    if profile_name not in config.profiles:
        available = ", ".join(config.profiles) or "(none)"
        raise ProfileNotFoundError(
            f"Profile '{profile_name}' not found. Available: {available}"
        )
    return config.profiles[profile_name]


def parse_filter(filter_text: str, side: str) -> dict[str, Any]:
    """Parse an Extended JSON document filter.

    Args:
        filter_text: Filter document, e.g. ``'{"status": "active"}'``.
        side: ``"source"`` or ``"target"``, used in the error message.

    Returns:
        The filter as a dict.

    Raises:
        FilterParseError: If the text is not an Extended JSON object.
    """
    try:
        parsed = json_util.loads(filter_text)
    except (ValueError, TypeError, BSONError) as e:
        raise FilterParseError(f"Failed to parse {side} filter: {e}") from e
    if not isinstance(parsed, dict):
        raise FilterParseError(
            f"Failed to parse {side} filter: expected a document, "
            f"got {type(parsed).__name__}"
        )
    return parsed


def resolve_endpoint(
    side: Literal["source", "target"],
    uri: str | None = None,
    database: str | None = None,
    filter_text: str | None = None,
    profile: DriftProfile | None = None,
) -> Endpoint:
    """Resolve one side's settings.

    Explicit arguments win over profile values, which win over the
    built-in defaults (``mongodb://localhost:27017``, ``source-db`` /
    ``target-db``, ``{}``).

    Raises:
        FilterParseError: If the resolved filter is invalid.
    """
    if uri is None:
        uri = resolve_uri(profile) if profile else DEFAULT_URI
    if database is None:
        database = profile.database if profile else DEFAULT_DATABASES[side]
    if filter_text is None:
        filter_text = profile.filter if profile else "{}"

    return Endpoint(
        side=side,
        uri=uri,
        database=database,
        filter=parse_filter(filter_text, side),
        filter_text=filter_text,
    )


# ============================================================================
# Connections
# ============================================================================


def connect_database(endpoint: Endpoint) -> MongoClient:
    """Connect to one side and ping it.

    Args:
        endpoint: Resolved settings for the side.

    Returns:
        A connected ``MongoClient``.  The caller closes it.

    Raises:
        ConnectionFailedError: If the client cannot be created or the ping
            fails.
    """
    try:
        client: MongoClient = MongoClient(endpoint.uri, appname=APP_NAME)
    except PyMongoError as e:
        raise ConnectionFailedError(
            f"Failed to connect to {endpoint.side} MongoDB: {e}"
        ) from e

    try:
        client.admin.command("ping")
    except PyMongoError as e:
        client.close()
        raise ConnectionFailedError(
            f"Failed to ping {endpoint.side} MongoDB: {e}"
        ) from e

    logger.info(f"Connected to {endpoint.side} MongoDB, database '{endpoint.database}'")
    return client


@contextmanager
def open_drivers(
    source: Endpoint,
    target: Endpoint,
) -> Iterator[tuple[MongoCollectionDriver, MongoCollectionDriver]]:
    """Open both connections for the duration of a run.

    Yields:
        Tuple of (source driver, target driver).

    Raises:
        ConnectionFailedError: If either side cannot be reached.
    """
    source_client = connect_database(source)
    try:
        target_client = connect_database(target)
    except ConnectionFailedError:
        source_client.close()
        raise

    try:
        yield (
            MongoCollectionDriver(source_client[source.database]),
            MongoCollectionDriver(target_client[target.database]),
        )
    finally:
        target_client.close()
        source_client.close()
