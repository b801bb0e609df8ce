"""Load a collection's indexes into an ``IndexSet``.

Isolates driver failures and undecodable index records from the comparison
logic: the comparator only ever sees well-formed ``IndexDefinition``s.

Usage:
    from mongo_drift.schema.loader import load_index_set

    loaded = load_index_set(source_driver, "users", "source")
    for warning in loaded.warnings:
        print(warning)
    definitions = loaded.indexes
"""

import logging
from typing import Literal

from pydantic import BaseModel, Field

from mongo_drift.adapters.base import CollectionDriver
from mongo_drift.errors import DeadlineExceededError, DriverError, IndexDecodeError
from mongo_drift.schema.models import IndexDefinition, IndexSet

logger = logging.getLogger(__name__)

Side = Literal["source", "target"]


class LoadedIndexSet(BaseModel):
    """An index set plus the warnings raised while building it."""

    indexes: IndexSet = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)


def load_index_set(
    driver: CollectionDriver,
    collection: str,
    side: Side,
) -> LoadedIndexSet:
    """List and decode the indexes of one collection on one side.

    A failed listing (e.g. the collection does not exist on this side)
    yields an empty set and a warning -- asymmetric collections are a
    finding, not a fatal condition.  Records that cannot be decoded are
    skipped with a warning.  Duplicate names overwrite earlier entries.

    Args:
        driver: Driver bound to the side's database.
        collection: Collection name.
        side: ``"source"`` or ``"target"``, used in warnings.

    Returns:
        ``LoadedIndexSet`` with definitions in listing order.

    Raises:
        DeadlineExceededError: If the run deadline elapsed.
    """
    result = LoadedIndexSet()

    try:
        records = driver.list_indexes(collection)
    except DeadlineExceededError:
        raise
    except DriverError as e:
        message = (
            f"Cannot get indexes for collection '{collection}' "
            f"in {side} DB '{driver.database_name}': {e}"
        )
        logger.warning(message)
        result.warnings.append(message)
        return result

    for record in records:
        try:
            definition = IndexDefinition.from_record(record)
        except IndexDecodeError as e:
            message = f"Failed to decode {side} index for collection '{collection}': {e}"
            logger.warning(message)
            result.warnings.append(message)
            continue
        result.indexes[definition.name] = definition

    logger.debug(
        "Loaded %d %s indexes for collection '%s'",
        len(result.indexes), side, collection,
    )
    return result
