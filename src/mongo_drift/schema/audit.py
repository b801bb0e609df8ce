"""Collection-by-collection audit of a source/target database pair.

Drives the engine for every collection: document counts, index loading,
index comparison, and -- when authorized -- reconciliation of the target.
Collections are processed one at a time, sequentially.

Usage:
    from mongo_drift.schema.audit import AuditOptions, run_audit

    options = AuditOptions(
        source_filter={"tenant": "a"},
        target_filter={"tenant": "a"},
        force_create_index=False,
    )
    result = run_audit(source_driver, target_driver, options)
    for report in result.collections:
        print("\\n".join(report.format_lines()))
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel, Field

from mongo_drift.adapters.base import CollectionDriver
from mongo_drift.errors import DeadlineExceededError, DriverError
from mongo_drift.schema.comparator import compare_counts, diff_index_set
from mongo_drift.schema.loader import Side, load_index_set
from mongo_drift.schema.models import AuditResult, CollectionReport
from mongo_drift.schema.reconcile import apply_reconcile_plan, generate_reconcile_plan

logger = logging.getLogger(__name__)


class AuditOptions(BaseModel):
    """Switches for one audit run.

    Attributes:
        source_filter: Predicate for counting source documents.
        target_filter: Predicate for counting target documents.
        compare_counts: Compare document counts per collection.
        force_create_index: Repair the target (drop/create indexes) instead
            of only reporting.
    """

    source_filter: dict[str, Any] = Field(default_factory=dict)
    target_filter: dict[str, Any] = Field(default_factory=dict)
    compare_counts: bool = True
    force_create_index: bool = False


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _count_documents(
    driver: CollectionDriver,
    collection: str,
    filter: Mapping[str, Any],
    side: Side,
    warnings: list[str],
) -> int:
    """Count documents on one side, treating a failure as zero."""
    try:
        return driver.count_documents(collection, filter)
    except DeadlineExceededError:
        raise
    except DriverError as e:
        message = f"Failed to count documents in {side} collection '{collection}': {e}"
        logger.warning(message)
        warnings.append(message)
        return 0


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def list_audit_collections(
    source: CollectionDriver,
    target: CollectionDriver,
) -> list[str]:
    """List the collections to audit.

    Source collections come first, in listing order, followed by
    collections that only exist on the target.

    Raises:
        DriverError: If either listing fails.  This is fatal for the run.
    """
    source_names = source.list_collection_names()
    target_names = target.list_collection_names()

    names = list(dict.fromkeys(source_names))
    seen = set(names)
    names.extend(name for name in dict.fromkeys(target_names) if name not in seen)
    return names


def audit_collection(
    source: CollectionDriver,
    target: CollectionDriver,
    collection: str,
    options: AuditOptions,
) -> CollectionReport:
    """Audit, and optionally reconcile, one collection.

    Count and index-listing failures are recorded as warnings; a missing
    count reads as 0 and a missing index listing as an empty set.

    Args:
        source: Driver bound to the source database.
        target: Driver bound to the target database.
        collection: Collection name.
        options: Run switches.

    Returns:
        ``CollectionReport`` for the collection.

    Raises:
        DeadlineExceededError: If the run deadline elapsed.
    """
    report = CollectionReport(collection=collection)

    if options.compare_counts:
        source_count = _count_documents(
            source, collection, options.source_filter, "source", report.warnings
        )
        target_count = _count_documents(
            target, collection, options.target_filter, "target", report.warnings
        )
        report.counts = compare_counts(source_count, target_count)

    source_loaded = load_index_set(source, collection, "source")
    target_loaded = load_index_set(target, collection, "target")
    report.warnings.extend(source_loaded.warnings)
    report.warnings.extend(target_loaded.warnings)

    report.indexes = diff_index_set(source_loaded.indexes, target_loaded.indexes)
    plan = generate_reconcile_plan(collection, report.indexes, source_loaded.indexes)

    if options.force_create_index:
        report.reconcile = apply_reconcile_plan(target, plan, dry_run=False)
        report.warnings.extend(
            f"Index '{name}' on collection '{collection}': {message}"
            for name, message in report.reconcile.failed.items()
        )
    else:
        report.statements = {
            fix.name: fix.to_statement(collection)
            for fix in plan.creates
            if not fix.is_recreate
        }

    return report


def run_audit(
    source: CollectionDriver,
    target: CollectionDriver,
    options: AuditOptions | None = None,
    on_report: Callable[[CollectionReport], None] | None = None,
) -> AuditResult:
    """Audit every collection of a source/target pair.

    Args:
        source: Driver bound to the source database.
        target: Driver bound to the target database.
        options: Run switches (defaults: compare counts, report only).
        on_report: Optional callback invoked with each collection report
            as soon as it is complete.

    Returns:
        ``AuditResult`` with one report per collection.

    Raises:
        DriverError: If the collections cannot be listed.
        DeadlineExceededError: If the run deadline elapsed.
    """
    options = options or AuditOptions()
    result = AuditResult(
        source_database=source.database_name,
        target_database=target.database_name,
    )

    for collection in list_audit_collections(source, target):
        logger.debug(f"Auditing collection '{collection}'")
        report = audit_collection(source, target, collection, options)
        result.collections.append(report)
        if on_report is not None:
            on_report(report)

    return result
