"""Index reconcile module -- repair index drift on the target.

Turns a ``MismatchReport`` into a plan of drops and creates, then applies
that plan through the ``CollectionDriver`` protocol.  Every index is
addressed by name, so each action is independent of the others: one
failed drop or create never blocks the rest of the plan.

Usage:
    from mongo_drift.schema.comparator import diff_index_set
    from mongo_drift.schema.reconcile import apply_reconcile_plan, generate_reconcile_plan

    # 1. Compare
    report = diff_index_set(source_set, target_set)

    # 2. Generate plan
    plan = generate_reconcile_plan("users", report, source_set)

    # 3. Apply
    result = apply_reconcile_plan(target_driver, plan, dry_run=False)
"""

import logging
from dataclasses import dataclass, field

from mongo_drift.adapters.base import CollectionDriver
from mongo_drift.errors import DeadlineExceededError, DriverError
from mongo_drift.schema.models import (
    IndexDefinition,
    IndexSet,
    MismatchReport,
    ReconcileResult,
)
from mongo_drift.schema.statement import render_create_index

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Plan data classes
# ------------------------------------------------------------------


@dataclass
class IndexCreate:
    """An index to be created on the target from its source definition.

    Example:
        fix = IndexCreate(definition=IndexDefinition(name="idx_email", keys=[("email", 1)]))
        fix.to_statement("users")
        # 'db.users.createIndex({ email: 1 }, { name: "idx_email" })'
    """

    definition: IndexDefinition
    is_recreate: bool = False  # True if paired with a drop of the same name

    @property
    def name(self) -> str:
        return self.definition.name

    def to_statement(self, collection: str) -> str:
        """Return the equivalent ``createIndex`` statement."""
        return render_create_index(collection, self.definition)


@dataclass
class ReconcilePlan:
    """Plan for repairing the indexes of one target collection.

    Attributes:
        collection: Collection the plan applies to.
        drops: Target index names to drop (mismatched, then target-only).
        creates: Source definitions to create (mismatched, then
            source-only).
    """

    collection: str
    drops: list[str] = field(default_factory=list)
    creates: list[IndexCreate] = field(default_factory=list)

    @property
    def has_fixes(self) -> bool:
        """True if there are any actions to apply."""
        return bool(self.drops or self.creates)

    @property
    def fix_count(self) -> int:
        """Total number of actions."""
        return len(self.drops) + len(self.creates)


# ------------------------------------------------------------------
# Plan generation
# ------------------------------------------------------------------


def generate_reconcile_plan(
    collection: str,
    report: MismatchReport,
    source_set: IndexSet,
) -> ReconcilePlan:
    """Generate the actions that make the target match the source.

    =====================  ===================================
    classification         actions
    =====================  ===================================
    common, match          none
    common, mismatch       drop target index, create from source
    target only            drop target index
    source only            create from source
    =====================  ===================================

    Args:
        collection: Collection name.
        report: Result of ``diff_index_set(source_set, target_set)``.
        source_set: Source definitions, used to recreate indexes.

    Returns:
        ``ReconcilePlan`` for the collection.
    """
    plan = ReconcilePlan(collection=collection)

    for name in report.mismatched:
        plan.drops.append(name)
        plan.creates.append(IndexCreate(definition=source_set[name], is_recreate=True))

    plan.drops.extend(report.target_only)

    for name in report.source_only:
        plan.creates.append(IndexCreate(definition=source_set[name]))

    return plan


# ------------------------------------------------------------------
# Plan application
# ------------------------------------------------------------------


def apply_reconcile_plan(
    driver: CollectionDriver,
    plan: ReconcilePlan,
    dry_run: bool = True,
) -> ReconcileResult:
    """Apply a reconcile plan to the target.

    All drops run before any create.  A failed drop or create is logged as
    a warning and recorded in ``ReconcileResult.failed``; the remaining
    actions still run.  A recreate whose drop failed is skipped, since the
    name is still taken on the target.

    Args:
        driver: Driver bound to the target database.
        plan: Plan from ``generate_reconcile_plan()``.
        dry_run: If True, only report -- nothing is executed.

    Returns:
        ``ReconcileResult`` with the dropped, created and failed names.

    Raises:
        DeadlineExceededError: If the run deadline elapsed; the run must
            stop.
    """
    result = ReconcileResult(dry_run=dry_run)

    if dry_run or not plan.has_fixes:
        return result

    collection = plan.collection

    for name in plan.drops:
        try:
            driver.drop_index(collection, name)
        except DeadlineExceededError:
            raise
        except DriverError as e:
            logger.warning(f"Failed to drop index '{name}' on collection '{collection}': {e}")
            result.failed[name] = f"drop failed: {e}"
            continue
        logger.info(f"Dropped index '{name}' from target collection '{collection}'")
        result.dropped.append(name)

    for fix in plan.creates:
        name = fix.name
        if fix.is_recreate and name not in result.dropped:
            logger.warning(
                f"Skipping create of index '{name}' on collection '{collection}': "
                f"the existing index could not be dropped"
            )
            continue

        if not fix.definition.keys:
            message = "could not determine index keys"
            logger.warning(f"Failed to create index '{name}' on collection '{collection}': {message}")
            result.failed[name] = f"create failed: {message}"
            continue

        try:
            driver.create_index(collection, fix.definition.keys, fix.definition.create_options())
        except DeadlineExceededError:
            raise
        except DriverError as e:
            logger.warning(f"Failed to create index '{name}' on collection '{collection}': {e}")
            result.failed[name] = f"create failed: {e}"
            continue
        logger.info(f"Created index '{name}' on target collection '{collection}'")
        result.created.append(name)

    return result
