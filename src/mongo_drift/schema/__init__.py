"""Index auditing, comparison, and drift repair.

Provides the index model (``IndexDefinition``), index loading
(``load_index_set``), comparison (``diff_index``, ``diff_index_set``),
reconciliation (``generate_reconcile_plan``, ``apply_reconcile_plan``),
statement rendering (``render_create_index``) and the per-collection audit
flow (``run_audit``).

Usage:
    from mongo_drift.schema import diff_index_set, load_index_set
    from mongo_drift.schema import generate_reconcile_plan, apply_reconcile_plan
    from mongo_drift.schema import AuditOptions, run_audit
"""

from mongo_drift.schema.audit import (
    AuditOptions,
    audit_collection,
    list_audit_collections,
    run_audit,
)
from mongo_drift.schema.comparator import (
    compare_counts,
    counts_match,
    diff_index,
    diff_index_set,
)
from mongo_drift.schema.loader import LoadedIndexSet, load_index_set
from mongo_drift.schema.models import (
    AuditResult,
    CollectionReport,
    CountComparison,
    IndexDefinition,
    IndexSet,
    MismatchReport,
    ReconcileResult,
)
from mongo_drift.schema.reconcile import (
    IndexCreate,
    ReconcilePlan,
    apply_reconcile_plan,
    generate_reconcile_plan,
)
from mongo_drift.schema.statement import parse_create_index, render_create_index

__all__ = [
    "IndexDefinition",
    "IndexSet",
    "MismatchReport",
    "CountComparison",
    "ReconcileResult",
    "CollectionReport",
    "AuditResult",
    "load_index_set",
    "LoadedIndexSet",
    "diff_index",
    "diff_index_set",
    "counts_match",
    "compare_counts",
    "generate_reconcile_plan",
    "apply_reconcile_plan",
    "ReconcilePlan",
    "IndexCreate",
    "render_create_index",
    "parse_create_index",
    "AuditOptions",
    "audit_collection",
    "list_audit_collections",
    "run_audit",
]
