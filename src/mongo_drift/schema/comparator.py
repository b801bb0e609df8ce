"""Index comparison by name and by property.

Compares source index definitions against target index definitions.
Pure logic -- no I/O, no database connections.

Usage:
    from mongo_drift.schema.comparator import diff_index_set
    from mongo_drift.schema.loader import load_index_set

    source = load_index_set(source_driver, "users", "source").indexes
    target = load_index_set(target_driver, "users", "target").indexes

    report = diff_index_set(source, target)
    for name, reasons in report.mismatched.items():
        print(name, reasons)
"""

from mongo_drift.schema.models import (
    COMPARED_PROPERTIES,
    CountComparison,
    IndexDefinition,
    IndexSet,
    MismatchReport,
)
from mongo_drift.schema.statement import format_keys, format_value


def diff_index(source: IndexDefinition, target: IndexDefinition) -> list[str]:
    """List the differences between two definitions of the same index.

    Checks run in a fixed order so output is stable across runs:

    1. ``keys`` as an ordered sequence -- a missing or extra field, a
       reordering or a direction change all yield one "Key mismatch" reason
       showing both key specifications.
    2. ``unique``, ``sparse``, ``expireAfterSeconds``,
       ``partialFilterExpression``, ``collation``: a property set on one
       side only yields an "existence mismatch"; a property set on both
       sides with different values yields a "value mismatch".

    Args:
        source: Definition from the source database.
        target: Definition from the target database.

    Returns:
        Mismatch reasons; empty if the definitions are equivalent.

    Examples:
        >>> a = IndexDefinition(name="idx_a", keys=[("a", 1)], sparse=True)
        >>> b = IndexDefinition(name="idx_a", keys=[("a", 1)])
        >>> diff_index(a, b)
        ["'sparse' property existence mismatch (Source: present, Target: absent)"]

        >>> diff_index(a, a)
        []
    """
    reasons: list[str] = []

    if list(source.keys) != list(target.keys):
        reasons.append(
            f"Key mismatch (Source: {format_keys(source.keys)}, "
            f"Target: {format_keys(target.keys)})"
        )

    for field_name, attr in COMPARED_PROPERTIES:
        source_value = getattr(source, attr)
        target_value = getattr(target, attr)
        source_present = source_value is not None
        target_present = target_value is not None

        if source_present != target_present:
            reasons.append(
                f"'{field_name}' property existence mismatch "
                f"(Source: {_presence(source_present)}, Target: {_presence(target_present)})"
            )
        elif source_present and source_value != target_value:
            reasons.append(
                f"'{field_name}' property value mismatch "
                f"(Source: {format_value(source_value)}, Target: {format_value(target_value)})"
            )

    return reasons


def _presence(present: bool) -> str:
    return "present" if present else "absent"


def diff_index_set(source_set: IndexSet, target_set: IndexSet) -> MismatchReport:
    """Partition two index sets into common, source-only and target-only names.

    Walks the target names in listing order: a name also found in the
    source is diffed with ``diff_index`` and removed from a working copy of
    the source; any other target name is target-only.  Whatever remains in
    the working copy is source-only, in source listing order.  Neither input
    is modified.

    Args:
        source_set: Source index set.
        target_set: Target index set.

    Returns:
        ``MismatchReport`` whose three partitions are disjoint and together
        cover every name in either set.

    Examples:
        >>> src = {"a": IndexDefinition(name="a", keys=[("a", 1)]),
        ...        "b": IndexDefinition(name="b", keys=[("b", 1)])}
        >>> tgt = {"a": IndexDefinition(name="a", keys=[("a", 1)]),
        ...        "c": IndexDefinition(name="c", keys=[("c", 1)])}
        >>> report = diff_index_set(src, tgt)
        >>> report.common, report.source_only, report.target_only
        ({'a': []}, ['b'], ['c'])
    """
    remaining: IndexSet = dict(source_set)
    common: dict[str, list[str]] = {}
    target_only: list[str] = []

    for name, target_index in target_set.items():
        source_index = remaining.pop(name, None)
        if source_index is None:
            target_only.append(name)
        else:
            common[name] = diff_index(source_index, target_index)

    return MismatchReport(
        common=common,
        source_only=list(remaining),
        target_only=target_only,
    )


def counts_match(source_count: int, target_count: int) -> bool:
    """True if the two document counts are equal."""
    return source_count == target_count


def compare_counts(source_count: int, target_count: int) -> CountComparison:
    """Pair two document counts with their match status."""
    return CountComparison(
        source_count=source_count,
        target_count=target_count,
        matched=counts_match(source_count, target_count),
    )
