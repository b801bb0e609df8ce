"""Pydantic models for index auditing and reconciliation.

This module contains the audit-domain models:
- Index model: IndexDefinition (plus the IndexSet alias)
- Comparison models: MismatchReport, CountComparison
- Outcome models: ReconcileResult, CollectionReport, AuditResult

Configuration models (DriftProfile, DriftConfig) live in
mongo_drift.config.models.
"""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field

from mongo_drift.errors import IndexDecodeError

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1

# (listIndexes field, IndexDefinition attribute), in comparison order.
COMPARED_PROPERTIES: list[tuple[str, str]] = [
    ("unique", "unique"),
    ("sparse", "sparse"),
    ("expireAfterSeconds", "expire_after_seconds"),
    ("partialFilterExpression", "partial_filter_expression"),
    ("collation", "collation"),
]


# ============================================================================
# Record decoding helpers
# ============================================================================


def _normalize_value(value: Any) -> Any:
    """Recursively convert BSON documents (SON, RawBSONDocument) to dicts."""
    if isinstance(value, Mapping):
        return {str(k): _normalize_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize_value(v) for v in value]
    return value


def _read_keys(value: Any) -> list[tuple[str, Any]]:
    if not isinstance(value, Mapping):
        return []
    return [(str(field), _normalize_value(direction)) for field, direction in value.items()]


def _read_bool(value: Any) -> bool | None:
    return value if isinstance(value, bool) else None


def _read_int32(value: Any) -> int | None:
    # bool is an int subclass
    if isinstance(value, bool):
        return None
    if isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)
    if isinstance(value, int) and INT32_MIN <= value <= INT32_MAX:
        return int(value)
    return None


def _read_document(value: Any) -> dict[str, Any] | None:
    if not isinstance(value, Mapping):
        return None
    return _normalize_value(value)


# ============================================================================
# Index Model
# ============================================================================


class IndexDefinition(BaseModel):
    """Normalized definition of one index on one collection.

    Optional properties use ``None`` for "absent".  Absent is never the same
    as an explicit ``False``/``0``: an index created with ``unique=False``
    differs from one created without the option.

    Example:
        >>> idx = IndexDefinition(name="idx_email", keys=[("email", 1)], unique=True)
        >>> idx.create_options()
        {'name': 'idx_email', 'unique': True}
    """

    name: str
    keys: list[tuple[str, Any]] = Field(default_factory=list)
    unique: bool | None = None
    sparse: bool | None = None
    expire_after_seconds: int | None = None
    partial_filter_expression: dict[str, Any] | None = None
    collation: dict[str, Any] | None = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "IndexDefinition":
        """Build a definition from a raw ``listIndexes`` record.

        Only ``name`` is mandatory.  Every other field is read best-effort:
        a field present with an unexpected shape (e.g. ``unique: 1`` or a
        non-document ``collation``) is treated as absent.

        Args:
            record: One index document as returned by the server.

        Returns:
            The decoded ``IndexDefinition``.

        Raises:
            IndexDecodeError: If ``name`` is missing or not a string.
        """
        if not isinstance(record, Mapping):
            raise IndexDecodeError(
                f"Index record must be a document, got {type(record).__name__}"
            )
        if "name" not in record:
            raise IndexDecodeError("Index record has no 'name' field")
        name = record["name"]
        if not isinstance(name, str):
            raise IndexDecodeError(
                f"Index name must be a string, got {type(name).__name__}"
            )

        return cls(
            name=name,
            keys=_read_keys(record.get("key")),
            unique=_read_bool(record.get("unique")),
            sparse=_read_bool(record.get("sparse")),
            expire_after_seconds=_read_int32(record.get("expireAfterSeconds")),
            partial_filter_expression=_read_document(
                record.get("partialFilterExpression")
            ),
            collation=_read_document(record.get("collation")),
        )

    def get_property(self, wire_name: str) -> Any:
        """Return an optional property by its ``listIndexes`` field name."""
        for field_name, attr in COMPARED_PROPERTIES:
            if field_name == wire_name:
                return getattr(self, attr)
        raise KeyError(wire_name)

    def create_options(self) -> dict[str, Any]:
        """Options for ``createIndex``: ``name`` plus every present property."""
        options: dict[str, Any] = {"name": self.name}
        for field_name, attr in COMPARED_PROPERTIES:
            value = getattr(self, attr)
            if value is not None:
                options[field_name] = value
        return options


# Index name -> definition, in listing order, for one collection on one side.
IndexSet = dict[str, IndexDefinition]


# ============================================================================
# Comparison Models
# ============================================================================


class MismatchReport(BaseModel):
    """Partition of two index sets by name.

    Attributes:
        common: Names present on both sides, mapped to their mismatch
            reasons (empty list = match), in target listing order.
        source_only: Names only in the source (to create on target).
        target_only: Names only in the target (to drop from target).
    """

    common: dict[str, list[str]] = Field(default_factory=dict)
    source_only: list[str] = Field(default_factory=list)
    target_only: list[str] = Field(default_factory=list)

    @property
    def matched(self) -> list[str]:
        """Common names with no mismatch."""
        return [name for name, reasons in self.common.items() if not reasons]

    @property
    def mismatched(self) -> dict[str, list[str]]:
        """Common names with at least one mismatch reason."""
        return {name: reasons for name, reasons in self.common.items() if reasons}

    @property
    def has_drift(self) -> bool:
        return bool(self.mismatched or self.source_only or self.target_only)


class CountComparison(BaseModel):
    """Document counts for one collection on both sides."""

    source_count: int
    target_count: int
    matched: bool


# ============================================================================
# Outcome Models
# ============================================================================


class ReconcileResult(BaseModel):
    """Result of applying a reconcile plan to the target.

    Attributes:
        dry_run: True if nothing was executed.
        dropped: Index names dropped from the target.
        created: Index names created on the target.
        failed: Index name -> error message for actions that failed or were
            skipped.
    """

    dry_run: bool = True
    dropped: list[str] = Field(default_factory=list)
    created: list[str] = Field(default_factory=list)
    failed: dict[str, str] = Field(default_factory=dict)

    @property
    def success(self) -> bool:
        return not self.failed


class CollectionReport(BaseModel):
    """Everything learned about one collection in one audit pass.

    Example:
        >>> report = CollectionReport(collection="users")
        >>> report.format_lines()
        ['Collection: users']
    """

    collection: str
    counts: CountComparison | None = None
    indexes: MismatchReport = Field(default_factory=MismatchReport)
    statements: dict[str, str] = Field(default_factory=dict)
    reconcile: ReconcileResult | None = None
    warnings: list[str] = Field(default_factory=list)

    @property
    def has_drift(self) -> bool:
        counts_drift = self.counts is not None and not self.counts.matched
        return counts_drift or self.indexes.has_drift

    def _action_lines(self, name: str) -> list[str]:
        if self.reconcile is None or self.reconcile.dry_run:
            return []
        lines = []
        if name in self.reconcile.dropped:
            lines.append(
                f"    - Dropped index '{name}' from target collection '{self.collection}'"
            )
        if name in self.reconcile.created:
            lines.append(
                f"    - Created index '{name}' on target collection '{self.collection}'"
            )
        if name in self.reconcile.failed:
            lines.append(
                f"    - Failed to reconcile index '{name}': {self.reconcile.failed[name]}"
            )
        return lines

    def format_lines(self, hide_matching: bool = False) -> list[str]:
        """Format the collection as line-oriented report output.

        Args:
            hide_matching: Leave out matching count and index lines.
        """
        lines = [f"Collection: {self.collection}"]

        if self.counts is not None and not (hide_matching and self.counts.matched):
            status = "Match" if self.counts.matched else "Mismatch"
            lines.append(
                f"  - Document Count | Match: {status} "
                f"(Source: {self.counts.source_count}, Target: {self.counts.target_count})"
            )

        for name, reasons in self.indexes.common.items():
            if not reasons:
                if not hide_matching:
                    lines.append(f"  - Index: {name:<30} | Match: Match")
                continue
            lines.append(
                f"  - Index: {name:<30} | Match: Mismatch ({', '.join(reasons)})"
            )
            lines.extend(self._action_lines(name))

        for name in self.indexes.target_only:
            lines.append(f"  - Index: {name:<30} | Match: Mismatch (Not in Source)")
            lines.extend(self._action_lines(name))

        for name in self.indexes.source_only:
            lines.append(f"  - Index: {name:<30} | Match: Mismatch (Not in Target)")
            if name in self.statements:
                lines.append(f"    - Create Index Statement: {self.statements[name]}")
            lines.extend(self._action_lines(name))

        return lines


class AuditResult(BaseModel):
    """Result of auditing every collection of a source/target pair."""

    source_database: str
    target_database: str
    collections: list[CollectionReport] = Field(default_factory=list)

    @property
    def has_drift(self) -> bool:
        return any(report.has_drift for report in self.collections)

    @property
    def warning_count(self) -> int:
        return sum(len(report.warnings) for report in self.collections)
