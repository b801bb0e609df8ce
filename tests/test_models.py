"""Tests for the index model and report models.

Verifies that ``IndexDefinition.from_record`` rejects only a bad ``name``,
reads every optional field best-effort, and that ``create_options`` never
invents options the source did not specify.
"""

import pytest
from bson import Int64, SON

from mongo_drift.errors import IndexDecodeError
from mongo_drift.schema.models import (
    CollectionReport,
    CountComparison,
    IndexDefinition,
    MismatchReport,
    ReconcileResult,
)


# ------------------------------------------------------------------
# IndexDefinition.from_record
# ------------------------------------------------------------------


class TestFromRecordName:
    """Only the name field is mandatory."""

    def test_missing_name_raises(self) -> None:
        with pytest.raises(IndexDecodeError, match="no 'name' field"):
            IndexDefinition.from_record({"key": {"a": 1}})

    def test_non_string_name_raises(self) -> None:
        with pytest.raises(IndexDecodeError, match="must be a string"):
            IndexDefinition.from_record({"name": 42, "key": {"a": 1}})

    def test_non_mapping_record_raises(self) -> None:
        with pytest.raises(IndexDecodeError):
            IndexDefinition.from_record(["name", "idx"])  # type: ignore[arg-type]

    def test_name_only_record(self) -> None:
        idx = IndexDefinition.from_record({"name": "idx_a"})

        assert idx.name == "idx_a"
        assert idx.keys == []
        assert idx.unique is None
        assert idx.sparse is None
        assert idx.expire_after_seconds is None
        assert idx.partial_filter_expression is None
        assert idx.collation is None


class TestFromRecordFields:
    """Optional fields are read best-effort."""

    def test_full_record(self) -> None:
        record = SON([
            ("v", 2),
            ("key", SON([("email", 1), ("created_at", -1)])),
            ("name", "idx_email"),
            ("unique", True),
            ("sparse", False),
            ("expireAfterSeconds", 3600),
            ("partialFilterExpression", SON([("status", SON([("$eq", "active")]))])),
            ("collation", SON([("locale", "en"), ("strength", 2)])),
        ])

        idx = IndexDefinition.from_record(record)

        assert idx.keys == [("email", 1), ("created_at", -1)]
        assert idx.unique is True
        assert idx.sparse is False
        assert idx.expire_after_seconds == 3600
        assert idx.partial_filter_expression == {"status": {"$eq": "active"}}
        assert type(idx.partial_filter_expression["status"]) is dict
        assert idx.collation == {"locale": "en", "strength": 2}

    def test_key_order_preserved(self) -> None:
        idx = IndexDefinition.from_record(
            {"name": "ab", "key": SON([("b", 1), ("a", 1)])}
        )
        assert [field for field, _ in idx.keys] == ["b", "a"]

    def test_key_types_kept(self) -> None:
        idx = IndexDefinition.from_record(
            {"name": "t", "key": {"title": "text", "loc": "2dsphere"}}
        )
        assert idx.keys == [("title", "text"), ("loc", "2dsphere")]

    def test_non_mapping_key_is_absent(self) -> None:
        idx = IndexDefinition.from_record({"name": "x", "key": "email_1"})
        assert idx.keys == []

    @pytest.mark.parametrize("value", [1, 0, "true", None, [True]])
    def test_non_bool_unique_is_absent(self, value) -> None:
        idx = IndexDefinition.from_record({"name": "x", "unique": value})
        assert idx.unique is None

    def test_non_bool_sparse_is_absent(self) -> None:
        idx = IndexDefinition.from_record({"name": "x", "sparse": "yes"})
        assert idx.sparse is None

    def test_expire_after_seconds_int64_accepted(self) -> None:
        idx = IndexDefinition.from_record({"name": "x", "expireAfterSeconds": Int64(60)})
        assert idx.expire_after_seconds == 60

    def test_expire_after_seconds_integral_float_normalized(self) -> None:
        idx = IndexDefinition.from_record({"name": "x", "expireAfterSeconds": 60.0})
        assert idx.expire_after_seconds == 60
        assert isinstance(idx.expire_after_seconds, int)

    @pytest.mark.parametrize("value", [1.5, True, "60", 2**31, -(2**31) - 1])
    def test_expire_after_seconds_bad_shape_is_absent(self, value) -> None:
        idx = IndexDefinition.from_record({"name": "x", "expireAfterSeconds": value})
        assert idx.expire_after_seconds is None

    def test_non_mapping_documents_are_absent(self) -> None:
        idx = IndexDefinition.from_record(
            {"name": "x", "partialFilterExpression": "a > 1", "collation": ["en"]}
        )
        assert idx.partial_filter_expression is None
        assert idx.collation is None

    def test_nested_lists_normalized(self) -> None:
        idx = IndexDefinition.from_record({
            "name": "x",
            "partialFilterExpression": {"$or": (SON([("a", 1)]), SON([("b", 2)]))},
        })
        assert idx.partial_filter_expression == {"$or": [{"a": 1}, {"b": 2}]}


# ------------------------------------------------------------------
# IndexDefinition.create_options
# ------------------------------------------------------------------


class TestCreateOptions:
    """Options map 1:1 and omit absent properties."""

    def test_name_only(self) -> None:
        idx = IndexDefinition(name="idx_a", keys=[("a", 1)])
        assert idx.create_options() == {"name": "idx_a"}

    def test_explicit_false_is_kept(self) -> None:
        idx = IndexDefinition(name="idx_a", keys=[("a", 1)], unique=False, sparse=False)
        assert idx.create_options() == {"name": "idx_a", "unique": False, "sparse": False}

    def test_zero_ttl_is_kept(self) -> None:
        idx = IndexDefinition(name="ttl", keys=[("at", 1)], expire_after_seconds=0)
        assert idx.create_options()["expireAfterSeconds"] == 0

    def test_all_options_use_server_names(self) -> None:
        idx = IndexDefinition(
            name="full",
            keys=[("a", 1)],
            unique=True,
            sparse=True,
            expire_after_seconds=10,
            partial_filter_expression={"a": {"$gt": 1}},
            collation={"locale": "fr"},
        )
        assert list(idx.create_options()) == [
            "name",
            "unique",
            "sparse",
            "expireAfterSeconds",
            "partialFilterExpression",
            "collation",
        ]

    def test_get_property(self) -> None:
        idx = IndexDefinition(name="a", expire_after_seconds=5)
        assert idx.get_property("expireAfterSeconds") == 5
        with pytest.raises(KeyError):
            idx.get_property("hidden")


# ------------------------------------------------------------------
# Report models
# ------------------------------------------------------------------


class TestMismatchReport:
    def test_defaults_empty(self) -> None:
        report = MismatchReport()
        assert report.common == {}
        assert report.source_only == []
        assert report.target_only == []
        assert report.has_drift is False

    def test_matched_and_mismatched(self) -> None:
        report = MismatchReport(common={"a": [], "b": ["Key mismatch"]})
        assert report.matched == ["a"]
        assert report.mismatched == {"b": ["Key mismatch"]}
        assert report.has_drift is True


class TestReconcileResult:
    def test_defaults(self) -> None:
        result = ReconcileResult()
        assert result.dry_run is True
        assert result.success is True

    def test_failure(self) -> None:
        result = ReconcileResult(dry_run=False, failed={"a": "drop failed: boom"})
        assert result.success is False


class TestCollectionReportFormat:
    """Line-oriented report output."""

    def _report(self) -> CollectionReport:
        return CollectionReport(
            collection="users",
            counts=CountComparison(source_count=3, target_count=3, matched=True),
            indexes=MismatchReport(
                common={"_id_": [], "idx_a": ["'sparse' property existence mismatch"]},
                source_only=["idx_email"],
                target_only=["idx_old"],
            ),
            statements={"idx_email": 'db.users.createIndex({ email: 1 }, { name: "idx_email" })'},
        )

    def test_full_output(self) -> None:
        lines = self._report().format_lines()

        assert lines[0] == "Collection: users"
        assert lines[1] == "  - Document Count | Match: Match (Source: 3, Target: 3)"
        assert lines[2] == f"  - Index: {'_id_':<30} | Match: Match"
        assert lines[3] == (
            f"  - Index: {'idx_a':<30} | Match: Mismatch "
            f"('sparse' property existence mismatch)"
        )
        assert lines[4] == f"  - Index: {'idx_old':<30} | Match: Mismatch (Not in Source)"
        assert lines[5] == f"  - Index: {'idx_email':<30} | Match: Mismatch (Not in Target)"
        assert lines[6].startswith("    - Create Index Statement: db.users.createIndex(")

    def test_hide_matching(self) -> None:
        lines = self._report().format_lines(hide_matching=True)

        assert not any("Document Count" in line for line in lines)
        assert not any("_id_" in line for line in lines)
        assert any("idx_a" in line for line in lines)

    def test_count_mismatch_shown_when_hiding(self) -> None:
        report = CollectionReport(
            collection="c",
            counts=CountComparison(source_count=0, target_count=5, matched=False),
        )
        assert report.format_lines(hide_matching=True)[1] == (
            "  - Document Count | Match: Mismatch (Source: 0, Target: 5)"
        )
        assert report.has_drift is True

    def test_action_lines(self) -> None:
        report = CollectionReport(
            collection="users",
            indexes=MismatchReport(common={"idx_a": ["x"]}, target_only=["idx_old"]),
            reconcile=ReconcileResult(
                dry_run=False,
                dropped=["idx_a"],
                created=["idx_a"],
                failed={"idx_old": "drop failed: boom"},
            ),
        )
        lines = report.format_lines()

        assert "    - Dropped index 'idx_a' from target collection 'users'" in lines
        assert "    - Created index 'idx_a' on target collection 'users'" in lines
        assert "    - Failed to reconcile index 'idx_old': drop failed: boom" in lines

    def test_no_counts_line_when_skipped(self) -> None:
        report = CollectionReport(collection="c")
        assert report.format_lines() == ["Collection: c"]
        assert report.has_drift is False
