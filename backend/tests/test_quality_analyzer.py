import pytest

from intake.core import AppError, ErrorCode
from intake.quality.analyzer import analyze_data_quality, check_date_consistency, detect_duplicates, get_row_issues
from intake.quality.columns import ColumnTag, classify_column, critical_fields


@pytest.mark.parametrize(
    "name,tags",
    [
        ("PO_Number", {ColumnTag.CRITICAL, ColumnTag.ID_LIKE}),
        ("ETA", {ColumnTag.CRITICAL, ColumnTag.DATE_LIKE}),
        ("Ship Date", {ColumnTag.DATE_LIKE}),
        ("Customer", {ColumnTag.CRITICAL}),
        ("Notes", set()),
        ("Row ID", {ColumnTag.ID_LIKE}),
    ],
)
def test_classify_column(name, tags):
    assert classify_column(name) == frozenset(tags)


def test_critical_fields_fall_back_to_first_five():
    cols = ["a", "b", "c", "d", "e", "f"]
    assert critical_fields(cols) == ["a", "b", "c", "d", "e"]


def test_duplicates_use_header_offset_rows():
    rows = [
        {"PO_Number": "SG-001"},
        {"PO_Number": "SG-002"},
        {"PO_Number": "SG-003"},
        {"PO_Number": "SG-001"},
    ]
    dups = detect_duplicates(rows, ["PO_Number"])
    assert [d.to_dict() for d in dups] == [{"column": "PO_Number", "value": "SG-001", "rows": [2, 5], "count": 2}]


def test_empty_values_are_not_duplicates():
    rows = [{"Order": ""}, {"Order": ""}, {"Order": None}]
    assert detect_duplicates(rows, ["Order"]) == []


def test_mixed_date_formats_warn():
    rows = [{"Ship Date": "2024-01-05"}, {"Ship Date": "01/06/2024"}, {"Ship Date": "2024-01-07"}]
    [issue] = check_date_consistency(rows, ["Ship Date"])
    assert issue.column == "Ship Date"
    assert issue.message == 'Inconsistent date formats in column "Ship Date". Found formats: YYYY-MM-DD, MM/DD/YYYY'


def test_consistent_dates_are_fine():
    rows = [{"ETA": "05-01-2024"}, {"ETA": "06-01-2024"}]
    assert check_date_consistency(rows, ["ETA"]) == []


def test_missing_status_and_ref_error_scenario():
    columns = ["PO_Number", "Status", "ETA"]
    rows = [
        {"PO_Number": "SG-001", "Status": "Shipped", "ETA": "2024-01-05"},
        {"PO_Number": "SG-002", "Status": "", "ETA": "2024-01-06"},
        {"PO_Number": "SG-003", "Status": "Delivered", "ETA": "#REF!"},
    ]
    report = analyze_data_quality(rows, columns)

    assert report.total_rows == 3
    assert report.complete_rows == 1
    assert report.incomplete_rows == 2
    assert len(report.critical_issues) == 2
    assert report.quality_score < 100
    # 9 cells, 1 empty, 1 error counted twice
    assert report.quality_score == 67

    missing, formula = report.critical_issues
    assert (missing.row, missing.column, missing.issue) == (3, "Status", "Missing value")
    assert (formula.row, formula.column, formula.issue) == (4, "ETA", "Formula error detected")
    assert formula.suggestion == "Check VLOOKUP or formula in Excel"

    priorities = {r.type: r.priority for r in report.recommendations}
    assert priorities == {"data_quality": "high", "formula_errors": "critical"}

    out = report.to_dict()
    assert out["summary"] == {"total_issues": 2, "critical_count": 2, "warning_count": 0, "duplicate_count": 0}
    assert out["details"]["critical_fields"] == columns


def test_score_matches_formula():
    # 20 rows x 5 critical fields = 100 cells; 10 empty, 5 errors -> 80
    columns = ["po", "order", "status", "customer", "eta"]
    rows = []
    for i in range(20):
        row = {c: f"v{i}" for c in columns}
        if i < 10:
            row["customer"] = ""
        if i < 5:
            row["status"] = "#N/A"
        rows.append(row)
    report = analyze_data_quality(rows, columns)
    assert report.quality_score == 80


def test_score_floors_at_zero():
    rows = [{"PO": "#REF!"}, {"PO": "#VALUE!"}]
    report = analyze_data_quality(rows, ["PO"])
    assert report.quality_score == 0
    assert len(report.critical_issues) == 2


def test_placeholders_warn_on_any_column_and_mark_row_incomplete():
    rows = [{"PO": "1", "Notes": "TBD"}, {"PO": "2", "Notes": "fine"}]
    report = analyze_data_quality(rows, ["PO", "Notes"])
    assert report.incomplete_rows == 1
    assert report.critical_issues == []
    [warning] = report.warnings
    assert warning.issue == "Placeholder value detected"
    assert warning.column == "Notes"
    assert report.quality_score == 100


def test_warning_order_duplicates_then_dates_then_rows():
    rows = [
        {"Order": "A", "ETA": "2024-01-01"},
        {"Order": "A", "ETA": "pending"},
    ]
    report = analyze_data_quality(rows, ["Order", "ETA"])
    kinds = [w.to_dict().get("type") or w.issue for w in report.warnings]
    assert kinds == ["duplicate", "date_format", "Placeholder value detected"]
    assert report.warnings[0].message == "Duplicate PO number found: A (rows: 2, 3)"


def test_no_rows_scores_zero():
    report = analyze_data_quality([], ["PO"])
    assert report.total_rows == 0
    assert report.quality_score == 0
    assert report.recommendations == []


def test_rows_must_be_a_list():
    with pytest.raises(AppError) as exc:
        analyze_data_quality({"PO": "1"}, ["PO"])
    assert exc.value.code == ErrorCode.VALIDATION_ERROR


def test_get_row_issues():
    rows = [{"PO": "", "Status": "#N/A"}, {"PO": "1", "Status": "ok"}]
    assert get_row_issues(rows, 0, ["PO", "Status"]) == [
        {"column": "PO", "issue": "Missing value", "severity": "critical"},
        {"column": "Status", "issue": "Formula error", "severity": "critical", "value": "#N/A"},
    ]
    assert get_row_issues(rows, 1, ["PO", "Status"]) == []
    assert get_row_issues(rows, 5, ["PO", "Status"]) == []
