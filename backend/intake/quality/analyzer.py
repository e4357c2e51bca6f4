"""intake/quality/analyzer.py

Data quality analysis over spreadsheet rows: missing critical values,
spreadsheet error tokens, placeholders, duplicate identifiers and mixed date
formats, rolled into a 0-100 score.

Findings are reported, never raised. Only a structurally invalid input
(rows that are not a list) is an error.
"""

import logging
import math
import re
from typing import Any, Mapping, Sequence

from intake.constants.tokens import ROW_HIGHLIGHT_ERROR_RE, is_formula_error, is_placeholder
from intake.core import AppError, ErrorCode, ErrorReason
from intake.quality.columns import critical_fields, date_columns, id_columns
from intake.quality.types import (
    FORMULA_ERROR,
    MISSING_VALUE,
    PLACEHOLDER_VALUE,
    DatasetWarning,
    Duplicate,
    QualityReport,
    Recommendation,
    RowIssue,
)

logger = logging.getLogger("intake.quality")

HEADER_OFFSET = 2  # data index 0 is spreadsheet row 2

DATE_FORMATS = (
    ("YYYY-MM-DD", re.compile(r"^\d{4}-\d{2}-\d{2}$")),
    ("MM/DD/YYYY", re.compile(r"^\d{2}/\d{2}/\d{4}$")),
    ("DD-MM-YYYY", re.compile(r"^\d{2}-\d{2}-\d{4}$")),
)

FORMULA_SUGGESTION = "Check VLOOKUP or formula in Excel"


def _is_missing(value: Any) -> bool:
    return value is None or value == ""


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def _as_row(row: Any) -> Mapping[str, Any]:
    return row if isinstance(row, Mapping) else {}


def scan_row(row: Mapping[str, Any], row_number: int, critical: Sequence[str]) -> list[RowIssue]:
    issues: list[RowIssue] = []

    for field in critical:
        if _is_missing(row.get(field)):
            issues.append(RowIssue(row_number, field, MISSING_VALUE, "critical", "Empty"))

    for column, value in row.items():
        if not isinstance(value, str):
            continue
        if is_formula_error(value):
            issues.append(RowIssue(row_number, column, FORMULA_ERROR, "critical", value, FORMULA_SUGGESTION))
        if is_placeholder(value):
            issues.append(RowIssue(row_number, column, PLACEHOLDER_VALUE, "warning", value))

    return issues


def detect_duplicates(rows: Sequence[Any], columns: Sequence[str]) -> list[Duplicate]:
    duplicates: list[Duplicate] = []
    for column in id_columns(columns):
        seen: dict[str, list[int]] = {}
        for idx, row in enumerate(rows):
            value = _as_row(row).get(column)
            if not value:
                continue
            seen.setdefault(str(value), []).append(idx + HEADER_OFFSET)

        for value, row_numbers in seen.items():
            if len(row_numbers) > 1:
                duplicates.append(Duplicate(column, value, row_numbers, len(row_numbers)))
    return duplicates


def classify_date(value: str) -> str:
    for label, pattern in DATE_FORMATS:
        if pattern.match(value):
            return label
    return "unknown"


def check_date_consistency(rows: Sequence[Any], columns: Sequence[str]) -> list[DatasetWarning]:
    issues: list[DatasetWarning] = []
    for column in date_columns(columns):
        formats: list[str] = []  # insertion order, used in the message
        for row in rows:
            value = _as_row(row).get(column)
            if isinstance(value, str) and value:
                label = classify_date(value)
                if label not in formats:
                    formats.append(label)

        if len(formats) > 1:
            issues.append(DatasetWarning(
                type="date_format",
                column=column,
                message=f'Inconsistent date formats in column "{column}". Found formats: {", ".join(formats)}',
            ))
    return issues


def analyze_data_quality(rows: Sequence[Any], columns: Sequence[str]) -> QualityReport:
    if not isinstance(rows, list):
        raise AppError(
            code=ErrorCode.VALIDATION_ERROR,
            reason=ErrorReason.INVALID_INPUT,
            message="rows must be a list of row objects",
            details={"received": type(rows).__name__},
        )
    columns = [str(c) for c in (columns or [])]
    critical = critical_fields(columns)

    issues: list[RowIssue] = []
    complete_rows = 0
    incomplete_rows = 0

    for idx, row in enumerate(rows):
        row_issues = scan_row(_as_row(row), idx + HEADER_OFFSET, critical)
        if row_issues:
            incomplete_rows += 1
            issues.extend(row_issues)
        else:
            complete_rows += 1

    duplicates = detect_duplicates(rows, columns)
    date_issues = check_date_consistency(rows, columns)

    warnings: list[DatasetWarning | RowIssue] = [
        DatasetWarning(
            type="duplicate",
            message=f"Duplicate PO number found: {d.value} (rows: {', '.join(str(r) for r in d.rows)})",
        )
        for d in duplicates
    ]
    warnings.extend(date_issues)
    warnings.extend(i for i in issues if i.severity == "warning")

    has_formula_errors = any(i.is_formula_error for i in issues)
    recommendations: list[Recommendation] = []
    if incomplete_rows > 0:
        recommendations.append(Recommendation(
            type="data_quality",
            message=f"{incomplete_rows} rows have missing or incomplete data. Please review and update these records.",
            priority="high",
        ))
    if has_formula_errors:
        recommendations.append(Recommendation(
            type="formula_errors",
            message=(
                "Excel formula errors detected. Please open the file, press F9 to recalculate, "
                "and fix any #N/A or #REF! errors."
            ),
            priority="critical",
        ))

    total_cells = len(rows) * len(critical)
    empty_cells = sum(1 for i in issues if i.is_missing)
    error_cells = sum(1 for i in issues if i.is_formula_error)
    if total_cells == 0:
        quality_score = 0
    else:
        quality_score = max(0, _round_half_up((total_cells - empty_cells - 2 * error_cells) / total_cells * 100))

    report = QualityReport(
        total_rows=len(rows),
        complete_rows=complete_rows,
        incomplete_rows=incomplete_rows,
        quality_score=quality_score,
        critical_issues=[i for i in issues if i.severity == "critical"],
        warnings=warnings,
        recommendations=recommendations,
        critical_fields=critical,
        analyzed_columns=columns,
        total_issues=len(issues),
        duplicates=duplicates,
        date_issues=date_issues,
    )

    logger.info(
        "quality.analyzed",
        extra={
            "rows": report.total_rows,
            "quality_score": report.quality_score,
            "critical_count": len(report.critical_issues),
        },
    )
    return report


def get_row_issues(rows: Sequence[Any], row_index: int, columns: Sequence[str]) -> list[dict[str, Any]]:
    """Issues for one row, for highlighting it in a UI."""
    if not isinstance(rows, list) or row_index < 0 or row_index >= len(rows):
        return []
    row = rows[row_index]
    if not row:
        return []
    row = _as_row(row)

    issues: list[dict[str, Any]] = []
    for field in critical_fields([str(c) for c in columns or []]):
        value = row.get(field)
        if _is_missing(value):
            issues.append({"column": field, "issue": MISSING_VALUE, "severity": "critical"})
        if isinstance(value, str) and ROW_HIGHLIGHT_ERROR_RE.match(value):
            issues.append({"column": field, "issue": "Formula error", "severity": "critical", "value": value})
    return issues
