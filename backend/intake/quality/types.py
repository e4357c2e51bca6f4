"""intake/quality/types.py

Data quality report types. Reports are computed once and handed back; the
dict form (`to_dict`) is what lands in manifests and API responses.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Literal

Severity = Literal["critical", "warning"]
Priority = Literal["critical", "high"]

MISSING_VALUE = "Missing value"
FORMULA_ERROR = "Formula error detected"
PLACEHOLDER_VALUE = "Placeholder value detected"


@dataclass(frozen=True)
class RowIssue:
    row: int  # data index + 2 (1-indexed, header offset)
    column: str
    issue: str
    severity: Severity
    value: Any = None
    suggestion: str | None = None

    @property
    def is_missing(self) -> bool:
        return self.issue == MISSING_VALUE

    @property
    def is_formula_error(self) -> bool:
        return "Formula error" in self.issue

    def to_dict(self) -> dict[str, Any]:
        out = asdict(self)
        if self.suggestion is None:
            out.pop("suggestion")
        return out


@dataclass(frozen=True)
class DatasetWarning:
    type: str  # "duplicate" | "date_format"
    message: str
    severity: Severity = "warning"
    column: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"type": self.type, "message": self.message, "severity": self.severity}
        if self.column is not None:
            out["column"] = self.column
        return out


@dataclass(frozen=True)
class Duplicate:
    column: str
    value: Any
    rows: list[int]
    count: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Recommendation:
    type: str
    message: str
    priority: Priority

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class QualityReport:
    total_rows: int
    complete_rows: int
    incomplete_rows: int
    quality_score: int  # 0..100
    critical_issues: list[RowIssue]
    warnings: list[DatasetWarning | RowIssue]
    recommendations: list[Recommendation]
    critical_fields: list[str]
    analyzed_columns: list[str]
    total_issues: int
    duplicates: list[Duplicate] = field(default_factory=list)
    date_issues: list[DatasetWarning] = field(default_factory=list)

    @property
    def warning_count(self) -> int:
        return sum(1 for w in self.warnings if isinstance(w, RowIssue))

    @property
    def summary(self) -> dict[str, int]:
        return {
            "total_issues": self.total_issues,
            "critical_count": len(self.critical_issues),
            "warning_count": self.warning_count,
            "duplicate_count": len(self.duplicates),
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_rows": self.total_rows,
            "complete_rows": self.complete_rows,
            "incomplete_rows": self.incomplete_rows,
            "quality_score": self.quality_score,
            "critical_issues": [i.to_dict() for i in self.critical_issues],
            "warnings": [w.to_dict() for w in self.warnings],
            "recommendations": [r.to_dict() for r in self.recommendations],
            "summary": self.summary,
            "details": {
                "critical_fields": list(self.critical_fields),
                "analyzed_columns": list(self.analyzed_columns),
            },
            "duplicates": [d.to_dict() for d in self.duplicates],
            "date_issues": [d.to_dict() for d in self.date_issues],
        }
