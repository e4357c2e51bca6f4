"""intake/triage/types.py

Inputs and outputs of the triage router.

ProcessedFile is the unit handed downstream: one per routed upload, never
mutated after creation.
"""

from dataclasses import dataclass, field
from typing import Any

from intake.constants.routes import FileType, TriageRoute
from intake.pdf.types import TextQualityMetrics


@dataclass(frozen=True)
class UploadedFile:
    content: bytes
    filename: str
    content_type: str = ""
    size: int | None = None

    @property
    def declared_size(self) -> int:
        return self.size if self.size is not None else len(self.content)

    @property
    def extension(self) -> str:
        name = (self.filename or "").lower()
        return name[name.rfind("."):] if "." in name else ""


@dataclass(frozen=True)
class ExtractorOutput:
    """What a type-specific extractor hands back to the router."""
    file_type: FileType
    data: Any
    metadata: dict[str, Any] = field(default_factory=dict)
    # Spreadsheets only: rows before error tokens are blanked.
    audit_rows: list[dict[str, Any]] | None = None


@dataclass(frozen=True)
class TriageInfo:
    route: TriageRoute
    reason: str
    quality: TextQualityMetrics
    recommended_tool: str | None = None
    escalation: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "route": self.route.value,
            "reason": self.reason,
            "quality": self.quality.to_dict(),
            "recommended_tool": self.recommended_tool,
            "escalation": self.escalation,
        }


@dataclass(frozen=True)
class ProcessedFile:
    original_name: str
    file_type: FileType
    data: Any
    metadata: dict[str, Any]
    triage: TriageInfo
    file_size: int
    artifacts: dict[str, Any] | None = None
    audit_rows: list[dict[str, Any]] | None = field(default=None, repr=False, compare=False)

    @property
    def columns(self) -> list[str]:
        return list(self.metadata.get("columns") or [])

    @property
    def quality_rows(self) -> list[dict[str, Any]]:
        """Rows the data quality analyzer should audit."""
        if self.audit_rows is not None:
            return self.audit_rows
        return self.data if isinstance(self.data, list) else []

    @property
    def full_text(self) -> str:
        if isinstance(self.data, dict):
            return str(self.data.get("full_text") or "")
        return ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "original_name": self.original_name,
            "file_type": self.file_type.value,
            "data": self.data,
            "metadata": {
                **self.metadata,
                "triage_route": self.triage.route.value,
                "triage_reason": self.triage.reason,
            },
            "file_size": self.file_size,
            "triage": self.triage.to_dict(),
            "artifacts": self.artifacts,
        }
