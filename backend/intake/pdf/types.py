"""intake/pdf/types.py

Lightweight dataclasses for PDF extraction + text quality scoring outputs.
Design goals:
- deterministic extraction (no LLM)
- cheap, explainable scores + flags
- plain dicts out (`to_dict`) so results can land in manifests as JSON
"""

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass(frozen=True)
class ExtractedPDF:
    text: str
    page_count: int
    pages_with_text: int
    strategy: str  # "pymupdf" | "pdfplumber" | "pypdf"

    @property
    def paragraphs(self) -> list[str]:
        return [p.strip() for p in self.text.split("\n\n") if p.strip()]

    @property
    def preview(self) -> str:
        return self.text[:500]


@dataclass(frozen=True)
class TableConfidenceMetrics:
    is_likely: bool
    score: float  # 0.0 - 1.0
    threshold: float
    reason: str
    total_lines: int
    rich_line_count: int
    pipe_count: int
    tab_count: int
    multi_space_lines: int
    rich_ratio: float
    pipe_ratio: float
    tab_ratio: float
    multi_space_ratio: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class TextQualityMetrics:
    score: float  # 0.0 - 1.0
    is_usable: bool
    reason: str
    length: int = 0
    word_count: int = 0
    avg_word_length: float = 0.0
    non_printable_ratio: float = 0.0
    letter_ratio: float = 0.0
    page_count: int = 1
    issues: tuple[str, ...] = ()
    table_confidence_score: float | None = None
    table_confidence: TableConfidenceMetrics | None = None

    def to_dict(self) -> dict[str, Any]:
        out = asdict(self)
        out["issues"] = list(self.issues)
        return out


@dataclass(frozen=True)
class PositionedWord:
    text: str
    x: float
    y: float
    width: float


@dataclass
class LayoutRow:
    y: float
    items: list[PositionedWord] = field(default_factory=list)


@dataclass(frozen=True)
class PdfTable:
    page: int
    rows: list[LayoutRow]
    start_y: float
    end_y: float

    def cell_rows(self) -> list[list[str]]:
        out = []
        for row in self.rows:
            cells = [w.text.strip() for w in row.items if w.text.strip()]
            if cells:
                out.append(cells)
        return out


@dataclass(frozen=True)
class Paragraph:
    text: str
    y: float
    page: int


@dataclass(frozen=True)
class StructuredPDF:
    full_text: str
    tables: list[PdfTable]
    paragraphs: list[Paragraph]
    page_count: int
    strategy: str  # "layout" | "basic"
