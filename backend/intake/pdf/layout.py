"""intake/pdf/layout.py

Layout-aware PDF extraction that keeps tables intact.

Positioned text runs are grouped into visual rows; a row with three or more
evenly spaced short items opens a candidate table, and the rows below it that
line up with its columns are collected into that table. Tables are rendered
as markdown, everything else is grouped into paragraphs.

Strategy chain, first success wins:
1) layout (pdfplumber positioned words)
2) basic  (quick text extraction, no table recovery)
"""

import io
import logging

from intake.core import AppError, ErrorCode, ErrorReason
from intake.pdf.extract import extract_text_from_bytes
from intake.pdf.strategies import Strategy, run_chain
from intake.pdf.types import LayoutRow, Paragraph, PdfTable, PositionedWord, StructuredPDF

logger = logging.getLogger("intake.pdf.layout")

ROW_TOLERANCE = 5
HEADER_MIN_ITEMS = 3
HEADER_MAX_CELL_CHARS = 50
ALIGN_TOLERANCE = 15
CELL_MATCH_TOLERANCE = 30
MAX_TABLE_ROWS = 100
PARAGRAPH_GAP = 20
LEFT_MARGIN = 50
PAGE_BREAK = "\n\n--- Page Break ---\n\n"


def group_by_rows(items: list[PositionedWord], threshold: float = ROW_TOLERANCE) -> list[LayoutRow]:
    rows: list[LayoutRow] = []
    for item in items:
        existing = next((r for r in rows if abs(r.y - item.y) < threshold), None)
        if existing is not None:
            existing.items.append(item)
        else:
            rows.append(LayoutRow(y=item.y, items=[item]))

    for row in rows:
        row.items.sort(key=lambda w: w.x)
    return sorted(rows, key=lambda r: r.y)


def is_likely_table_header(row: LayoutRow) -> bool:
    if len(row.items) < HEADER_MIN_ITEMS:
        return False

    gaps = [
        row.items[i].x - (row.items[i - 1].x + row.items[i - 1].width)
        for i in range(1, len(row.items))
    ]
    avg_gap = sum(gaps) / len(gaps)
    consistent = all(abs(gap - avg_gap) < avg_gap * 0.5 for gap in gaps)

    return consistent and all(len(item.text) < HEADER_MAX_CELL_CHARS for item in row.items)


def aligns_with_header(row: LayoutRow, header: LayoutRow, tolerance: float = ALIGN_TOLERANCE) -> bool:
    if len(row.items) < 2:
        return False
    if len(row.items) > len(header.items) + 2:
        return False

    aligned = sum(
        1
        for item in row.items
        if any(abs(item.x - h.x) < tolerance for h in header.items)
    )
    return aligned >= min(2, len(row.items))


def detect_tables(items: list[PositionedWord], page_num: int) -> list[PdfTable]:
    tables: list[PdfTable] = []
    rows = group_by_rows(items)

    i = 0
    while i < len(rows):
        header = rows[i]
        if is_likely_table_header(header):
            table_rows = [header]
            j = i + 1
            while j < len(rows) and aligns_with_header(rows[j], header):
                table_rows.append(rows[j])
                j += 1
                if len(table_rows) > MAX_TABLE_ROWS:
                    break

            if len(table_rows) >= 2:
                tables.append(
                    PdfTable(
                        page=page_num,
                        rows=table_rows,
                        start_y=header.y,
                        end_y=table_rows[-1].y,
                    )
                )
                i = j
                continue
        i += 1

    return tables


def _in_table(item: PositionedWord, tables: list[PdfTable]) -> bool:
    return any(t.start_y - ROW_TOLERANCE <= item.y <= t.end_y + ROW_TOLERANCE for t in tables)


def group_into_paragraphs(items: list[PositionedWord], page_num: int) -> list[Paragraph]:
    paragraphs: list[Paragraph] = []
    parts: list[str] = []
    current_y = 0.0

    for idx, item in enumerate(items):
        text = item.text.strip()
        if not text:
            continue

        new_paragraph = idx > 0 and (abs(item.y - current_y) > PARAGRAPH_GAP or item.x < LEFT_MARGIN)
        if new_paragraph and parts:
            paragraphs.append(Paragraph(text=" ".join(parts), y=current_y, page=page_num))
            parts = []

        parts.append(text)
        current_y = item.y

    if parts:
        paragraphs.append(Paragraph(text=" ".join(parts), y=current_y, page=page_num))
    return paragraphs


def table_to_markdown(table: PdfTable) -> str:
    if not table.rows:
        return ""

    header, data_rows = table.rows[0], table.rows[1:]
    lines = [
        "| " + " | ".join(item.text.strip() for item in header.items) + " |",
        "| " + " | ".join("---" for _ in header.items) + " |",
    ]
    for row in data_rows:
        cells = []
        for h in header.items:
            match = next((item for item in row.items if abs(item.x - h.x) < CELL_MATCH_TOLERANCE), None)
            cells.append(match.text.strip() if match else "")
        lines.append("| " + " | ".join(cells) + " |")
    return "\n".join(lines) + "\n"


def render_page(items: list[PositionedWord], page_num: int) -> tuple[str, list[PdfTable], list[Paragraph]]:
    if not items:
        return "", [], []

    ordered = sorted(items, key=lambda w: (w.y, w.x))
    tables = detect_tables(ordered, page_num)
    paragraphs = group_into_paragraphs([w for w in ordered if not _in_table(w, tables)], page_num)

    text = "".join(p.text + "\n\n" for p in paragraphs)
    for idx, table in enumerate(tables, start=1):
        text += f"\n### Table {idx} (Page {page_num})\n\n"
        text += table_to_markdown(table)
        text += "\n\n"

    return text.strip(), tables, paragraphs


def _extract_layout(pdf_bytes: bytes) -> StructuredPDF:
    import pdfplumber  # type: ignore

    page_texts: list[str] = []
    tables: list[PdfTable] = []
    paragraphs: list[Paragraph] = []

    with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
        if not pdf.pages:
            raise ValueError("PDF has no pages")
        for page_num, page in enumerate(pdf.pages, start=1):
            words = page.extract_words(keep_blank_chars=True, use_text_flow=False)
            items = [
                PositionedWord(
                    text=w["text"],
                    x=float(w["x0"]),
                    y=float(w["top"]),
                    width=float(w["x1"]) - float(w["x0"]),
                )
                for w in words
            ]
            text, page_tables, page_paragraphs = render_page(items, page_num)
            page_texts.append(text)
            tables.extend(page_tables)
            paragraphs.extend(page_paragraphs)
        page_count = len(pdf.pages)

    return StructuredPDF(
        full_text=PAGE_BREAK.join(page_texts),
        tables=tables,
        paragraphs=paragraphs,
        page_count=page_count,
        strategy="layout",
    )


def _extract_basic(pdf_bytes: bytes) -> StructuredPDF:
    extracted = extract_text_from_bytes(pdf_bytes)
    if not extracted.text.strip():
        raise ValueError("PDF file appears to be empty or contains only images")

    return StructuredPDF(
        full_text=extracted.text,
        tables=[],
        paragraphs=[Paragraph(text=p, y=0.0, page=0) for p in extracted.paragraphs],
        page_count=extracted.page_count,
        strategy="basic",
    )


STRUCTURAL_STRATEGIES: tuple[Strategy[StructuredPDF], ...] = (
    Strategy("layout", _extract_layout),
    Strategy("basic", _extract_basic),
)


def extract_structured(pdf_bytes: bytes, strategies=STRUCTURAL_STRATEGIES) -> StructuredPDF:
    chain = run_chain(strategies, pdf_bytes)
    if chain.result is None:
        raise AppError(
            code=ErrorCode.EXTRACTION_FAILED,
            reason=ErrorReason.PDF_INVALID,
            message="PDF file appears to be empty or contains only images",
            status_code=422,
            details={"attempts": chain.errors},
        )

    logger.info(
        "pdf.structured_extracted",
        extra={
            "strategy": chain.result.strategy,
            "pages": chain.result.page_count,
            "tables": len(chain.result.tables),
        },
    )
    return chain.result
