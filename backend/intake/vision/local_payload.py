"""intake/vision/local_payload.py

Structured payload built locally when the vision model answers with
something that is not JSON. Same top-level shape the model is asked for,
derived from the quick extraction plus the layout-aware extractor.
"""

import re
from typing import Any

from intake.pdf.types import StructuredPDF

_NUMBERED_LINE_RE = re.compile(r"^(\d+(?:\.\d+){0,4})(?:\s+|-\s+)?(.+)?$")
MAX_TITLE_CHARS = 200


def _lines(text: str) -> list[str]:
    return [line.strip() for line in re.split(r"\r?\n", text or "") if line.strip()]


def guess_title(preview: str | None, advanced: StructuredPDF | None) -> str:
    for line in (preview or "").split("\n"):
        if line.strip():
            return line.strip()[:MAX_TITLE_CHARS]
    if advanced is not None and advanced.paragraphs:
        first = advanced.paragraphs[0].text.strip()
        if first:
            return first[:MAX_TITLE_CHARS]
    return "Document"


def build_hierarchy(full_text: str) -> list[dict[str, Any]]:
    """Nest numbered headings ("1", "1.2", "1.2.3 Title") into sections.

    Unnumbered lines become items of the innermost open section; lines
    before the first heading are dropped.
    """
    sections: list[dict[str, Any]] = []
    stack: list[tuple[int, dict[str, Any]]] = []

    for line in _lines(full_text):
        match = _NUMBERED_LINE_RE.match(line)
        if match:
            identifier, title = match.group(1), match.group(2)
            depth = identifier.count(".") + 1
            node = {
                "section_id": identifier,
                "section_title": title.strip() if title else f"Section {identifier}",
                "subsections": [],
                "items": [],
            }
            while stack and stack[-1][0] >= depth:
                stack.pop()
            if stack:
                stack[-1][1]["subsections"].append(node)
            else:
                sections.append(node)
            stack.append((depth, node))
            continue

        if stack:
            current = stack[-1][1]
            current["items"].append({
                "item_id": f"{current['section_id']}.{len(current['items']) + 1}",
                "text": line,
                "sub_items": [],
            })

    return sections


def transform_tables(advanced: StructuredPDF | None) -> list[dict[str, Any]]:
    if advanced is None:
        return []
    return [
        {"table_title": f"Table {idx}", "page": table.page or None, "rows": table.cell_rows()}
        for idx, table in enumerate(advanced.tables, start=1)
    ]


def extract_clauses(full_text: str) -> list[dict[str, Any]]:
    clauses = []
    for line in _lines(full_text):
        match = _NUMBERED_LINE_RE.match(line)
        if match:
            clauses.append({
                "clause_number": match.group(1),
                "text": (match.group(2) or "").strip(),
                "sub_clauses": [],
            })
    return clauses


def build_local_payload(
    quick_data: dict[str, Any] | None,
    preview: str | None,
    advanced: StructuredPDF | None,
) -> dict[str, Any]:
    quick_data = quick_data or {}
    full_text = (advanced.full_text if advanced else "") or quick_data.get("full_text") or ""
    pages = (advanced.page_count if advanced else None) or quick_data.get("pages") or None

    return {
        "source": "advanced_pdf_parser" if advanced is not None else "quick_extract_only",
        "document_metadata": {
            "detected_type": "pdf_document",
            "title": guess_title(preview, advanced),
            "pages": pages,
        },
        "hierarchical_content": {"sections": build_hierarchy(full_text)},
        "structured_data_tables": {"tables": transform_tables(advanced)},
        "terms_conditions_clauses": {"clauses": extract_clauses(full_text)},
    }
