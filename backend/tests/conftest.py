import io
from datetime import datetime

import pytest

from intake.services.storage.local_storage import LocalStorage
from intake.triage.types import UploadedFile
from intake.vision.client import VisionResult

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

CLEAN_PROSE = "The quick brown Fox jumps over the lazy Dog near the River bank. " * 70


def make_xlsx(header, rows, title="Orders") -> bytes:
    import openpyxl

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = title
    ws.append(header)
    for row in rows:
        ws.append(row)
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def make_docx(paragraphs, table_rows=None) -> bytes:
    from docx import Document

    doc = Document()
    for p in paragraphs:
        doc.add_paragraph(p)
    if table_rows:
        table = doc.add_table(rows=len(table_rows), cols=len(table_rows[0]))
        for r, values in enumerate(table_rows):
            for c, value in enumerate(values):
                table.cell(r, c).text = value
    buf = io.BytesIO()
    doc.save(buf)
    return buf.getvalue()


def make_pdf(pages) -> bytes:
    import fitz

    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        page.insert_text((72, 72), text, fontsize=9)
    data = doc.tobytes()
    doc.close()
    return data


def upload(content: bytes, filename: str, content_type: str = "") -> UploadedFile:
    return UploadedFile(content=content, filename=filename, content_type=content_type, size=len(content))


class FakeVisionClient:
    def __init__(self, result: VisionResult | None = None, error: Exception | None = None):
        self.result = result
        self.error = error
        self.calls = []

    def escalate(self, file_bytes, original_name, preview_text, *, reason=None, quality_reason=None):
        self.calls.append({"name": original_name, "preview": preview_text, "reason": reason})
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(tmp_path / "store")


@pytest.fixture
def tracking_xlsx() -> bytes:
    return make_xlsx(
        ["PO_Number", "Status", "ETA"],
        [
            ["SG-001", "Shipped", datetime(2024, 1, 5)],
            ["SG-002", None, "2024-01-06"],
            ["SG-003", "Delivered", "#REF!"],
        ],
    )
