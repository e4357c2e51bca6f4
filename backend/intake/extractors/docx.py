"""intake/extractors/docx.py

Word (OOXML) extraction for Path B. Paragraph text in document order, then
table rows with tab-separated cells so the table evaluator can still see them.
"""

import io
import logging

from intake.constants.routes import FileType
from intake.core import AppError, ErrorCode, ErrorReason
from intake.triage.types import ExtractorOutput, UploadedFile

logger = logging.getLogger("intake.extractors.docx")


def extract_docx(upload: UploadedFile) -> ExtractorOutput:
    try:
        from docx import Document

        doc = Document(io.BytesIO(upload.content))
    except Exception as e:
        raise AppError(
            code=ErrorCode.EXTRACTION_FAILED,
            reason=ErrorReason.DOCUMENT_INVALID,
            message=f"Could not read DOCX file: {e}",
            status_code=422,
            details={"filename": upload.filename},
        ) from e

    lines = [p.text for p in doc.paragraphs]
    for table in doc.tables:
        for row in table.rows:
            lines.append("\t".join(cell.text.strip() for cell in row.cells))

    full_text = "\n".join(lines)
    if not full_text.strip():
        raise AppError(
            code=ErrorCode.EMPTY_DOCUMENT,
            reason=ErrorReason.EMPTY_FILE,
            message="DOCX file appears to be empty",
            status_code=422,
            details={"filename": upload.filename},
        )

    paragraphs = [line.strip() for line in full_text.split("\n") if line.strip()]
    return ExtractorOutput(
        file_type=FileType.DOCX,
        data={"full_text": full_text, "paragraphs": paragraphs},
        metadata={
            "is_structured": False,
            "text_length": len(full_text),
            "table_count": len(doc.tables),
        },
    )
