"""intake/extractors/text.py

Plain text extraction for Path B.
"""

from intake.constants.routes import FileType
from intake.core import AppError, ErrorCode, ErrorReason
from intake.extractors.encoding import decode_bytes
from intake.triage.types import ExtractorOutput, UploadedFile


def extract_text_file(upload: UploadedFile) -> ExtractorOutput:
    text = decode_bytes(upload.content)

    if not text.strip():
        raise AppError(
            code=ErrorCode.EMPTY_DOCUMENT,
            reason=ErrorReason.EMPTY_FILE,
            message="Text file is empty",
            status_code=422,
            details={"filename": upload.filename},
        )

    lines = [line.strip() for line in text.split("\n") if line.strip()]
    return ExtractorOutput(
        file_type=FileType.TXT,
        data={"full_text": text, "lines": lines},
        metadata={
            "is_structured": False,
            "line_count": len(lines),
            "text_length": len(text),
        },
    )
