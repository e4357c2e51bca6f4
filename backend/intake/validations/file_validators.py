"""
file_validators.py
- Purpose: Centralized validation for uploaded files before a batch is queued.
- Design: Per-file errors/warnings; the batch check raises AppError with
  stable error codes for UI + logs.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable

from intake.core import AppError, ErrorCode, ErrorReason
from intake.core.config import settings
from intake.triage.types import UploadedFile

SUPPORTED_EXTENSIONS = (".xlsx", ".xls", ".csv", ".pdf", ".docx", ".txt")


@dataclass(frozen=True)
class FileValidation:
    filename: str
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "filename": self.filename,
            "is_valid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }


def validate_file(upload: UploadedFile, *, max_warn_bytes: int | None = None) -> FileValidation:
    limit = settings.MAX_UPLOAD_WARN_BYTES if max_warn_bytes is None else max_warn_bytes
    errors: list[str] = []
    warnings: list[str] = []

    size = upload.declared_size
    if size == 0:
        errors.append("File is empty")
    if size > limit:
        warnings.append(f"Large file (>{limit // (1024 * 1024)}MB), processing may be slow")

    if not (upload.filename or "").lower().endswith(SUPPORTED_EXTENSIONS):
        errors.append("Invalid file type. Supported: Excel, PDF, DOCX, TXT, CSV")

    return FileValidation(filename=upload.filename, errors=errors, warnings=warnings)


def validate_batch(uploads: Iterable[UploadedFile]) -> list[FileValidation]:
    uploads = list(uploads)
    if not uploads:
        raise AppError(
            code=ErrorCode.FILE_MISSING,
            reason=ErrorReason.INVALID_INPUT,
            message="No files uploaded",
            status_code=422,
        )

    results = [validate_file(u) for u in uploads]
    invalid = [r for r in results if not r.is_valid]
    if invalid:
        raise AppError(
            code=ErrorCode.VALIDATION_ERROR,
            reason=ErrorReason.UNSUPPORTED_FILE,
            message="; ".join(f"{r.filename}: {', '.join(r.errors)}" for r in invalid),
            status_code=422,
            details={"files": [r.to_dict() for r in invalid]},
        )
    return results
