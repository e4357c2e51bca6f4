"""intake/triage/router.py

Triage router: decides which path each uploaded file takes and runs it.

- Path A: spreadsheets, parsed locally as structured rows
- Path B: DOCX / TXT / text-layer PDFs, extracted locally
- Path C: PDFs whose quick extraction looks degraded, escalated to vision

Files in a batch are processed sequentially. An extractor failure aborts the
whole batch; a vision failure only degrades that one file.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Iterable

from intake.constants.routes import EscalationReason, FileType, TriageRoute
from intake.core import AppError, ErrorCode, ErrorReason
from intake.core.config import settings
from intake.extractors.docx import extract_docx
from intake.extractors.spreadsheet import extract_spreadsheet
from intake.extractors.text import extract_text_file
from intake.pdf.extract import extract_text_from_bytes
from intake.pdf.quality import summarize_text_quality
from intake.pdf.types import ExtractedPDF, TextQualityMetrics
from intake.triage.escalation import UNAVAILABLE_QUALITY, PdfDecision, PdfState, decide_pdf_route
from intake.triage.types import ProcessedFile, TriageInfo, UploadedFile
from intake.vision.escalator import VisionEscalator

logger = logging.getLogger("intake.triage")

SPREADSHEET_MIME_TYPES = {
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "text/csv",
}
PDF_MIME_TYPES = {"application/pdf"}
DOCX_MIME_TYPES = {"application/vnd.openxmlformats-officedocument.wordprocessingml.document"}
TXT_MIME_TYPES = {"text/plain"}

STRUCTURED_SPREADSHEET_QUALITY = TextQualityMetrics(score=1.0, is_usable=True, reason="Structured spreadsheet")

ESCALATION_REASON_TEXT = {
    PdfState.ESCALATED_FOR_TABLES: "Quick extraction appears to lose table structure. Escalate to vision (Path C).",
    PdfState.ESCALATED_FOR_QUALITY: (
        "Quick PDF text extraction degraded; PDF appears scanned or low quality. "
        "Escalate to vision tool (Path C)."
    ),
}
ESCALATION_NOTES = {
    PdfState.ESCALATED_FOR_TABLES: "Quick extraction appears to lose table structure. Escalating to vision.",
    PdfState.ESCALATED_FOR_QUALITY: (
        "Quick text extraction failed or produced low-quality text. Escalate to vision-capable tool."
    ),
}


def _mime(upload: UploadedFile) -> str:
    return (upload.content_type or "").split(";")[0].strip().lower()


def detect_file_type(upload: UploadedFile) -> FileType | None:
    mime, ext = _mime(upload), upload.extension
    if mime in SPREADSHEET_MIME_TYPES or ext in (".xlsx", ".xls", ".csv"):
        return FileType.EXCEL
    if mime in PDF_MIME_TYPES or ext == ".pdf":
        return FileType.PDF
    if mime in DOCX_MIME_TYPES or ext == ".docx":
        return FileType.DOCX
    if mime in TXT_MIME_TYPES or ext == ".txt":
        return FileType.TXT
    return None


def quick_pdf_data(extracted: ExtractedPDF | None) -> dict[str, Any]:
    if extracted is None:
        return {"full_text": "", "paragraphs": [], "pages": None, "tables": [], "has_structured_tables": False}
    return {
        "full_text": extracted.text,
        "paragraphs": extracted.paragraphs,
        "pages": extracted.page_count,
        "tables": [],
        "has_structured_tables": False,
    }


class TriageRouter:
    def __init__(
        self,
        escalator: VisionEscalator,
        *,
        quick_extractor: Callable[[bytes], ExtractedPDF] = extract_text_from_bytes,
        vision_pdf_enabled: bool | None = None,
        recommended_tool: str | None = None,
    ):
        self._escalator = escalator
        self._quick_extractor = quick_extractor
        self._vision_pdf_enabled = settings.VISION_PDF_ENABLED if vision_pdf_enabled is None else vision_pdf_enabled
        self._recommended_tool = recommended_tool or settings.VISION_PDF_TOOL

    def process_files(
        self,
        files: Iterable[UploadedFile],
        *,
        tenant_id: str | None = None,
        persona_id: str | None = None,
        cancel_event: threading.Event | None = None,
    ) -> list[ProcessedFile]:
        processed: list[ProcessedFile] = []

        for upload in files:
            if cancel_event is not None and cancel_event.is_set():
                raise AppError(
                    code=ErrorCode.JOB_CANCELLED,
                    reason=ErrorReason.JOB_CANCELLED,
                    message="Batch cancelled before all files were processed",
                    status_code=409,
                    details={"processed": len(processed)},
                )

            logger.info(
                "triage.file_started",
                extra={"file_name": upload.filename, "content_type": upload.content_type},
            )
            try:
                result = self.triage_and_process(upload, tenant_id=tenant_id, persona_id=persona_id)
            except AppError as e:
                logger.warning(
                    "triage.batch_aborted",
                    extra={"file_name": upload.filename, "error_code": e.code.value},
                )
                raise AppError(
                    code=ErrorCode.BATCH_ABORTED,
                    reason=ErrorReason.BATCH_FAILED,
                    message=f"Failed to process {upload.filename}: {e}",
                    status_code=422,
                    details={"filename": upload.filename, "cause_code": e.code.value, **(e.details or {})},
                ) from e
            except Exception as e:
                logger.exception("triage.batch_aborted", extra={"file_name": upload.filename})
                raise AppError(
                    code=ErrorCode.BATCH_ABORTED,
                    reason=ErrorReason.BATCH_FAILED,
                    message=f"Failed to process {upload.filename}: {e}",
                    status_code=422,
                    details={"filename": upload.filename, "cause_code": ErrorCode.INTERNAL_ERROR.value},
                ) from e

            if result is None:
                continue

            processed.append(result)
            logger.info(
                "triage.file_processed",
                extra={"file_name": upload.filename, "route": result.triage.route.value},
            )

        return processed

    def triage_and_process(
        self,
        upload: UploadedFile,
        *,
        tenant_id: str | None = None,
        persona_id: str | None = None,
    ) -> ProcessedFile | None:
        file_type = detect_file_type(upload)

        if file_type == FileType.EXCEL:
            out = extract_spreadsheet(upload)
            return ProcessedFile(
                original_name=upload.filename,
                file_type=out.file_type,
                data=out.data,
                metadata=out.metadata,
                triage=TriageInfo(
                    route=TriageRoute.STRUCTURED_SPREADSHEET,
                    reason="Structured spreadsheet processed with local Excel parser (Path A).",
                    quality=STRUCTURED_SPREADSHEET_QUALITY,
                ),
                file_size=upload.declared_size,
                audit_rows=out.audit_rows,
            )

        if file_type == FileType.PDF:
            return self._triage_pdf(upload, tenant_id=tenant_id, persona_id=persona_id)

        if file_type == FileType.DOCX:
            out = extract_docx(upload)
            quality = summarize_text_quality(out.data["full_text"])
            reason = (
                "DOCX text extracted locally (Path B)."
                if quality.is_usable
                else f"DOCX content may require vision assistance ({quality.reason})"
            )
            return self._text_result(upload, out.file_type, out.data, out.metadata, TriageRoute.TEXT_DOC, reason, quality)

        if file_type == FileType.TXT:
            out = extract_text_file(upload)
            quality = summarize_text_quality(out.data["full_text"])
            reason = (
                "Plain text file processed locally (Path B)."
                if quality.is_usable
                else f"Plain text content appears degraded ({quality.reason})"
            )
            return self._text_result(upload, out.file_type, out.data, out.metadata, TriageRoute.TEXT_PLAIN, reason, quality)

        logger.warning(
            "triage.unsupported_type",
            extra={"file_name": upload.filename, "content_type": upload.content_type},
        )
        return None

    def _text_result(self, upload, file_type, data, metadata, route, reason, quality) -> ProcessedFile:
        return ProcessedFile(
            original_name=upload.filename,
            file_type=file_type,
            data=data,
            metadata=metadata,
            triage=TriageInfo(route=route, reason=reason, quality=quality),
            file_size=upload.declared_size,
        )

    def _quick_extract(self, upload: UploadedFile) -> ExtractedPDF | None:
        try:
            return self._quick_extractor(upload.content)
        except Exception as e:
            logger.warning(
                "triage.pdf.quick_extract_failed",
                extra={"file_name": upload.filename, "error": str(e)},
            )
            return None

    def _triage_pdf(
        self,
        upload: UploadedFile,
        *,
        tenant_id: str | None,
        persona_id: str | None,
    ) -> ProcessedFile:
        extracted = self._quick_extract(upload)
        quality = (
            summarize_text_quality(extracted.text, extracted.page_count or 1)
            if extracted is not None
            else UNAVAILABLE_QUALITY
        )
        quick_data = quick_pdf_data(extracted)
        text = extracted.text if extracted is not None else ""

        decision: PdfDecision = decide_pdf_route(
            quality, text, self._vision_pdf_enabled, filename=upload.filename
        )

        if not decision.escalate:
            return ProcessedFile(
                original_name=upload.filename,
                file_type=FileType.PDF,
                data=quick_data,
                metadata={
                    "pages": extracted.page_count,
                    "text_length": len(extracted.text),
                    "text_quality": quality.to_dict(),
                    "extraction_method": f"quick_pdf_parse:{extracted.strategy}",
                },
                triage=TriageInfo(
                    route=TriageRoute.TEXT_PDF,
                    reason="Quick PDF text extraction succeeded (Path B).",
                    quality=quality,
                ),
                file_size=upload.declared_size,
            )

        reason_code: EscalationReason = decision.reason_code
        preview = extracted.preview if extracted is not None else ""
        logger.info(
            "triage.pdf.escalated",
            extra={
                "file_name": upload.filename,
                "state": decision.state.value,
                "reason_code": reason_code.value,
                "quality_score": quality.score,
            },
        )

        outcome = self._escalator.run(
            upload.content,
            upload.filename,
            quick_data=quick_data,
            preview=preview,
            reason=reason_code.value,
            quality_reason=quality.reason,
            tenant_id=tenant_id,
            persona_id=persona_id,
        )

        extraction_method = (
            "triage_table_escalated" if decision.state == PdfState.ESCALATED_FOR_TABLES else "triage_escalated"
        )
        return ProcessedFile(
            original_name=upload.filename,
            file_type=FileType.PDF,
            data=outcome.data,
            metadata={
                "requires_vision": True,
                "text_quality": quality.to_dict(),
                "extraction_method": extraction_method,
                "notes": ESCALATION_NOTES[decision.state],
                "preview": preview or None,
                "vision_artifacts": outcome.artifacts,
                "vision_data_available": outcome.has_vision_data,
            },
            triage=TriageInfo(
                route=TriageRoute.VISION_PDF,
                reason=ESCALATION_REASON_TEXT[decision.state],
                quality=quality,
                recommended_tool=self._recommended_tool,
                escalation=outcome.note(),
            ),
            file_size=upload.declared_size,
            artifacts=outcome.artifacts,
        )


def build_router(storage=None) -> TriageRouter:
    from intake.vision.client import build_vision_client

    return TriageRouter(VisionEscalator(build_vision_client(), storage))


def process_files(files: Iterable[UploadedFile], **kwargs) -> list[ProcessedFile]:
    """Triage a batch with the router configured from settings."""
    return build_router(kwargs.pop("storage", None)).process_files(files, **kwargs)
