# intake/services/ingestion_service.py
"""
ingestion_service.py
- Purpose: Orchestrates one ingestion batch end-to-end.
- Owns: triage → categorisation → artifacts → quality report → manifest.
- Design: Thick service; routers and the job queue stay thin.
"""

import logging
import re
import threading
from dataclasses import dataclass, field
from typing import Any, Callable

from intake.constants.routes import FileCategory, FileType, TriageRoute
from intake.core import AppError, ErrorCode, ErrorReason
from intake.core.request_context import bound
from intake.quality.analyzer import analyze_data_quality
from intake.quality.types import QualityReport
from intake.services.artifacts import save_processed_files
from intake.services.manifest_store import ManifestStore, merge_manifest
from intake.services.storage.base import Storage
from intake.triage.router import TriageRouter
from intake.triage.types import ProcessedFile, UploadedFile

logger = logging.getLogger("intake.ingestion_service")

TRACKING_COLUMN_RE = re.compile(r"po|purchase\s*order|order|tracking|shipment|invoice|reference", re.IGNORECASE)

ProgressCallback = Callable[[float], None]


def categorize_files(files: list[ProcessedFile]) -> dict[FileCategory, list[ProcessedFile]]:
    categories: dict[FileCategory, list[ProcessedFile]] = {c: [] for c in FileCategory}
    for f in files:
        if f.file_type == FileType.EXCEL:
            is_tracking = any(TRACKING_COLUMN_RE.search(col) for col in f.columns)
            categories[FileCategory.TRACKING if is_tracking else FileCategory.OTHER].append(f)
        elif f.file_type in (FileType.PDF, FileType.DOCX):
            categories[FileCategory.KNOWLEDGE].append(f)
        else:
            categories[FileCategory.OTHER].append(f)
    return categories


@dataclass(frozen=True)
class IngestionResult:
    files: list[ProcessedFile]
    categories: dict[FileCategory, list[ProcessedFile]]
    main_file: ProcessedFile | None
    quality_report: QualityReport | None
    saved_files: list[dict[str, Any]] = field(default_factory=list)
    manifest: dict[str, Any] | None = None

    @property
    def vision_summary(self) -> list[dict[str, Any]]:
        return [
            {"name": f.original_name, **(f.triage.escalation or {})}
            for f in self.files
            if f.triage.route == TriageRoute.VISION_PDF
        ]

    def to_dict(self) -> dict[str, Any]:
        main = self.main_file
        return {
            "files_processed": len(self.files),
            "categories": {c.value: len(members) for c, members in self.categories.items()},
            "main_file": (
                {"name": main.original_name, "type": main.file_type.value, "rows": len(main.data)}
                if main is not None
                else None
            ),
            "quality_report": self.quality_report.to_dict() if self.quality_report is not None else None,
            "vision": self.vision_summary,
            "saved_files": self.saved_files,
            "manifest": self.manifest,
        }


class IngestionService:
    def __init__(self, router: TriageRouter, storage: Storage, manifests: ManifestStore | None = None):
        self.router = router
        self.storage = storage
        self.manifests = manifests or ManifestStore(storage)

    def _check_cancelled(self, cancel_event: threading.Event | None) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise AppError(
                code=ErrorCode.JOB_CANCELLED,
                reason=ErrorReason.JOB_CANCELLED,
                message="Batch cancelled before results were persisted",
                status_code=409,
            )

    def ingest(
        self,
        files: list[UploadedFile],
        tenant_id: str,
        persona_id: str | None = None,
        *,
        cancel_event: threading.Event | None = None,
        progress: ProgressCallback | None = None,
    ) -> IngestionResult:
        with bound(tenant_id=tenant_id, persona_id=persona_id):
            return self._ingest(files, tenant_id, persona_id, cancel_event, progress or (lambda _value: None))

    def _ingest(
        self,
        files: list[UploadedFile],
        tenant_id: str,
        persona_id: str | None,
        cancel_event: threading.Event | None,
        report_progress: ProgressCallback,
    ) -> IngestionResult:
        if not files:
            raise AppError(
                code=ErrorCode.VALIDATION_ERROR,
                reason=ErrorReason.INVALID_INPUT,
                message="No files provided for processing",
                status_code=422,
            )

        logger.info("ingest.started", extra={"file_count": len(files)})

        processed = self.router.process_files(
            files, tenant_id=tenant_id, persona_id=persona_id, cancel_event=cancel_event
        )
        report_progress(0.35)

        if not processed:
            raise AppError(
                code=ErrorCode.INVALID_FILE_TYPE,
                reason=ErrorReason.UNSUPPORTED_FILE,
                message="None of the uploaded files could be processed",
                status_code=422,
                details={"filenames": [f.filename for f in files]},
            )

        categories = categorize_files(processed)
        tracking = categories[FileCategory.TRACKING]
        main_file = tracking[0] if tracking else None
        report_progress(0.6)

        # Nothing is persisted for a cancelled batch.
        self._check_cancelled(cancel_event)

        saved = save_processed_files(self.storage, processed, tenant_id, persona_id)
        report_progress(0.8)

        quality_report = None
        if main_file is not None:
            quality_report = analyze_data_quality(main_file.quality_rows, main_file.columns)

        manifest = self.manifests.update(
            tenant_id,
            persona_id,
            lambda existing: merge_manifest(existing, processed, categories, main_file, quality_report),
        )

        logger.info(
            "ingest.completed",
            extra={
                "files": len(processed),
                "tracking": len(tracking),
                "knowledge": len(categories[FileCategory.KNOWLEDGE]),
                "other": len(categories[FileCategory.OTHER]),
                "quality_score": quality_report.quality_score if quality_report else None,
            },
        )

        return IngestionResult(
            files=processed,
            categories=categories,
            main_file=main_file,
            quality_report=quality_report,
            saved_files=saved,
            manifest=manifest,
        )
