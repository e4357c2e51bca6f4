"""
ingest.py
- Purpose: Batch upload routes (queued and inline).
- Design: Keep router thin. Delegate business logic to services.
"""

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from intake.api.deps import get_ingestion_service, get_job_queue
from intake.schemas.ingest import IngestAcceptedResponse
from intake.services.ingestion_service import IngestionService
from intake.services.job_queue import JobQueue
from intake.triage.types import UploadedFile
from intake.validations.file_validators import validate_batch

router = APIRouter(prefix="/api/ingest", tags=["Ingest"])


def _to_uploaded(files: list[UploadFile]) -> list[UploadedFile]:
    out = []
    for f in files:
        content = f.file.read()
        out.append(
            UploadedFile(
                content=content,
                filename=f.filename or "upload",
                content_type=f.content_type or "",
                size=f.size if f.size is not None else len(content),
            )
        )
    return out


@router.post("", response_model=IngestAcceptedResponse, status_code=status.HTTP_202_ACCEPTED)
def enqueue_ingest(
    files: list[UploadFile] = File(...),
    tenant_id: str = Form(...),
    persona_id: str | None = Form(None),
    jobs: JobQueue = Depends(get_job_queue),
):
    uploads = _to_uploaded(files)
    validation = validate_batch(uploads)

    job_id = jobs.enqueue(
        {"files": uploads, "tenant_id": tenant_id, "persona_id": persona_id},
        validation=[v.to_dict() for v in validation],
    )
    return IngestAcceptedResponse(
        job_id=job_id,
        status_url=f"/api/jobs/{job_id}",
        validation=[v.to_dict() for v in validation],
    )


@router.post("/sync")
def ingest_inline(
    files: list[UploadFile] = File(...),
    tenant_id: str = Form(...),
    persona_id: str | None = Form(None),
    svc: IngestionService = Depends(get_ingestion_service),
):
    """Processes the batch in the request; fatal batch errors come back as 422."""
    uploads = _to_uploaded(files)
    validation = validate_batch(uploads)

    result = svc.ingest(uploads, tenant_id, persona_id)
    return {**result.to_dict(), "validation": [v.to_dict() for v in validation]}
