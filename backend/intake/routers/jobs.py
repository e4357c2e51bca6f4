from fastapi import APIRouter, Depends

from intake.api.deps import get_job_queue
from intake.core.errors import not_found
from intake.schemas.ingest import CancelJobResponse, JobResponse
from intake.services.job_queue import JobQueue

router = APIRouter(prefix="/api/jobs", tags=["Jobs"])


@router.get("/{job_id}", response_model=JobResponse)
def get_job(job_id: str, jobs: JobQueue = Depends(get_job_queue)):
    job = jobs.get(job_id)
    if job is None:
        raise not_found(message="Job not found", details={"job_id": job_id})
    return JobResponse(**job.to_dict())


@router.delete("/{job_id}", response_model=CancelJobResponse)
def cancel_job(job_id: str, jobs: JobQueue = Depends(get_job_queue)):
    job = jobs.get(job_id)
    if job is None:
        raise not_found(message="Job not found", details={"job_id": job_id})
    cancelled = jobs.cancel(job_id)
    return CancelJobResponse(job_id=job_id, cancelled=cancelled, status=job.status.value)
