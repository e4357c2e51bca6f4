"""
deps.py
- Purpose: FastAPI dependencies. The app owns one storage, one ingestion
  service and one job queue, built in main.create_app() and kept on
  app.state so tests can swap any of them.
"""

from fastapi import Request

from intake.services.ingestion_service import IngestionService
from intake.services.job_queue import Job, JobQueue
from intake.services.manifest_store import ManifestStore
from intake.services.storage.base import Storage
from intake.services.storage.factory import get_storage as get_default_storage
from intake.triage.router import build_router


def build_ingestion_service(storage: Storage | None = None) -> IngestionService:
    storage = storage or get_default_storage()
    return IngestionService(router=build_router(storage), storage=storage)


def build_job_handler(service: IngestionService):
    def handle(job: Job) -> dict:
        payload = job.payload
        result = service.ingest(
            payload["files"],
            payload["tenant_id"],
            payload.get("persona_id"),
            cancel_event=job.cancel_event,
            progress=job.set_progress,
        )
        return result.to_dict()

    return handle


def get_ingestion_service(request: Request) -> IngestionService:
    return request.app.state.ingestion_service


def get_job_queue(request: Request) -> JobQueue:
    return request.app.state.job_queue


def get_manifest_store(request: Request) -> ManifestStore:
    return request.app.state.ingestion_service.manifests
