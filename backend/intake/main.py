# intake/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from intake.api.deps import build_ingestion_service, build_job_handler
from intake.core import AppError
from intake.core.config import settings
from intake.core.exception_handlers import app_error_handler, request_validation_handler, unhandled_exception_handler
from intake.core.logging_config import configure_logging
from intake.middleware.request_logging import RequestLoggingMiddleware
from intake.routers.health import router as health_router
from intake.routers.ingest import router as ingest_router
from intake.routers.jobs import router as jobs_router
from intake.routers.manifests import router as manifests_router
from intake.routers.quality import router as quality_router
from intake.services.ingestion_service import IngestionService
from intake.services.job_queue import JobQueue
from intake.services.storage.base import Storage

configure_logging()


def _split_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [v.strip() for v in value.split(",") if v.strip()]


def create_app(
    *,
    storage: Storage | None = None,
    ingestion_service: IngestionService | None = None,
) -> FastAPI:
    service = ingestion_service or build_ingestion_service(storage)
    jobs = JobQueue(
        build_job_handler(service),
        maxsize=settings.JOB_QUEUE_MAXSIZE,
        retain_finished=settings.JOB_RETAIN_FINISHED,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        jobs.shutdown(wait=False)

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.storage = service.storage
    app.state.ingestion_service = service
    app.state.job_queue = jobs

    app.add_middleware(RequestLoggingMiddleware)

    # CORS_ALLOW_ORIGINS="http://localhost:3000,https://intake.example.com"
    allow_origins = _split_csv(settings.CORS_ALLOW_ORIGINS) or ["http://localhost:3000"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(health_router)
    app.include_router(ingest_router)
    app.include_router(jobs_router)
    app.include_router(manifests_router)
    app.include_router(quality_router)

    return app
