"""
ingest.py (schemas)
- Purpose: Request/response DTOs for the ingestion HTTP adapter.
- Design: Service results are plain dicts already; DTOs pin the envelope.
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


class IngestAcceptedResponse(BaseModel):
    job_id: str
    status: Literal["pending"] = "pending"
    status_url: str
    validation: list[dict[str, Any]] = Field(default_factory=list)


class JobResponse(BaseModel):
    id: str
    status: Literal["pending", "processing", "completed", "failed", "cancelled"]
    created_at: str
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    progress: float
    validation: list[dict[str, Any]] = Field(default_factory=list)
    result: Optional[dict[str, Any]] = None
    error: Optional[str] = None
    error_details: Optional[dict[str, Any]] = None


class CancelJobResponse(BaseModel):
    job_id: str
    cancelled: bool
    status: str


class QualityAnalyzeRequest(BaseModel):
    rows: list[dict[str, Any]]
    columns: Optional[list[str]] = None  # defaults to the first row's keys
