"""
statuses.py
- Purpose: Central source of truth for job and escalation statuses.
- Design: Keep caller-facing statuses stable and explicit.
"""

from enum import Enum


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class EscalationStatus(str, Enum):
    COMPLETED = "completed"
    LOCAL_FALLBACK = "local_fallback"
    FAILED = "failed"
    SKIPPED = "skipped"
