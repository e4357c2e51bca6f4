"""
Log correlation context.

The HTTP middleware binds request_id (plus tenant/persona when the caller
names them); the job queue worker binds job_id for the batch it runs. The
JSON log formatter adds whatever is bound to every line.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

CONTEXT_KEYS = ("request_id", "job_id", "tenant_id", "persona_id")

_context: ContextVar[dict[str, str]] = ContextVar("intake_log_context", default={})


def set_context(
    *,
    request_id: Optional[str] = None,
    job_id: Optional[str] = None,
    tenant_id: Optional[str] = None,
    persona_id: Optional[str] = None,
) -> None:
    """Binds the given values; None leaves an existing value untouched."""
    given = {"request_id": request_id, "job_id": job_id, "tenant_id": tenant_id, "persona_id": persona_id}
    _context.set({**_context.get(), **{k: v for k, v in given.items() if v is not None}})


def clear_context() -> None:
    _context.set({})


def get_context() -> dict[str, str]:
    current = _context.get()
    return {k: current[k] for k in CONTEXT_KEYS if current.get(k)}


@contextmanager
def bound(**values: Optional[str]) -> Iterator[None]:
    """Binds values for the duration of the block, then restores what was there."""
    token = _context.set({**_context.get(), **{k: v for k, v in values.items() if v is not None}})
    try:
        yield
    finally:
        _context.reset(token)
