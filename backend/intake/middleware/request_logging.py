"""
request_logging.py
- Purpose: One request/response log pair per HTTP call, with request and
  tenant context bound for everything logged in between.
"""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from intake.core.request_context import clear_context, set_context

logger = logging.getLogger("intake.http")


def _tenant_hint(request: Request) -> tuple[str | None, str | None]:
    tenant = request.headers.get("x-tenant-id") or request.query_params.get("tenant_id")
    persona = request.headers.get("x-persona-id") or request.query_params.get("persona_id")
    return tenant, persona


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        rid = request.headers.get("x-request-id") or uuid.uuid4().hex
        tenant, persona = _tenant_hint(request)
        set_context(request_id=rid, tenant_id=tenant, persona_id=persona)

        started = time.perf_counter()
        logger.info("http.request", extra={"method": request.method, "path": request.url.path})
        try:
            response: Response = await call_next(request)
        except Exception:
            logger.exception(
                "http.failed",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "duration_ms": int((time.perf_counter() - started) * 1000),
                },
            )
            raise
        else:
            logger.info(
                "http.response",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "duration_ms": int((time.perf_counter() - started) * 1000),
                },
            )
            response.headers["x-request-id"] = rid
            return response
        finally:
            clear_context()
