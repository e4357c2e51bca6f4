"""
exception_handlers.py
- Purpose: Map failures to the {"error": {...}} envelope every intake route returns.
- Batch aborts carry the failing file in details; it is logged alongside the code.
"""

from __future__ import annotations

import logging

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from intake.core import AppError, ErrorCode, ErrorReason

logger = logging.getLogger("intake.exceptions")


def _where(request: Request) -> dict:
    return {"method": request.method, "path": request.url.path}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    details = exc.details or {}
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "app_error",
        extra={
            **_where(request),
            "status_code": exc.status_code,
            "error_code": exc.code.value,
            "cause_code": details.get("cause_code"),
            "file_name": details.get("filename"),
        },
    )
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("request_invalid", extra={**_where(request), "error_count": len(exc.errors())})
    err = AppError(
        code=ErrorCode.VALIDATION_ERROR,
        reason=ErrorReason.INVALID_INPUT,
        status_code=422,
        message="Request is missing required fields or has the wrong shape",
        details={"errors": jsonable_encoder(exc.errors())},
    )
    return JSONResponse(status_code=422, content=jsonable_encoder(err.to_dict()))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_exception", extra={**_where(request), "error_type": type(exc).__name__})
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": ErrorCode.INTERNAL_ERROR.value,
                "reason": ErrorReason.INTERNAL_ERROR.value,
                "message": ErrorReason.INTERNAL_ERROR.value,
            }
        },
    )
