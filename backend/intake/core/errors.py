"""
errors.py
- Purpose: AppError used across extractors/services for consistent errors.
- Pattern: raise AppError(...) in a service, the API handler converts it to JSON.
"""

from dataclasses import dataclass
from typing import Any

from fastapi import status as http_status

from intake.core.error_codes import ErrorCode
from intake.core.error_reasons import ErrorReason


@dataclass
class AppError(Exception):
    code: ErrorCode
    reason: str
    status_code: int = http_status.HTTP_400_BAD_REQUEST
    details: dict[str, Any] | None = None
    message: str | None = None  # Optional human-readable message

    @property
    def reason_text(self) -> str:
        return str(getattr(self.reason, "value", self.reason))

    def __str__(self) -> str:
        return self.message or self.reason_text

    def to_dict(self) -> dict[str, Any]:
        error: dict[str, Any] = {
            "code": self.code.value,
            "reason": self.reason_text,
            "message": str(self),
        }
        if self.details:
            error["details"] = self.details
        return {"error": error}


def not_found(reason: str = ErrorReason.RESOURCE_NOT_FOUND, *, details: dict | None = None, message: str | None = None) -> AppError:
    return AppError(code=ErrorCode.NOT_FOUND, reason=reason, status_code=http_status.HTTP_404_NOT_FOUND, details=details, message=message)
