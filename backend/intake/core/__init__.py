# intake/core/__init__.py
from intake.core.errors import AppError
from intake.core.error_codes import ErrorCode
from intake.core.error_reasons import ErrorReason

__all__ = ["AppError", "ErrorCode", "ErrorReason"]
