# intake/core/error_codes.py
from enum import Enum

class ErrorCode(str, Enum):
    UNKNOWN = "UNKNOWN"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    CONFIG_ERROR = "CONFIG_ERROR"

    # Upload / extraction
    FILE_MISSING = "FILE_MISSING"
    INVALID_FILE_TYPE = "INVALID_FILE_TYPE"
    EMPTY_DOCUMENT = "EMPTY_DOCUMENT"
    EXTRACTION_FAILED = "EXTRACTION_FAILED"
    BATCH_ABORTED = "BATCH_ABORTED"

    # Jobs
    JOB_CANCELLED = "JOB_CANCELLED"
    QUEUE_FULL = "QUEUE_FULL"

    # Storage
    STORAGE_ERROR = "STORAGE_ERROR"
