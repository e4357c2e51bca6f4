"""
error_reasons.py
- Purpose: Human-friendly "reason" strings.
- Keep these stable; they may be surfaced to tenants in the uploader UI.
"""

from enum import Enum


class ErrorReason(str, Enum):
    UNKNOWN = "Unknown error"

    INVALID_INPUT = "Invalid input"
    RESOURCE_NOT_FOUND = "Resource not found"
    UNSUPPORTED_FILE = "Unsupported file type"
    EMPTY_FILE = "File has no content"
    PDF_INVALID = "Invalid PDF"
    SPREADSHEET_INVALID = "Unreadable spreadsheet"
    DOCUMENT_INVALID = "Unreadable document"
    BATCH_FAILED = "Batch processing aborted"
    JOB_CANCELLED = "Job cancelled"
    QUEUE_FULL = "Processing queue is full"

    STORAGE_UNAVAILABLE = "Storage unavailable"
    UPLOAD_FAILED = "Upload failed"
    DOWNLOAD_FAILED = "Download failed"
    DELETE_FAILED = "Delete failed"
    INTERNAL_ERROR = "Internal server error"
    MISSING_DEPENDENCY = "Missing dependency"
