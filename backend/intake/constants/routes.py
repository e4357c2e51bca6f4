"""
routes.py
- Purpose: Central source of truth for triage routes and file categories.
- Design: Values are persisted in manifests; keep them stable.
"""

from enum import Enum


class TriageRoute(str, Enum):
    # Path A
    STRUCTURED_SPREADSHEET = "structured_excel"
    # Path B
    TEXT_PDF = "text_pdf"
    TEXT_DOC = "text_doc"
    TEXT_PLAIN = "text_plain"
    # Path C
    VISION_PDF = "vision_pdf"


class FileType(str, Enum):
    EXCEL = "excel"
    PDF = "pdf"
    DOCX = "docx"
    TXT = "txt"


class FileCategory(str, Enum):
    TRACKING = "tracking"
    KNOWLEDGE = "knowledge"
    OTHER = "other"


class EscalationReason(str, Enum):
    TABLE_STRUCTURE_LOSS = "table_structure_loss"
    LOW_QUALITY_TEXT = "low_quality_text"
    ESCALATED_FOR_TABLES = "escalated_for_tables"
