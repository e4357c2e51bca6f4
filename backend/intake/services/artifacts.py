"""intake/services/artifacts.py

Writes the per-file artifacts downstream readers consume: row JSON plus a
flattened text rendering for spreadsheets, text plus a metadata sidecar for
documents.
"""

import logging
import secrets
import time
from typing import Any

from intake.constants.routes import FileType
from intake.services.storage.base import Storage
from intake.services.storage.paths import build_processed_key, safe_base_name
from intake.triage.types import ProcessedFile

logger = logging.getLogger("intake.artifacts")

TEXT_FILE_TYPES = (FileType.PDF, FileType.DOCX, FileType.TXT)


def rows_to_text(rows: list[dict[str, Any]], columns: list[str]) -> str:
    lines = []
    for i, row in enumerate(rows, start=1):
        cells = ", ".join(f"{col}: {row.get(col) or 'N/A'}" for col in columns)
        lines.append(f"Row {i}: {cells}")
    return "\n".join(lines)


def triage_note(file: ProcessedFile) -> str:
    """Stand-in text for a document that came out of triage without text."""
    lines = [
        "### Vision Processing ###",
        f"Original file: {file.original_name}",
        f"Reason: {file.triage.reason or 'Escalated to Path C'}",
        f"Recommended tool: {file.triage.recommended_tool or 'process_pdf_with_vlm'}",
    ]
    if file.metadata.get("preview"):
        lines.append(f"Preview snippet: {file.metadata['preview']}")
    if file.artifacts and file.artifacts.get("parsed_storage_key"):
        lines.append(f"Parsed Storage Key: {file.artifacts['parsed_storage_key']}")
    return "\n".join(lines)


def save_processed_files(
    storage: Storage,
    files: list[ProcessedFile],
    tenant_id: str | None,
    persona_id: str | None = None,
) -> list[dict[str, Any]]:
    saved: list[dict[str, Any]] = []
    timestamp = int(time.time() * 1000)

    for index, file in enumerate(files):
        base_key = build_processed_key(
            tenant_id,
            persona_id,
            safe_base_name(file.original_name, index),
            f"{timestamp}_{index}_{secrets.token_hex(4)}",
        )

        if file.file_type == FileType.EXCEL:
            json_key, txt_key = f"{base_key}.json", f"{base_key}.txt"
            storage.save(json_key, file.data, "application/json")
            storage.save(txt_key, rows_to_text(file.data, file.columns), "text/plain")
            saved.append({
                "type": file.file_type.value,
                "name": file.original_name,
                "storage_key": base_key,
                "json_key": json_key,
                "txt_key": txt_key,
            })

        elif file.file_type in TEXT_FILE_TYPES:
            txt_key, meta_key = f"{base_key}.txt", f"{base_key}_meta.json"
            storage.save(txt_key, file.full_text or triage_note(file), "text/plain")
            full = file.to_dict()
            storage.save(
                meta_key,
                {
                    "original_name": file.original_name,
                    "file_type": file.file_type.value,
                    "metadata": full["metadata"],
                    "triage": full["triage"],
                    "artifacts": file.artifacts,
                },
                "application/json",
            )
            saved.append({
                "type": file.file_type.value,
                "name": file.original_name,
                "storage_key": base_key,
                "txt_key": txt_key,
                "meta_key": meta_key,
                "artifacts": file.artifacts,
            })

    logger.info("artifacts.saved", extra={"count": len(saved)})
    return saved
