"""
manifest_store.py
- Purpose: Per tenant/persona manifest describing every processed file.
- Owns: manifest key resolution, load fallback, the merge rules and the
  locked read-modify-write.
- Design: Storage-agnostic; talks to the Storage contract only.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable

from intake.constants.routes import FileCategory, FileType
from intake.core import AppError, ErrorCode
from intake.quality.types import QualityReport
from intake.services.locks import KeyedLock
from intake.services.storage.base import Storage
from intake.services.storage.paths import manifest_key, sanitize_tenant_id
from intake.triage.types import ProcessedFile

logger = logging.getLogger("intake.manifest")

Manifest = dict[str, Any]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _fallback_category(entry: dict[str, Any]) -> str:
    if entry.get("category"):
        return entry["category"]
    file_type = str(entry.get("type") or "").lower()
    if file_type == FileType.EXCEL.value:
        return FileCategory.TRACKING.value
    if file_type in (FileType.PDF.value, FileType.DOCX.value, FileType.TXT.value):
        return FileCategory.KNOWLEDGE.value
    return FileCategory.OTHER.value


def main_file_entry(file: ProcessedFile) -> dict[str, Any]:
    return {
        "filename": file.original_name,
        "type": file.file_type.value,
        "rows": len(file.data) if isinstance(file.data, list) else 0,
        "columns": file.columns,
    }


def merge_manifest(
    existing: Manifest | None,
    files: list[ProcessedFile],
    categories: dict[FileCategory, list[ProcessedFile]],
    main_file: ProcessedFile | None,
    quality_report: QualityReport | None,
    *,
    now: str | None = None,
) -> Manifest:
    timestamp = now or _now_iso()
    existing = existing or {}

    category_by_name = {
        f.original_name: category.value for category, members in categories.items() for f in members
    }
    new_entries = [
        {
            "name": f.original_name,
            "type": f.file_type.value,
            "metadata": f.to_dict()["metadata"],
            "category": category_by_name.get(f.original_name, FileCategory.OTHER.value),
            "uploaded_at": timestamp,
            "triage": f.triage.to_dict(),
        }
        for f in files
    ]

    # A re-uploaded file replaces its previous entry.
    new_names = {e["name"] for e in new_entries}
    kept = [e for e in existing.get("files") or [] if e.get("name") not in new_names]
    combined = [{**e, "category": _fallback_category(e)} for e in kept + new_entries]

    file_types = {c.value: 0 for c in FileCategory}
    for entry in combined:
        file_types[entry["category"]] = file_types.get(entry["category"], 0) + 1

    main = existing.get("main_file")
    if main_file is not None:
        main = main_file_entry(main_file)
    elif main and not any(e["name"] == main.get("filename") for e in combined):
        tracking = next((e for e in combined if e["category"] == FileCategory.TRACKING.value), None)
        if tracking is not None:
            meta = tracking.get("metadata") or {}
            main = {
                "filename": tracking["name"],
                "type": tracking.get("type"),
                "rows": meta.get("row_count", 0),
                "columns": meta.get("columns") or [],
            }
        else:
            main = None

    return {
        "upload_time": timestamp,
        "total_files": len(combined),
        "file_types": file_types,
        "files": combined,
        "main_file": main,
        "quality_report": quality_report.to_dict() if quality_report is not None else existing.get("quality_report"),
    }


class ManifestStore:
    def __init__(self, storage: Storage, locks: KeyedLock | None = None):
        self._storage = storage
        self._locks = locks or KeyedLock()

    def key(self, tenant_id: str | None, persona_id: str | None = None) -> str:
        return manifest_key(sanitize_tenant_id(tenant_id), sanitize_tenant_id(persona_id) if persona_id else None)

    def _read(self, key: str) -> Manifest | None:
        try:
            body = self._storage.read(key)
        except AppError as e:
            if e.code == ErrorCode.NOT_FOUND:
                return None
            raise
        if not body:
            return None
        try:
            parsed = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            logger.warning("manifest.unreadable", extra={"key": key})
            return None
        return parsed if isinstance(parsed, dict) else None

    def load(self, tenant_id: str | None, persona_id: str | None = None) -> Manifest | None:
        manifest = self._read(self.key(tenant_id, persona_id))
        if manifest is None and persona_id:
            return self.load(tenant_id, None)
        return manifest

    def save(self, tenant_id: str | None, manifest: Manifest, persona_id: str | None = None) -> str:
        key = self.key(tenant_id, persona_id)
        payload = {
            **manifest,
            "tenant_id": sanitize_tenant_id(tenant_id),
            "persona": sanitize_tenant_id(persona_id) if persona_id else manifest.get("persona"),
        }
        self._storage.save(key, payload, "application/json")
        return key

    def delete(self, tenant_id: str | None, persona_id: str | None = None) -> bool:
        return self._storage.remove(self.key(tenant_id, persona_id))

    def update(
        self,
        tenant_id: str | None,
        persona_id: str | None,
        fn: Callable[[Manifest | None], Manifest],
    ) -> Manifest:
        """Locked read-modify-write of one manifest; returns what was saved."""
        key = self.key(tenant_id, persona_id)
        with self._locks.hold(key):
            current = self._read(key)
            updated = fn(current)
            self.save(tenant_id, updated, persona_id)

        logger.info("manifest.updated", extra={"key": key, "total_files": updated.get("total_files")})
        return {
            **updated,
            "tenant_id": sanitize_tenant_id(tenant_id),
            "persona": sanitize_tenant_id(persona_id) if persona_id else updated.get("persona"),
        }
