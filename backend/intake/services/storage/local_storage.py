"""
local_storage.py
- Purpose: Filesystem storage backend (development and tests).
- Owns: key → path resolution under a root directory + optional prefix.
"""

import logging
from pathlib import Path

from intake.core import AppError, ErrorCode, ErrorReason
from intake.services.storage.base import StoredObject, encode_payload
from intake.services.storage.paths import join_key

logger = logging.getLogger("intake.storage.local")


class LocalStorage:
    backend = "local"

    def __init__(self, base_dir: str | Path, prefix: str = "", *, pretty: bool = True):
        self.base_dir = Path(base_dir).resolve()
        self.prefix = (prefix or "").strip("/")
        self._pretty = pretty
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def resolve_path(self, key: str) -> Path:
        target = (self.base_dir / join_key(self.prefix, (key or "").lstrip("/"))).resolve()
        if not target.is_relative_to(self.base_dir):
            raise AppError(
                code=ErrorCode.VALIDATION_ERROR,
                reason=ErrorReason.INVALID_INPUT,
                message="Storage key escapes the storage root",
                details={"key": key},
            )
        return target

    def save(self, key: str, data, content_type: str | None = None) -> StoredObject:
        body, _ = encode_payload(data, pretty=self._pretty)
        target = self.resolve_path(key)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(body)
        except OSError as e:
            raise AppError(
                code=ErrorCode.STORAGE_ERROR,
                reason=ErrorReason.UPLOAD_FAILED,
                message=f"Failed to write {key}: {e}",
                status_code=500,
            ) from e
        return StoredObject(key=key, backend=self.backend, location=str(target))

    def read(self, key: str) -> bytes:
        target = self.resolve_path(key)
        try:
            return target.read_bytes()
        except FileNotFoundError as e:
            raise AppError(
                code=ErrorCode.NOT_FOUND,
                reason=ErrorReason.RESOURCE_NOT_FOUND,
                message=f"Object not found: {key}",
                status_code=404,
                details={"key": key},
            ) from e

    def exists(self, key: str) -> bool:
        return self.resolve_path(key).is_file()

    def remove(self, key: str) -> bool:
        target = self.resolve_path(key)
        try:
            target.unlink()
        except FileNotFoundError:
            return False
        return True
