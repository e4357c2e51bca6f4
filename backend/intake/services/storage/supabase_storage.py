"""
supabase_storage.py
- Purpose: Storage backend over Supabase Storage (private bucket).
- Owns: bucket/path mapping and translating client failures into AppError.
- Design: Infrastructure adapter only; key conventions live in paths.py.
"""

import logging

from intake.core import AppError, ErrorCode, ErrorReason
from intake.core.config import settings
from intake.services.storage.base import StoredObject, encode_payload
from intake.services.storage.paths import join_key

logger = logging.getLogger("intake.storage.supabase")


class SupabaseStorage:
    backend = "supabase"

    def __init__(self, bucket: str | None = None, prefix: str = "", *, client=None, pretty: bool = True):
        self._bucket = bucket or settings.SUPABASE_STORAGE_BUCKET
        self.prefix = (prefix or "").strip("/")
        self._pretty = pretty

        if client is None:
            if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_ROLE_KEY:
                raise AppError(
                    code=ErrorCode.CONFIG_ERROR,
                    reason=ErrorReason.STORAGE_UNAVAILABLE,
                    message="SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set for the supabase backend",
                    status_code=500,
                )
            # Import lazily so missing dependency errors are localized.
            try:
                from supabase import create_client  # type: ignore
            except Exception as e:
                raise AppError(
                    code=ErrorCode.CONFIG_ERROR,
                    reason=ErrorReason.MISSING_DEPENDENCY,
                    message="Supabase client library is not installed or failed to import",
                    status_code=500,
                ) from e
            client = create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)

        self._client = client

    def _path(self, key: str) -> str:
        return join_key(self.prefix, key)

    def _bucket_api(self):
        return self._client.storage.from_(self._bucket)

    def save(self, key: str, data, content_type: str | None = None) -> StoredObject:
        body, default_type = encode_payload(data, pretty=self._pretty)
        path = self._path(key)
        try:
            # file_options is not headers; upsert must be a string here.
            self._bucket_api().upload(
                path=path,
                file=body,
                file_options={"content-type": content_type or default_type, "upsert": "true"},
            )
        except Exception as e:
            raise AppError(
                code=ErrorCode.STORAGE_ERROR,
                reason=ErrorReason.UPLOAD_FAILED,
                message=f"Failed to upload {key} to storage: {e}",
                status_code=500,
            ) from e
        return StoredObject(key=key, backend=self.backend, location=f"{self._bucket}/{path}")

    def read(self, key: str) -> bytes:
        if not self.exists(key):
            raise AppError(
                code=ErrorCode.NOT_FOUND,
                reason=ErrorReason.RESOURCE_NOT_FOUND,
                message=f"Object not found: {key}",
                status_code=404,
                details={"key": key},
            )
        try:
            return self._bucket_api().download(self._path(key))
        except Exception as e:
            raise AppError(
                code=ErrorCode.STORAGE_ERROR,
                reason=ErrorReason.DOWNLOAD_FAILED,
                message=f"Failed to download {key} from storage",
                status_code=500,
            ) from e

    def exists(self, key: str) -> bool:
        path = self._path(key)
        folder, _, name = path.rpartition("/")
        try:
            entries = self._bucket_api().list(folder, {"search": name})
        except Exception as e:
            raise AppError(
                code=ErrorCode.STORAGE_ERROR,
                reason=ErrorReason.STORAGE_UNAVAILABLE,
                message=f"Failed to list storage folder {folder}",
                status_code=500,
            ) from e
        return any(isinstance(entry, dict) and entry.get("name") == name for entry in entries or [])

    def remove(self, key: str) -> bool:
        try:
            removed = self._bucket_api().remove([self._path(key)])
        except Exception as e:
            raise AppError(
                code=ErrorCode.STORAGE_ERROR,
                reason=ErrorReason.DELETE_FAILED,
                message=f"Failed to delete {key} from storage",
                status_code=500,
            ) from e
        return bool(removed)
