"""intake/services/storage/factory.py

Picks the storage backend from settings. One instance per process.
"""

from functools import lru_cache

from intake.core import AppError, ErrorCode, ErrorReason
from intake.core.config import Settings, settings as default_settings
from intake.services.storage.base import Storage
from intake.services.storage.local_storage import LocalStorage


def build_storage(cfg: Settings) -> Storage:
    backend = (cfg.STORAGE_BACKEND or "local").strip().lower()
    if backend == "local":
        return LocalStorage(cfg.LOCAL_STORAGE_DIR, prefix=cfg.STORAGE_PREFIX, pretty=cfg.PRETTY_PRINT)
    if backend == "supabase":
        from intake.services.storage.supabase_storage import SupabaseStorage

        return SupabaseStorage(
            cfg.SUPABASE_STORAGE_BUCKET, prefix=cfg.STORAGE_PREFIX, pretty=cfg.PRETTY_PRINT
        )
    raise AppError(
        code=ErrorCode.CONFIG_ERROR,
        reason=ErrorReason.STORAGE_UNAVAILABLE,
        message=f"Unsupported STORAGE_BACKEND: {cfg.STORAGE_BACKEND}",
        status_code=500,
    )


@lru_cache(maxsize=1)
def get_storage() -> Storage:
    return build_storage(default_settings)
