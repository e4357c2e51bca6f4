# intake/core/config.py
import os
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).parent.parent.parent

class Settings(BaseSettings):
    app_name: str = "DocumentIntake"
    env: str = "local"
    LOG_LEVEL: str = "INFO"

    # =========================
    # Storage
    # =========================
    STORAGE_BACKEND: str = "local"   # "local" | "supabase"
    LOCAL_STORAGE_DIR: str = os.path.join(PROJECT_ROOT, "uploads", "processed")
    STORAGE_PREFIX: str = ""

    SUPABASE_URL: str | None = None
    SUPABASE_SERVICE_ROLE_KEY: str | None = None
    SUPABASE_STORAGE_BUCKET: str = "tenant-documents"

    # =========================
    # Triage / vision escalation
    # =========================
    # Allows escalation when quick extraction flattens tables AND text looks bad.
    VISION_PDF_ENABLED: bool = False
    # Allows the vision model to actually be called on Path C.
    VISION_ENABLED: bool = False
    VISION_PDF_TOOL: str = "process_pdf_with_vlm"

    LLM_PROVIDER_NAME: str = "gemini"   # only gemini is wired today
    GEMINI_API_KEY: str | None = None
    GEMINI_VISION_MODEL: str = "gemini-1.5-pro"

    # Runtime controls
    LLM_TIMEOUT_SECONDS: int = 60
    LLM_MAX_RETRIES: int = 2
    LLM_MAX_OUTPUT_TOKENS: int = 8192
    LLM_TEMPERATURE: float = 0.0

    # Artifacts
    SAVE_RAW_RESPONSES: bool = False
    PRETTY_PRINT: bool = True

    # =========================
    # Ingestion
    # =========================
    MAX_UPLOAD_WARN_BYTES: int = 20 * 1024 * 1024
    JOB_QUEUE_MAXSIZE: int = 0   # 0 = unbounded
    JOB_RETAIN_FINISHED: int = 200

    CORS_ALLOW_ORIGINS: str | None = None

    model_config = SettingsConfigDict(
        env_file=os.path.join(PROJECT_ROOT, ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

settings = Settings()
