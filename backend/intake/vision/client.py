"""intake/vision/client.py

Vision capability used on Path C: hand the raw PDF to a vision-capable model
and get back the document text plus a structured payload.

`VisionClient` is the boundary the triage router depends on; the Gemini
implementation sits behind it so tests (and other providers) can swap in.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Protocol

from intake.core.config import Settings, settings as default_settings
from intake.llm.client import LLMProvider, llm_generate
from intake.llm.errors import LLMNonRetryableError
from intake.llm.types import Attachment

logger = logging.getLogger("intake.vision")

_FENCE_RE = re.compile(r"^```\w*\s*|\s*```$")


@dataclass(frozen=True)
class VisionResult:
    raw_text: str
    structured_payload: dict[str, Any] | None
    model_id: str
    latency_ms: int
    response_text: str = ""


class VisionClient(Protocol):
    def escalate(
        self,
        file_bytes: bytes,
        original_name: str,
        preview_text: str,
        *,
        reason: str | None = None,
        quality_reason: str | None = None,
    ) -> VisionResult: ...


def strip_code_fences(text: str) -> str:
    stripped = (text or "").strip()
    if stripped.startswith("```") and stripped.endswith("```"):
        return _FENCE_RE.sub("", stripped).strip()
    return stripped


def parse_payload(text: str) -> dict[str, Any] | None:
    body = strip_code_fences(text)
    if not body:
        return None
    try:
        parsed = json.loads(body)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def payload_text(payload: dict[str, Any] | None) -> str:
    if not payload:
        return ""
    for key in ("full_text", "fullText", "raw_text", "summary"):
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


class GeminiVisionClient:
    def __init__(self, provider: LLMProvider | None = None, *, model: str | None = None):
        self._provider = provider
        self._model = model

    def escalate(
        self,
        file_bytes: bytes,
        original_name: str,
        preview_text: str,
        *,
        reason: str | None = None,
        quality_reason: str | None = None,
    ) -> VisionResult:
        resp = llm_generate(
            purpose="vision_extract",
            prompt_name="vision_extract",
            prompt_version="v1",
            variables={
                "filename": original_name or "document.pdf",
                "reason": reason or "manual_trigger",
                "quality_reason": quality_reason or "n/a",
                "preview": (preview_text or "")[:500],
            },
            attachments=[Attachment(data=file_bytes, mime_type="application/pdf", name=original_name)],
            response_mime_type="application/json",
            provider=self._provider,
            model=self._model,
        )

        if not resp.output_text.strip():
            raise LLMNonRetryableError("Vision response did not include text content")

        payload = parse_payload(resp.output_text)
        if payload is None:
            logger.warning("vision.unparseable_response", extra={"model": resp.model})

        return VisionResult(
            raw_text=payload_text(payload),
            structured_payload=payload,
            model_id=resp.model,
            latency_ms=resp.latency_ms,
            response_text=resp.output_text,
        )


def build_vision_client(cfg: Settings | None = None) -> VisionClient | None:
    """Returns None when vision calls are switched off or not configured."""
    cfg = cfg or default_settings
    if not cfg.VISION_ENABLED:
        return None
    if not cfg.GEMINI_API_KEY:
        logger.warning("vision.disabled_missing_key")
        return None
    return GeminiVisionClient(model=cfg.GEMINI_VISION_MODEL)
