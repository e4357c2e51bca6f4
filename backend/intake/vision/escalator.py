"""intake/vision/escalator.py

Runs a Path C escalation for one PDF and turns whatever happened into data
the router can attach to the ProcessedFile. Never raises: every failure
becomes an escalation note with the quick extraction as data.
"""

from __future__ import annotations

import json
import logging
import secrets
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable

from intake.constants.statuses import EscalationStatus
from intake.core import AppError
from intake.core.config import settings
from intake.pdf.layout import extract_structured
from intake.pdf.types import StructuredPDF
from intake.services.storage.base import Storage
from intake.services.storage.paths import build_processed_key, build_raw_key
from intake.vision.client import VisionClient, VisionResult
from intake.vision.local_payload import build_local_payload

logger = logging.getLogger("intake.vision.escalator")

LOCAL_FALLBACK_MODEL = "local_fallback"


@dataclass(frozen=True)
class EscalationOutcome:
    status: EscalationStatus
    reason: str
    data: dict[str, Any]
    payload: dict[str, Any] | None = None
    artifacts: dict[str, Any] | None = None
    error: str | None = None
    model_id: str | None = None
    latency_ms: int | None = None

    @property
    def has_vision_data(self) -> bool:
        return self.payload is not None

    def note(self) -> dict[str, Any]:
        out: dict[str, Any] = {"status": self.status.value, "reason": self.reason}
        if self.model_id:
            out["model"] = self.model_id
        if self.latency_ms is not None:
            out["latency_ms"] = self.latency_ms
        if self.error:
            out["error"] = self.error
        return out


def build_vision_data(
    quick_data: dict[str, Any],
    payload: dict[str, Any] | None,
    raw_text: str = "",
) -> dict[str, Any]:
    """ProcessedFile.data for an escalated PDF."""
    if payload is None:
        return quick_data

    quick_text = str(quick_data.get("full_text") or "")
    full_text = (raw_text or "").strip() or quick_text or json.dumps(payload, indent=2, default=str)
    return {
        "full_text": full_text,
        "vision_payload": payload,
        "quick_extract": quick_data,
    }


class VisionEscalator:
    def __init__(
        self,
        client: VisionClient | None,
        storage: Storage | None = None,
        *,
        local_extractor: Callable[[bytes], StructuredPDF] = extract_structured,
        save_raw_responses: bool | None = None,
    ):
        self._client = client
        self._storage = storage
        self._local_extractor = local_extractor
        self._save_raw = settings.SAVE_RAW_RESPONSES if save_raw_responses is None else save_raw_responses

    def run(
        self,
        file_bytes: bytes,
        original_name: str,
        *,
        quick_data: dict[str, Any],
        preview: str,
        reason: str,
        quality_reason: str | None = None,
        tenant_id: str | None = None,
        persona_id: str | None = None,
    ) -> EscalationOutcome:
        if self._client is None:
            logger.info("vision.skipped", extra={"file_name": original_name, "reason": reason})
            return EscalationOutcome(status=EscalationStatus.SKIPPED, reason=reason, data=quick_data)

        try:
            result: VisionResult = self._client.escalate(
                file_bytes,
                original_name,
                preview,
                reason=reason,
                quality_reason=quality_reason,
            )
        except Exception as e:
            # Timeouts and provider errors degrade to a note; the batch goes on.
            logger.warning(
                "vision.failed",
                extra={"file_name": original_name, "reason": reason, "error_type": type(e).__name__},
            )
            return EscalationOutcome(
                status=EscalationStatus.FAILED,
                reason=reason,
                data=quick_data,
                error=str(e) or type(e).__name__,
            )

        status = EscalationStatus.COMPLETED
        payload = result.structured_payload
        model_id = result.model_id
        raw_text = result.raw_text

        if payload is None:
            payload = build_local_payload(quick_data, preview, self._run_local_extractor(file_bytes, original_name))
            status = EscalationStatus.LOCAL_FALLBACK
            model_id = LOCAL_FALLBACK_MODEL
            raw_text = ""

        payload = dict(payload)
        payload.setdefault("vision_metadata", {
            "model": model_id,
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "reason": reason,
            "source": "gemini_vision" if status == EscalationStatus.COMPLETED else LOCAL_FALLBACK_MODEL,
        })

        artifacts = self._save_artifacts(payload, result, tenant_id, persona_id, model_id, status)

        logger.info(
            "vision.completed",
            extra={
                "file_name": original_name,
                "status": status.value,
                "model": model_id,
                "latency_ms": result.latency_ms,
            },
        )

        return EscalationOutcome(
            status=status,
            reason=reason,
            data=build_vision_data(quick_data, payload, raw_text),
            payload=payload,
            artifacts=artifacts,
            model_id=model_id,
            latency_ms=result.latency_ms,
        )

    def _run_local_extractor(self, file_bytes: bytes, original_name: str) -> StructuredPDF | None:
        try:
            return self._local_extractor(file_bytes)
        except AppError as e:
            logger.warning(
                "vision.local_extraction_failed",
                extra={"file_name": original_name, "error_code": e.code.value},
            )
            return None

    def _save_artifacts(
        self,
        payload: dict[str, Any],
        result: VisionResult,
        tenant_id: str | None,
        persona_id: str | None,
        model_id: str,
        status: EscalationStatus,
    ) -> dict[str, Any]:
        artifacts: dict[str, Any] = {
            "parsed_storage_key": None,
            "raw_response_storage_key": None,
            "model": model_id,
            "source": status.value,
        }
        if self._storage is None:
            return artifacts

        suffix = f"{int(time.time() * 1000)}-{secrets.token_hex(4)}.json"
        try:
            parsed = self._storage.save(
                build_processed_key(tenant_id, persona_id, "vision", "parsed", suffix),
                payload,
                "application/json",
            )
            artifacts["parsed_storage_key"] = parsed.key

            if self._save_raw:
                raw_body = (
                    {"response_text": result.response_text, "model": result.model_id}
                    if status == EscalationStatus.COMPLETED
                    else {"fallback": True, "response_text": result.response_text, "payload": payload}
                )
                raw = self._storage.save(
                    build_raw_key(tenant_id, persona_id, "vision", "raw", suffix),
                    raw_body,
                    "application/json",
                )
                artifacts["raw_response_storage_key"] = raw.key
        except AppError as e:
            logger.warning("vision.artifact_save_failed", extra={"error_code": e.code.value})

        return artifacts
