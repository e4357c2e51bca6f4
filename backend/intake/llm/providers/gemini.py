# intake/llm/providers/gemini.py
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Optional

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from intake.core.config import settings
from intake.llm.errors import LLMError, LLMNonRetryableError, LLMRetryableError
from intake.llm.types import LLMRequest, LLMResponse

RETRYABLE_STATUS = frozenset({408, 429, 500, 502, 503, 504})


def classify_error(e: Exception) -> LLMError:
    """Maps SDK and transport failures onto the retry split llm_generate understands."""
    if isinstance(e, (httpx.TimeoutException, TimeoutError)):
        return LLMRetryableError(f"Gemini call timed out: {e}")
    if isinstance(e, genai_errors.APIError):
        if e.code in RETRYABLE_STATUS:
            return LLMRetryableError(f"Gemini returned {e.code}: {e.message or e.status}")
        return LLMNonRetryableError(f"Gemini rejected the request ({e.code}): {e.message or e.status}")
    if isinstance(e, httpx.TransportError):
        return LLMRetryableError(f"Gemini transport error: {e}")
    return LLMNonRetryableError(f"Gemini call failed: {e}")


@dataclass
class GeminiProvider:
    """
    Single-attempt Gemini call via google-genai; llm_generate owns retries.
    The escalated PDF goes inline as a Part ahead of the rendered prompt.
    """
    api_key: Optional[str] = None
    _client: Optional[genai.Client] = field(default=None, repr=False)

    def _get_client(self) -> genai.Client:
        key = self.api_key or settings.GEMINI_API_KEY
        if not key:
            raise LLMNonRetryableError("GEMINI_API_KEY is missing")
        if self._client is None:
            self._client = genai.Client(api_key=key)
        return self._client

    def _config(self, req: LLMRequest) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            temperature=req.temperature,
            max_output_tokens=req.max_output_tokens,
            response_mime_type=req.response_mime_type,
            # milliseconds
            http_options=types.HttpOptions(timeout=int(req.timeout_seconds * 1000)),
        )

    def generate(self, req: LLMRequest, prompt: str) -> LLMResponse:
        client = self._get_client()
        contents: list = [types.Part.from_bytes(data=a.data, mime_type=a.mime_type) for a in req.attachments]
        contents.append(prompt)

        started = time.monotonic()
        try:
            resp = client.models.generate_content(model=req.model, contents=contents, config=self._config(req))
        except Exception as e:
            raise classify_error(e) from e

        usage = getattr(resp, "usage_metadata", None)
        return LLMResponse(
            trace_id=req.trace_id,
            provider="gemini",
            model=getattr(resp, "model_version", None) or req.model,
            output_text=(resp.text or "").strip(),
            latency_ms=int((time.monotonic() - started) * 1000),
            retries=0,
            raw={"finish_reason": _finish_reason(resp)},
            input_tokens=getattr(usage, "prompt_token_count", None),
            output_tokens=getattr(usage, "candidates_token_count", None),
        )


def _finish_reason(resp) -> str | None:
    candidates = getattr(resp, "candidates", None) or []
    reason = getattr(candidates[0], "finish_reason", None) if candidates else None
    return str(getattr(reason, "value", reason)) if reason is not None else None
