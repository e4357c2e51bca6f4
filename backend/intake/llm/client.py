# intake/llm/client.py
"""
Single entry point for model calls: prompt lookup and rendering, retry with
capped exponential backoff on transient failures, and one telemetry line per
call.
"""

import time
import uuid
from typing import Protocol, Sequence

from intake.core.config import settings
from intake.llm.errors import LLMError, LLMNonRetryableError, LLMRetryableError
from intake.llm.prompts.registry import get_prompt
from intake.llm.telemetry import LLMCallLog, log_llm_call, now_ms
from intake.llm.types import Attachment, LLMRequest, LLMResponse

BACKOFF_BASE_SECONDS = 0.25
BACKOFF_CAP_SECONDS = 2.0


class LLMProvider(Protocol):
    def generate(self, req: LLMRequest, prompt: str) -> LLMResponse: ...


def backoff_seconds(attempt: int) -> float:
    return min(BACKOFF_CAP_SECONDS, BACKOFF_BASE_SECONDS * (2 ** attempt))


def _default_provider() -> LLMProvider:
    if settings.LLM_PROVIDER_NAME != "gemini":
        raise LLMNonRetryableError(f"Unsupported provider: {settings.LLM_PROVIDER_NAME}")
    from intake.llm.providers.gemini import GeminiProvider

    return GeminiProvider()


def llm_generate(
    *,
    purpose: str,
    prompt_name: str,
    prompt_version: str,
    variables: dict,
    attachments: Sequence[Attachment] = (),
    response_mime_type: str | None = "application/json",
    provider: LLMProvider | None = None,
    model: str | None = None,
    max_retries: int | None = None,
) -> LLMResponse:
    prompt = get_prompt(prompt_name, prompt_version)
    client = provider or _default_provider()
    retries_allowed = settings.LLM_MAX_RETRIES if max_retries is None else max_retries

    req = LLMRequest(
        trace_id=str(uuid.uuid4()),
        purpose=purpose,
        prompt_name=prompt_name,
        prompt_version=prompt_version,
        variables=dict(variables),
        provider=settings.LLM_PROVIDER_NAME,
        model=model or settings.GEMINI_VISION_MODEL,
        temperature=settings.LLM_TEMPERATURE,
        max_output_tokens=settings.LLM_MAX_OUTPUT_TOKENS,
        timeout_seconds=settings.LLM_TIMEOUT_SECONDS,
        response_mime_type=response_mime_type,
        attachments=tuple(attachments),
    )
    rendered = prompt.render(req.variables)

    start_ms = now_ms()
    retries = 0

    def _log(resp: LLMResponse | None, error: Exception | None = None) -> None:
        log_llm_call(
            LLMCallLog(
                trace_id=req.trace_id,
                provider=req.provider,
                model=resp.model if resp is not None else req.model,
                purpose=purpose,
                prompt=prompt.ref,
                latency_ms=now_ms() - start_ms,
                retries=retries,
                ok=error is None,
                attachment_bytes=sum(len(a.data) for a in req.attachments),
                input_tokens=resp.input_tokens if resp is not None else None,
                output_tokens=resp.output_tokens if resp is not None else None,
                error_type=type(error).__name__ if error is not None else None,
            )
        )

    last_err: LLMError = LLMRetryableError("LLM failed after retries")
    for attempt in range(retries_allowed + 1):
        try:
            resp = client.generate(req, rendered)
        except LLMRetryableError as e:
            last_err = e
            retries += 1
            if attempt < retries_allowed:
                time.sleep(backoff_seconds(attempt))
            continue
        except LLMNonRetryableError as e:
            _log(None, e)
            raise

        _log(resp)
        return LLMResponse(
            trace_id=req.trace_id,
            provider=resp.provider,
            model=resp.model,
            output_text=resp.output_text,
            latency_ms=resp.latency_ms,
            retries=retries,
            raw=resp.raw,
            input_tokens=resp.input_tokens,
            output_tokens=resp.output_tokens,
        )

    _log(None, last_err)
    raise last_err
