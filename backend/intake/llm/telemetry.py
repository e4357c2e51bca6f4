# intake/llm/telemetry.py

import logging
import time
from dataclasses import asdict, dataclass

logger = logging.getLogger("intake.llm")


@dataclass(frozen=True)
class LLMCallLog:
    trace_id: str
    provider: str
    model: str
    purpose: str
    prompt: str  # "name@version"
    latency_ms: int
    retries: int
    ok: bool
    attachment_bytes: int = 0
    input_tokens: int | None = None
    output_tokens: int | None = None
    error_type: str | None = None


def now_ms() -> int:
    return int(time.time() * 1000)


def log_llm_call(item: LLMCallLog) -> None:
    # One line per logical call (after retries), never per attempt.
    log = logger.info if item.ok else logger.warning
    log("llm.call", extra=asdict(item))
