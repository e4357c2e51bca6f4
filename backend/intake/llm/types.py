# intake/llm/types.py
from dataclasses import dataclass
from typing import Any

JsonDict = dict[str, Any]


@dataclass(frozen=True)
class Attachment:
    data: bytes
    mime_type: str  # "application/pdf" for Path C
    name: str | None = None


@dataclass(frozen=True)
class LLMRequest:
    trace_id: str
    purpose: str            # "vision_extract"
    prompt_name: str
    prompt_version: str
    variables: JsonDict
    provider: str
    model: str
    temperature: float
    max_output_tokens: int
    timeout_seconds: int
    response_mime_type: str | None = None
    attachments: tuple[Attachment, ...] = ()


@dataclass(frozen=True)
class LLMResponse:
    trace_id: str
    provider: str
    model: str
    output_text: str
    latency_ms: int
    retries: int
    raw: JsonDict | None = None
    input_tokens: int | None = None
    output_tokens: int | None = None
