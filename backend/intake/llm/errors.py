# intake/llm/errors.py
class LLMError(Exception):
    """A model call failed; Path C turns this into a failed escalation note."""


class LLMRetryableError(LLMError):
    """Timeouts, 408/429/5xx and transport errors."""


class LLMNonRetryableError(LLMError):
    """Rejected request, missing key, unknown prompt or empty model output."""
