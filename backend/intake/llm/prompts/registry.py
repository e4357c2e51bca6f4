# intake/llm/prompts/registry.py

import re
from dataclasses import dataclass

from intake.llm.errors import LLMNonRetryableError
from intake.llm.prompts import templates

_PLACEHOLDER_RE = re.compile(r"\{\{(\w+)\}\}")


@dataclass(frozen=True)
class PromptTemplate:
    name: str
    version: str
    template: str

    @property
    def ref(self) -> str:
        return f"{self.name}@{self.version}"

    @property
    def placeholders(self) -> frozenset[str]:
        return frozenset(_PLACEHOLDER_RE.findall(self.template))

    def render(self, variables: dict) -> str:
        """Placeholders without a matching variable render empty."""
        return _PLACEHOLDER_RE.sub(lambda m: str(variables.get(m.group(1), "")), self.template)


_PROMPTS = {
    (p.name, p.version): p
    for p in (PromptTemplate("vision_extract", "v1", templates.VISION_EXTRACT_V1),)
}


def get_prompt(name: str, version: str) -> PromptTemplate:
    try:
        return _PROMPTS[(name, version)]
    except KeyError:
        raise LLMNonRetryableError(f"Unknown prompt: {name}@{version}") from None
