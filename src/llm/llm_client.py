import json
import logging
import os
from typing import List, Optional

from pydantic import ValidationError

from llm.providers.base import LLMProvider
from llm.schemas import QuadrantClassificationResult

logger = logging.getLogger(__name__)

EMPTY_RESULT = '{"tasks": []}'

CLASSIFY_SYSTEM_PROMPT = """You are a productivity assistant applying the Eisenhower matrix.
Assign every task exactly one quadrant:
- Q1_DO: urgent and important
- Q2_SCHEDULE: important but not urgent
- Q3_DELEGATE: urgent but not important
- Q4_DELETE: neither urgent nor important
Answer with JSON only: {"tasks": [{"text": "<task text as given>", "quadrant": "<Q1_DO|Q2_SCHEDULE|Q3_DELEGATE|Q4_DELETE>"}]}"""


def build_provider(name: Optional[str] = None) -> LLMProvider:
    """Instantiate the provider named by LLM_PROVIDER (openai, ollama, mock)."""
    name = (name or os.getenv("LLM_PROVIDER", "mock")).strip().lower()
    if name == "openai":
        from llm.providers.openai_provider import OpenAIProvider
        return OpenAIProvider()
    if name == "ollama":
        from llm.providers.ollama_provider import OllamaProvider
        return OllamaProvider()
    from llm.providers.mock_provider import MockProvider
    return MockProvider()


def extract_json_object(raw: str) -> Optional[str]:
    """Return the outermost {...} block of a model answer, if it parses."""
    start = raw.find("{")
    end = raw.rfind("}")
    if start == -1 or end <= start:
        return None
    candidate = raw[start:end + 1]
    try:
        json.loads(candidate)
    except json.JSONDecodeError:
        return None
    return candidate


class LLMClient:
    """Thin layer over an LLMProvider that turns model text into validated JSON."""

    def __init__(self, provider: Optional[LLMProvider] = None):
        self.provider = provider or build_provider()

    def complete(self, prompt: str, system: str = "Respond with JSON only.") -> str:
        raw = self.provider.generate(system=system, user=prompt)
        found = extract_json_object(raw or "")
        if found is None:
            logger.warning(f"LLM returned no JSON object: {str(raw)[:80]!r}")
            return EMPTY_RESULT
        return found

    def classify_quadrants(self, texts: List[str]) -> QuadrantClassificationResult:
        """Ask the model for a quadrant per task text.

        Raises ValueError when the answer does not match the expected schema.
        """
        lines = "\n".join(f"- {t}" for t in texts)
        prompt = f"Classify these tasks:\n{lines}"
        payload = self.complete(prompt, system=CLASSIFY_SYSTEM_PROMPT)
        try:
            return QuadrantClassificationResult.model_validate_json(payload)
        except ValidationError as e:
            raise ValueError(f"Invalid classification payload: {e}") from e
