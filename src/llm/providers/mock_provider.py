from __future__ import annotations
import json
import re
from typing import Optional

from llm.providers.base import LLMProvider

# Checked in order; first hit wins
_KEYWORDS = [
    ("Q1_DO", ("urgent", "asap", "today", "deadline", "now", "hoy", "urgente")),
    ("Q3_DELEGATE", ("ask", "call", "email", "reply", "book", "delegate", "llamar")),
    ("Q4_DELETE", ("maybe", "someday", "scroll", "tv", "quizás")),
]


def keyword_quadrant(text: str) -> str:
    words_in_text = set(re.findall(r"\w+", text.lower()))
    for quadrant, words in _KEYWORDS:
        if words_in_text.intersection(words):
            return quadrant
    return "Q2_SCHEDULE"


class MockProvider(LLMProvider):
    """Offline provider: answers classification prompts with keyword rules."""

    name = "mock"

    def generate(self, *, system: str, user: str, model: Optional[str] = None) -> str:
        if "Classify these tasks" in user:
            texts = [
                line[2:].strip()
                for line in user.splitlines()
                if line.startswith("- ")
            ]
            return json.dumps({
                "tasks": [
                    {"text": t, "quadrant": keyword_quadrant(t)}
                    for t in texts
                ]
            })

        # Default fallback
        return "{}"
