from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Optional


class LLMProvider(ABC):
    """A chat-completion backend. Implementations are synchronous (httpx.Client)."""

    name: str = "abstract"

    @abstractmethod
    def generate(self, *, system: str, user: str, model: Optional[str] = None) -> str:
        """Return the raw model answer; JSON extraction happens in LLMClient."""
        raise NotImplementedError
