from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from brainflow.errors import ClassificationError
from brainflow.models import QUADRANTS, Quadrant
from llm.llm_client import LLMClient
from llm.schemas import ClassifiedTask

logger = logging.getLogger(__name__)


class QuadrantClassifier(ABC):
    """Maps a task text onto one of the four Eisenhower quadrants."""

    @abstractmethod
    def classify(self, text: str) -> Quadrant:
        """Return a quadrant label or raise ClassificationError."""
        raise NotImplementedError

    def classify_many(self, texts: List[str]) -> List[ClassifiedTask]:
        return [ClassifiedTask(text=t, quadrant=self.classify(t)) for t in texts]


class LLMQuadrantClassifier(QuadrantClassifier):

    def __init__(self, llm_client: Optional[LLMClient] = None):
        self.llm = llm_client or LLMClient()

    def classify(self, text: str) -> Quadrant:
        try:
            result = self.llm.classify_quadrants([text])
        except Exception as e:
            raise ClassificationError(f"Model call failed: {e}", text=text) from e

        quadrant = result.quadrant_for(text)
        if quadrant is None and len(result.tasks) == 1:
            # single-item prompt; the model may have paraphrased the text
            quadrant = result.tasks[0].quadrant
        if quadrant not in QUADRANTS:
            raise ClassificationError("Model returned no quadrant for task", text=text)
        return quadrant

    def classify_many(self, texts: List[str]) -> List[ClassifiedTask]:
        try:
            result = self.llm.classify_quadrants(texts)
        except Exception as e:
            raise ClassificationError(f"Model call failed: {e}") from e
        logger.info(f"Classified {len(result.tasks)}/{len(texts)} tasks")
        return result.tasks


class StaticClassifier(QuadrantClassifier):
    """Deterministic classifier driven by a lookup table; unknown texts fail."""

    def __init__(self, mapping: dict, default: Optional[Quadrant] = None):
        self.mapping = {k.strip().lower(): v for k, v in mapping.items()}
        self.default = default

    def classify(self, text: str) -> Quadrant:
        quadrant = self.mapping.get(text.strip().lower(), self.default)
        if quadrant is None:
            raise ClassificationError("No quadrant known for task", text=text)
        return quadrant
