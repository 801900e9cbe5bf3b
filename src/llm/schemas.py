from __future__ import annotations
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

from brainflow.models import Quadrant


class ClassifiedTask(BaseModel):
    text: str = Field(..., min_length=1)
    quadrant: Quadrant
    reason: Optional[str] = None

    @field_validator("quadrant", mode="before")
    @classmethod
    def normalize_quadrant(cls, v):
        # models sometimes answer "q2_schedule" or " Q2_SCHEDULE "
        return v.strip().upper() if isinstance(v, str) else v


class QuadrantClassificationResult(BaseModel):
    tasks: List[ClassifiedTask] = Field(default_factory=list)

    def quadrant_for(self, text: str) -> Optional[Quadrant]:
        key = text.strip().lower()
        for item in self.tasks:
            if item.text.strip().lower() == key:
                return item.quadrant
        return None
