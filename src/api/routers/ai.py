import asyncio
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from api.dependencies import get_classifier
from api.metrics import CLASSIFICATIONS_TOTAL
from brainflow.errors import ClassificationError
from classification.task_classifier import QuadrantClassifier

router = APIRouter()
logger = logging.getLogger(__name__)


class ClassifyIn(BaseModel):
    tasks: List[str] = Field(..., min_length=1, max_length=100)


@router.post("/classify")
async def classify(
    payload: ClassifyIn,
    classifier: QuadrantClassifier = Depends(get_classifier),
) -> dict:
    """Suggest an Eisenhower quadrant for each task text."""
    texts = [t.strip() for t in payload.tasks if t.strip()]
    if not texts:
        raise HTTPException(
            status_code=400,
            detail={"error": "At least one task is required", "kind": "validation"},
        )
    try:
        classified = await asyncio.to_thread(classifier.classify_many, texts)
    except ClassificationError as e:
        logger.warning(f"Classification failed: {e}")
        CLASSIFICATIONS_TOTAL.labels(outcome="failed").inc(len(texts))
        raise HTTPException(
            status_code=502,
            detail={"error": "The AI provider could not classify the tasks", "kind": "upstream"},
        )

    CLASSIFICATIONS_TOTAL.labels(outcome="ok").inc(len(classified))
    return {"data": {"tasks": [c.model_dump() for c in classified]}}
