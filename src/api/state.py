from typing import Optional

from classification.task_classifier import QuadrantClassifier
from storage.task_store import TaskStore

# Global instances initialized at startup (tests may install their own first)
store: Optional[TaskStore] = None
classifier: Optional[QuadrantClassifier] = None
