import os

from fastapi import Depends, Header, HTTPException

from api import state
from backlog.workflow import BacklogWorkflow
from brainflow.models import DEFAULT_WORKSPACE_ID
from classification.task_classifier import QuadrantClassifier
from storage.task_store import TaskStore

# Configuration
BACKLOG_MAX_PAGE_SIZE = int(os.getenv("BACKLOG_MAX_PAGE_SIZE", "200"))


def get_store() -> TaskStore:
    if state.store is None:
        raise HTTPException(
            status_code=503,
            detail={"error": "Store not initialized", "kind": "internal"},
        )
    return state.store


def get_classifier() -> QuadrantClassifier:
    if state.classifier is None:
        raise HTTPException(
            status_code=503,
            detail={"error": "AI classification is not configured", "kind": "unavailable"},
        )
    return state.classifier


def get_workspace_id(x_workspace_id: str = Header(default=DEFAULT_WORKSPACE_ID)) -> str:
    """Workspace of the caller; session handling lives in front of this service."""
    return x_workspace_id.strip() or DEFAULT_WORKSPACE_ID


def get_workflow(store: TaskStore = Depends(get_store)) -> BacklogWorkflow:
    return BacklogWorkflow(store, state.classifier)
