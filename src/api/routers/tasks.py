import logging
import time
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import Field

from api.dependencies import get_store, get_workflow, get_workspace_id
from api.metrics import observe
from api.responses import http_error, internal_error, not_found
from backlog.workflow import BacklogWorkflow
from brainflow.errors import BrainflowError
from brainflow.models import ApiModel, Quadrant
from storage.task_store import TaskStore

router = APIRouter()
logger = logging.getLogger(__name__)


class ReorderIn(ApiModel):
    task_ids: List[str] = Field(default_factory=list)
    brain_dump_id: Optional[str] = None


class UpdateTaskIn(ApiModel):
    text: Optional[str] = Field(None, min_length=1, max_length=2000)
    quadrant: Optional[Quadrant] = None


@router.post("/reorder")
async def reorder_tasks(
    payload: ReorderIn,
    workflow: BacklogWorkflow = Depends(get_workflow),
    workspace_id: str = Depends(get_workspace_id),
) -> dict:
    """Give each task the position of its index in ``taskIds`` (all or nothing)."""
    start = time.time()
    try:
        updated = await workflow.reorder(
            workspace_id, payload.task_ids, brain_dump_id=payload.brain_dump_id
        )
    except BrainflowError as e:
        observe("/api/tasks/reorder", e.kind, start, time.time())
        raise http_error(e)
    except Exception as e:
        raise internal_error("Task Reorder", e, "/api/tasks/reorder", start)

    observe("/api/tasks/reorder", "ok", start, time.time())
    return {"data": {"updated": updated}}


@router.patch("/{task_id}")
async def update_task(
    task_id: str,
    payload: UpdateTaskIn,
    store: TaskStore = Depends(get_store),
    workspace_id: str = Depends(get_workspace_id),
) -> dict:
    """Edit the text or set the quadrant manually."""
    try:
        task = await store.update_task(
            workspace_id, task_id, text=payload.text, quadrant=payload.quadrant
        )
    except Exception as e:
        raise internal_error("Task PATCH", e)
    if task is None:
        raise not_found("Task")
    return {"data": task.to_api()}


@router.delete("/{task_id}")
async def delete_task(
    task_id: str,
    store: TaskStore = Depends(get_store),
    workspace_id: str = Depends(get_workspace_id),
) -> dict:
    try:
        deleted = await store.delete_task(workspace_id, task_id)
    except Exception as e:
        raise internal_error("Task DELETE", e)
    if not deleted:
        raise not_found("Task")
    return {"data": {"deleted": True}}
