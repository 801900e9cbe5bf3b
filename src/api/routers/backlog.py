import logging
import time
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import Field

from api.dependencies import (
    BACKLOG_MAX_PAGE_SIZE,
    get_store,
    get_workflow,
    get_workspace_id,
)
from api.metrics import CLASSIFICATIONS_TOTAL, TASKS_DELETED_TOTAL, TASKS_MOVED_TOTAL, observe
from api.responses import http_error, internal_error, not_found
from backlog.workflow import BacklogWorkflow
from brainflow.errors import BrainflowError
from brainflow.models import ApiModel, Quadrant, TaskSource
from storage.task_store import TaskStore

router = APIRouter()
logger = logging.getLogger(__name__)


class CreateBacklogTaskIn(ApiModel):
    text: str = Field(..., max_length=2000)
    source: TaskSource = "WEB"
    quadrant: Optional[Quadrant] = None


class TaskIdsIn(ApiModel):
    task_ids: List[str] = Field(default_factory=list)


class MoveTasksIn(TaskIdsIn):
    brain_dump_id: str = ""


class CreateDumpIn(TaskIdsIn):
    title: str = Field("", max_length=200)
    use_ai: bool = Field(False, alias="useAI")


@router.get("")
async def list_backlog(
    limit: int = Query(100, ge=1),
    offset: int = Query(0, ge=0),
    store: TaskStore = Depends(get_store),
    workspace_id: str = Depends(get_workspace_id),
) -> dict:
    """List tasks that do not belong to any brain dump, newest first."""
    try:
        tasks = await store.list_backlog(
            workspace_id, limit=min(limit, BACKLOG_MAX_PAGE_SIZE), offset=offset
        )
    except Exception as e:
        raise internal_error("Backlog GET", e)
    return {"data": {"tasks": [t.to_api() for t in tasks], "count": len(tasks)}}


@router.post("", status_code=201)
async def create_backlog_task(
    payload: CreateBacklogTaskIn,
    store: TaskStore = Depends(get_store),
    workspace_id: str = Depends(get_workspace_id),
) -> dict:
    text = payload.text.strip()
    if not text:
        raise HTTPException(
            status_code=400,
            detail={"error": "Task text is required", "kind": "validation"},
        )
    try:
        task = await store.create_task(
            workspace_id, text, source=payload.source, quadrant=payload.quadrant
        )
    except Exception as e:
        raise internal_error("Backlog POST", e)
    logger.info(f"Created backlog task {task.id} (source={task.source})")
    return task.to_api()


@router.delete("")
async def delete_backlog_task(
    id: Optional[str] = None,
    store: TaskStore = Depends(get_store),
    workspace_id: str = Depends(get_workspace_id),
) -> dict:
    if not id:
        raise HTTPException(
            status_code=400,
            detail={"error": "Missing task ID", "kind": "validation"},
        )
    try:
        deleted = await store.delete_task(workspace_id, id)
    except Exception as e:
        raise internal_error("Backlog DELETE", e)
    if not deleted:
        raise not_found("Task")
    TASKS_DELETED_TOTAL.inc()
    return {"data": {"success": True}}


@router.post("/bulk-delete")
async def bulk_delete(
    payload: TaskIdsIn,
    workflow: BacklogWorkflow = Depends(get_workflow),
    workspace_id: str = Depends(get_workspace_id),
) -> dict:
    """Delete several tasks and report the outcome of each one."""
    start = time.time()
    try:
        results = await workflow.bulk_delete(workspace_id, payload.task_ids)
    except BrainflowError as e:
        observe("/api/backlog/bulk-delete", e.kind, start, time.time())
        raise http_error(e)
    except Exception as e:
        raise internal_error("Backlog Bulk Delete", e, "/api/backlog/bulk-delete", start)

    deleted = sum(1 for r in results if r.ok)
    TASKS_DELETED_TOTAL.inc(deleted)
    observe("/api/backlog/bulk-delete", "ok", start, time.time())
    return {
        "results": [r.to_api() for r in results],
        "deletedCount": deleted,
    }


@router.post("/move")
async def move_tasks(
    payload: MoveTasksIn,
    workflow: BacklogWorkflow = Depends(get_workflow),
    workspace_id: str = Depends(get_workspace_id),
) -> dict:
    start = time.time()
    try:
        result = await workflow.move_to_dump(
            workspace_id, payload.task_ids, payload.brain_dump_id
        )
    except BrainflowError as e:
        observe("/api/backlog/move", e.kind, start, time.time())
        raise http_error(e)
    except Exception as e:
        raise internal_error("Backlog Move", e, "/api/backlog/move", start)

    TASKS_MOVED_TOTAL.inc(result.moved_count)
    observe("/api/backlog/move", "ok", start, time.time())
    return {
        "success": True,
        "movedCount": result.moved_count,
        "brainDumpId": result.brain_dump_id,
    }


@router.post("/create-dump", status_code=201)
async def create_dump(
    payload: CreateDumpIn,
    workflow: BacklogWorkflow = Depends(get_workflow),
    workspace_id: str = Depends(get_workspace_id),
) -> dict:
    start = time.time()
    try:
        result = await workflow.create_dump(
            workspace_id, payload.task_ids, payload.title, use_ai=payload.use_ai
        )
    except BrainflowError as e:
        observe("/api/backlog/create-dump", e.kind, start, time.time())
        raise http_error(e)
    except Exception as e:
        raise internal_error("Backlog Create Dump", e, "/api/backlog/create-dump", start)

    TASKS_MOVED_TOTAL.inc(result.task_count)
    if payload.use_ai:
        CLASSIFICATIONS_TOTAL.labels(outcome="ok").inc(result.classified_count)
        CLASSIFICATIONS_TOTAL.labels(outcome="failed").inc(len(result.unclassified_ids))
    observe("/api/backlog/create-dump", "ok", start, time.time())
    return {
        "brainDump": result.brain_dump.to_api(),
        "taskCount": result.task_count,
        "classifiedCount": result.classified_count,
        "unclassifiedTaskIds": result.unclassified_ids,
    }
