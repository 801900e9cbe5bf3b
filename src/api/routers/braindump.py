import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import Field

from api.dependencies import get_store, get_workspace_id
from api.responses import internal_error, not_found
from brainflow.models import TASK_TEXT_MAX_LENGTH, ApiModel, Quadrant, default_dump_title
from storage.task_store import TaskStore

router = APIRouter()
logger = logging.getLogger(__name__)


class CreateBrainDumpIn(ApiModel):
    title: Optional[str] = Field(None, max_length=200)
    raw_text: str = Field(..., max_length=20000)


class UpdateBrainDumpIn(ApiModel):
    title: str = Field(..., min_length=1, max_length=200)


class AddTaskIn(ApiModel):
    text: str = Field("", max_length=2000)
    quadrant: Optional[Quadrant] = None


def _split_lines(raw_text: str) -> list:
    return [line.strip() for line in raw_text.splitlines() if line.strip()]


@router.get("")
async def list_brain_dumps(
    limit: int = Query(20, ge=1, le=100),
    store: TaskStore = Depends(get_store),
    workspace_id: str = Depends(get_workspace_id),
) -> dict:
    """Recent brain dumps with their task counts."""
    try:
        dumps = await store.list_brain_dumps(workspace_id, limit=limit)
    except Exception as e:
        raise internal_error("Brain Dump GET", e)
    return {"data": {"dumps": [d.to_api() for d in dumps]}}


@router.post("", status_code=201)
async def create_brain_dump(
    payload: CreateBrainDumpIn,
    store: TaskStore = Depends(get_store),
    workspace_id: str = Depends(get_workspace_id),
) -> dict:
    """Create a brain dump; every non-empty line of the raw text becomes a task."""
    lines = _split_lines(payload.raw_text)
    if not lines:
        raise HTTPException(
            status_code=400,
            detail={"error": "The brain dump has no tasks", "kind": "validation"},
        )
    too_long = [i + 1 for i, line in enumerate(lines) if len(line) > TASK_TEXT_MAX_LENGTH]
    if too_long:
        raise HTTPException(
            status_code=400,
            detail={
                "error": f"Task {too_long[0]} is longer than {TASK_TEXT_MAX_LENGTH} characters",
                "kind": "validation",
            },
        )
    title = (payload.title or "").strip() or default_dump_title()

    try:
        dump = await store.create_brain_dump_with_tasks(
            workspace_id, title, lines, raw_text=payload.raw_text
        )
    except Exception as e:
        raise internal_error("Brain Dump POST", e)

    logger.info(f"Created brain dump {dump.id} with {len(dump.tasks)} tasks")
    return dump.to_api()


@router.get("/{brain_dump_id}")
async def get_brain_dump(
    brain_dump_id: str,
    store: TaskStore = Depends(get_store),
    workspace_id: str = Depends(get_workspace_id),
) -> dict:
    try:
        dump = await store.get_brain_dump(workspace_id, brain_dump_id)
    except Exception as e:
        raise internal_error("Brain Dump Detail GET", e)
    if dump is None:
        raise not_found("Brain dump")
    return {"data": dump.to_api()}


@router.patch("/{brain_dump_id}")
async def update_brain_dump(
    brain_dump_id: str,
    payload: UpdateBrainDumpIn,
    store: TaskStore = Depends(get_store),
    workspace_id: str = Depends(get_workspace_id),
) -> dict:
    try:
        dump = await store.update_brain_dump(workspace_id, brain_dump_id, payload.title.strip())
    except Exception as e:
        raise internal_error("Brain Dump PATCH", e)
    if dump is None:
        raise not_found("Brain dump")
    return {"data": dump.to_api()}


@router.delete("/{brain_dump_id}")
async def delete_brain_dump(
    brain_dump_id: str,
    store: TaskStore = Depends(get_store),
    workspace_id: str = Depends(get_workspace_id),
) -> dict:
    """Delete the dump. Its tasks are kept and return to the backlog."""
    try:
        deleted = await store.delete_brain_dump(workspace_id, brain_dump_id)
    except Exception as e:
        raise internal_error("Brain Dump DELETE", e)
    if not deleted:
        raise not_found("Brain dump")
    return {"data": {"deleted": True}}


@router.post("/{brain_dump_id}/tasks", status_code=201)
async def add_task(
    brain_dump_id: str,
    payload: AddTaskIn,
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
        dump = await store.get_brain_dump(workspace_id, brain_dump_id)
        if dump is None:
            raise not_found("Brain dump")
        task = await store.add_task_to_dump(
            workspace_id, brain_dump_id, text, quadrant=payload.quadrant
        )
    except HTTPException:
        raise
    except Exception as e:
        raise internal_error("Brain Dump Add Task", e)
    return task.to_api()
