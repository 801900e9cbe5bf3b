from __future__ import annotations

import logging
import uuid
from typing import Dict, List, Optional, Sequence

from brainflow.models import (
    BrainDump,
    BrainDumpSummary,
    Quadrant,
    Task,
    TaskCount,
    TaskSource,
)
from storage.task_store import TaskStore

logger = logging.getLogger(__name__)


class InMemoryTaskStore(TaskStore):
    """
    Process-local store used when no database is configured (and in tests).

    No method suspends between reading and writing, so on one event loop
    every call is atomic the way a transaction would make it.
    """

    kind = "in-memory"

    def __init__(self):
        self._tasks: Dict[str, Task] = {}
        self._dumps: Dict[str, BrainDump] = {}

    def _task(self, workspace_id: str, task_id: str) -> Optional[Task]:
        task = self._tasks.get(task_id)
        if task is None or task.workspace_id != workspace_id:
            return None
        return task

    def _dump(self, workspace_id: str, brain_dump_id: str) -> Optional[BrainDump]:
        dump = self._dumps.get(brain_dump_id)
        if dump is None or dump.workspace_id != workspace_id:
            return None
        return dump

    def _dump_tasks(self, brain_dump_id: str) -> List[Task]:
        tasks = [t for t in self._tasks.values() if t.brain_dump_id == brain_dump_id]
        tasks.sort(key=lambda t: (t.position is None, t.position or 0, t.created_at))
        return [t.model_copy() for t in tasks]

    def _with_tasks(self, dump: BrainDump) -> BrainDump:
        return dump.model_copy(update={"tasks": self._dump_tasks(dump.id)})

    def _in_creation_order(
        self,
        workspace_id: str,
        task_ids: Sequence[str],
        backlog_only: bool = False,
    ) -> List[Task]:
        # dict order is insertion order, so ties on created_at keep creation order
        wanted = set(task_ids)
        found = [
            t for t in self._tasks.values()
            if t.id in wanted and t.workspace_id == workspace_id
            and not (backlog_only and t.brain_dump_id is not None)
        ]
        return sorted(found, key=lambda t: t.created_at)

    def _max_position(self, brain_dump_id: str) -> Optional[int]:
        positions = [
            t.position for t in self._tasks.values()
            if t.brain_dump_id == brain_dump_id and t.position is not None
        ]
        return max(positions) if positions else None

    async def list_backlog(self, workspace_id: str, limit: int = 100, offset: int = 0) -> List[Task]:
        backlog = [
            t for t in reversed(list(self._tasks.values()))
            if t.workspace_id == workspace_id and t.brain_dump_id is None
        ]
        backlog.sort(key=lambda t: t.created_at, reverse=True)
        return [t.model_copy() for t in backlog[offset:offset + limit]]

    async def create_task(
        self,
        workspace_id: str,
        text: str,
        source: TaskSource = "WEB",
        quadrant: Optional[Quadrant] = None,
    ) -> Task:
        task = Task(
            id=str(uuid.uuid4()),
            text=text,
            source=source,
            quadrant=quadrant,
            workspace_id=workspace_id,
        )
        self._tasks[task.id] = task
        return task.model_copy()

    async def get_task(self, workspace_id: str, task_id: str) -> Optional[Task]:
        task = self._task(workspace_id, task_id)
        return task.model_copy() if task else None

    async def get_tasks(
        self,
        workspace_id: str,
        task_ids: Sequence[str],
        backlog_only: bool = False,
    ) -> List[Task]:
        return [t.model_copy() for t in self._in_creation_order(workspace_id, task_ids, backlog_only)]

    async def update_task(
        self,
        workspace_id: str,
        task_id: str,
        text: Optional[str] = None,
        quadrant: Optional[Quadrant] = None,
    ) -> Optional[Task]:
        task = self._task(workspace_id, task_id)
        if task is None:
            return None
        changes = {}
        if text is not None:
            changes["text"] = text.strip()
        if quadrant is not None:
            changes["quadrant"] = quadrant
        self._tasks[task_id] = task.model_copy(update=changes)
        return self._tasks[task_id].model_copy()

    async def set_quadrant(self, workspace_id: str, task_id: str, quadrant: Quadrant) -> bool:
        return await self.update_task(workspace_id, task_id, quadrant=quadrant) is not None

    async def delete_task(self, workspace_id: str, task_id: str) -> bool:
        if self._task(workspace_id, task_id) is None:
            return False
        del self._tasks[task_id]
        return True

    async def create_brain_dump(self, workspace_id: str, title: str, raw_text: str = "") -> BrainDump:
        dump = BrainDump(
            id=str(uuid.uuid4()),
            title=title,
            raw_text=raw_text,
            workspace_id=workspace_id,
        )
        self._dumps[dump.id] = dump
        return dump.model_copy()

    async def create_brain_dump_with_tasks(
        self,
        workspace_id: str,
        title: str,
        lines: Sequence[str],
        raw_text: str = "",
        source: TaskSource = "WEB",
    ) -> BrainDump:
        # every row is validated before any is stored
        dump = BrainDump(
            id=str(uuid.uuid4()),
            title=title,
            raw_text=raw_text,
            workspace_id=workspace_id,
        )
        tasks = [
            Task(
                id=str(uuid.uuid4()),
                text=text,
                source=source,
                workspace_id=workspace_id,
                brain_dump_id=dump.id,
                position=index,
            )
            for index, text in enumerate(lines)
        ]
        self._dumps[dump.id] = dump
        for task in tasks:
            self._tasks[task.id] = task
        return self._with_tasks(dump)

    async def get_brain_dump(self, workspace_id: str, brain_dump_id: str) -> Optional[BrainDump]:
        dump = self._dump(workspace_id, brain_dump_id)
        return self._with_tasks(dump) if dump else None

    async def list_brain_dumps(self, workspace_id: str, limit: int = 20) -> List[BrainDumpSummary]:
        dumps = [d for d in reversed(list(self._dumps.values())) if d.workspace_id == workspace_id]
        dumps.sort(key=lambda d: d.created_at, reverse=True)
        return [
            BrainDumpSummary(
                id=d.id,
                title=d.title,
                created_at=d.created_at,
                count=TaskCount(tasks=len(self._dump_tasks(d.id))),
            )
            for d in dumps[:limit]
        ]

    async def update_brain_dump(self, workspace_id: str, brain_dump_id: str, title: str) -> Optional[BrainDump]:
        dump = self._dump(workspace_id, brain_dump_id)
        if dump is None:
            return None
        self._dumps[brain_dump_id] = dump.model_copy(update={"title": title})
        return self._with_tasks(self._dumps[brain_dump_id])

    async def delete_brain_dump(self, workspace_id: str, brain_dump_id: str) -> bool:
        if self._dump(workspace_id, brain_dump_id) is None:
            return False
        for task_id, task in list(self._tasks.items()):
            if task.brain_dump_id == brain_dump_id:
                self._tasks[task_id] = task.model_copy(
                    update={"brain_dump_id": None, "position": None}
                )
        del self._dumps[brain_dump_id]
        return True

    async def max_position(self, workspace_id: str, brain_dump_id: str) -> Optional[int]:
        if self._dump(workspace_id, brain_dump_id) is None:
            return None
        return self._max_position(brain_dump_id)

    async def add_task_to_dump(
        self,
        workspace_id: str,
        brain_dump_id: str,
        text: str,
        source: TaskSource = "WEB",
        quadrant: Optional[Quadrant] = None,
    ) -> Task:
        last = self._max_position(brain_dump_id)
        task = Task(
            id=str(uuid.uuid4()),
            text=text,
            source=source,
            quadrant=quadrant,
            workspace_id=workspace_id,
            brain_dump_id=brain_dump_id,
            position=0 if last is None else last + 1,
        )
        self._tasks[task.id] = task
        return task.model_copy()

    async def assign_tasks(
        self,
        workspace_id: str,
        task_ids: Sequence[str],
        brain_dump_id: str,
        start_position: int = 0,
    ) -> List[str]:
        if self._dump(workspace_id, brain_dump_id) is None:
            return []
        existing = self._in_creation_order(workspace_id, task_ids, backlog_only=True)
        moved = []
        for offset, task in enumerate(existing):
            self._tasks[task.id] = task.model_copy(
                update={
                    "brain_dump_id": brain_dump_id,
                    "position": start_position + offset,
                }
            )
            moved.append(task.id)
        return moved

    async def reorder(self, workspace_id: str, task_ids: Sequence[str], brain_dump_id: str) -> int:
        tasks = [self._task(workspace_id, i) for i in task_ids]
        if any(t is None or t.brain_dump_id != brain_dump_id for t in tasks):
            return 0
        for index, task in enumerate(tasks):
            self._tasks[task.id] = task.model_copy(update={"position": index})
        return len(tasks)
