"""
Backlog reorganization workflow.

Moves backlog tasks into brain dumps, creates dumps from a selection
(optionally enriching tasks with an AI quadrant), reorders a dump and
deletes in bulk with per-item outcomes.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar

from brainflow.errors import (
    Conflict,
    NotFound,
    PartialFailure,
    ValidationFailed,
)
from brainflow.models import BrainDump, Task
from classification.task_classifier import QuadrantClassifier
from storage.task_store import TaskStore

logger = logging.getLogger(__name__)

CLASSIFY_CONCURRENCY = int(os.getenv("CLASSIFY_CONCURRENCY", "4"))
DELETE_CONCURRENCY = int(os.getenv("DELETE_CONCURRENCY", "8"))

T = TypeVar("T")


@dataclass
class ItemResult:
    id: str
    ok: bool
    error: Optional[str] = None

    def to_api(self) -> dict:
        return {"id": self.id, "ok": self.ok, "error": self.error}


@dataclass
class MoveResult:
    brain_dump_id: str
    moved_ids: List[str]

    @property
    def moved_count(self) -> int:
        return len(self.moved_ids)


@dataclass
class CreateDumpResult:
    brain_dump: BrainDump
    task_count: int
    classified_count: int = 0
    unclassified_ids: List[str] = field(default_factory=list)


async def bounded_gather(
    items: Sequence[str],
    worker: Callable[[str], Awaitable[T]],
    limit: int,
) -> List[ItemResult]:
    """Run ``worker`` for every item with at most ``limit`` in flight.

    Exceptions are captured per item; the returned list follows input order.
    """
    semaphore = asyncio.Semaphore(max(1, limit))

    async def _run(item: str) -> ItemResult:
        async with semaphore:
            try:
                outcome = await worker(item)
            except Exception as e:
                logger.warning(f"Item {item} failed: {e}")
                return ItemResult(id=item, ok=False, error=str(e))
        if outcome is False:
            return ItemResult(id=item, ok=False, error="not found")
        return ItemResult(id=item, ok=True)

    return list(await asyncio.gather(*(_run(i) for i in items)))


def _require_ids(task_ids: Sequence[str]) -> List[str]:
    ids = [i for i in task_ids if i]
    if not ids:
        raise ValidationFailed("Select at least one task")
    return ids


class BacklogWorkflow:

    def __init__(self, store: TaskStore, classifier: Optional[QuadrantClassifier] = None):
        self.store = store
        self.classifier = classifier

    async def bulk_delete(self, workspace_id: str, task_ids: Sequence[str]) -> List[ItemResult]:
        ids = list(dict.fromkeys(_require_ids(task_ids)))

        async def _delete(task_id: str) -> bool:
            return await self.store.delete_task(workspace_id, task_id)

        results = await bounded_gather(ids, _delete, DELETE_CONCURRENCY)
        deleted = sum(1 for r in results if r.ok)
        logger.info(f"Bulk delete: {deleted}/{len(ids)} tasks removed")
        return results

    async def move_to_dump(
        self,
        workspace_id: str,
        task_ids: Sequence[str],
        brain_dump_id: str,
    ) -> MoveResult:
        ids = _require_ids(task_ids)
        if not brain_dump_id:
            raise ValidationFailed("A target brain dump is required")

        dump = await self.store.get_brain_dump(workspace_id, brain_dump_id)
        if dump is None:
            raise NotFound(f"Brain dump {brain_dump_id} not found")

        last = await self.store.max_position(workspace_id, brain_dump_id)
        start = 0 if last is None else last + 1

        moved = await self.store.assign_tasks(workspace_id, ids, brain_dump_id, start)
        if not moved:
            raise NotFound("None of the selected tasks are in the backlog")

        if len(moved) < len(set(ids)):
            logger.warning(
                f"Moved {len(moved)} of {len(set(ids))} requested tasks to {brain_dump_id}"
            )
        return MoveResult(brain_dump_id=brain_dump_id, moved_ids=moved)

    async def create_dump(
        self,
        workspace_id: str,
        task_ids: Sequence[str],
        title: str,
        use_ai: bool = False,
    ) -> CreateDumpResult:
        ids = _require_ids(task_ids)
        title = (title or "").strip()
        if not title:
            raise ValidationFailed("A title is required")
        if len(title) > 200:
            raise ValidationFailed("Title must be at most 200 characters")

        tasks = await self.store.get_tasks(workspace_id, ids, backlog_only=True)
        if not tasks:
            raise NotFound("None of the selected tasks are in the backlog")

        raw_text = "\n".join(t.text for t in tasks)
        dump = await self.store.create_brain_dump(workspace_id, title, raw_text=raw_text)

        try:
            moved = await self.store.assign_tasks(workspace_id, [t.id for t in tasks], dump.id, 0)
        except Exception as e:
            logger.exception(f"Reassigning tasks into new brain dump {dump.id} failed")
            raise PartialFailure(
                f"Brain dump created but tasks could not be moved: {e}",
                brain_dump_id=dump.id,
            ) from e

        result = CreateDumpResult(brain_dump=dump, task_count=len(moved))

        if use_ai:
            moved_ids = set(moved)
            to_classify = [t for t in tasks if t.id in moved_ids and t.quadrant is None]
            result.unclassified_ids = await self._classify(workspace_id, to_classify)
            result.classified_count = len(to_classify) - len(result.unclassified_ids)

        refreshed = await self.store.get_brain_dump(workspace_id, dump.id)
        if refreshed is not None:
            result.brain_dump = refreshed
        return result

    async def _classify(self, workspace_id: str, tasks: List[Task]) -> List[str]:
        """Best-effort enrichment; returns the ids left without a quadrant."""
        if not tasks:
            return []
        if self.classifier is None:
            logger.warning("AI classification requested but no classifier is configured")
            return [t.id for t in tasks]

        by_id = {t.id: t for t in tasks}

        async def _one(task_id: str) -> bool:
            task = by_id[task_id]
            quadrant = await asyncio.to_thread(self.classifier.classify, task.text)
            return await self.store.set_quadrant(workspace_id, task_id, quadrant)

        results = await bounded_gather(list(by_id), _one, CLASSIFY_CONCURRENCY)
        failed = [r.id for r in results if not r.ok]
        if failed:
            logger.warning(f"Classification left {len(failed)}/{len(tasks)} tasks without a quadrant")
        return failed

    async def reorder(
        self,
        workspace_id: str,
        task_ids: Sequence[str],
        brain_dump_id: Optional[str] = None,
    ) -> int:
        ids = _require_ids(task_ids)
        if len(set(ids)) != len(ids):
            raise ValidationFailed("Task ids must not repeat")

        tasks = await self.store.get_tasks(workspace_id, ids)
        if len(tasks) != len(ids):
            missing = sorted(set(ids) - {t.id for t in tasks})
            raise NotFound(f"Unknown task ids: {', '.join(missing)}")

        owners = {t.brain_dump_id for t in tasks}
        if None in owners:
            raise Conflict("Backlog tasks cannot be reordered")
        if len(owners) != 1:
            raise Conflict("Tasks belong to different brain dumps")
        owner = owners.pop()
        if brain_dump_id and owner != brain_dump_id:
            raise Conflict(f"Tasks do not belong to brain dump {brain_dump_id}")

        updated = await self.store.reorder(workspace_id, ids, owner)
        if updated != len(ids):
            # membership changed between the check and the write
            raise Conflict("Tasks changed while reordering; nothing was updated")
        return updated

