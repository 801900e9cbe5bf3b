from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from brainflow.models import BrainDump, BrainDumpSummary, Quadrant, Task, TaskSource


class TaskStore(ABC):
    """
    Repository for tasks and brain dumps.

    Every call is scoped to a workspace; rows of another workspace behave as
    if they did not exist. Implementations translate "no such row" into
    ``None``/``False``/empty results and leave raising to the workflow layer.
    """

    kind: str = "abstract"

    # --- tasks -----------------------------------------------------------

    @abstractmethod
    async def list_backlog(self, workspace_id: str, limit: int = 100, offset: int = 0) -> List[Task]:
        """Tasks without a brain dump, newest first."""
        raise NotImplementedError

    @abstractmethod
    async def create_task(
        self,
        workspace_id: str,
        text: str,
        source: TaskSource = "WEB",
        quadrant: Optional[Quadrant] = None,
    ) -> Task:
        raise NotImplementedError

    @abstractmethod
    async def get_task(self, workspace_id: str, task_id: str) -> Optional[Task]:
        raise NotImplementedError

    @abstractmethod
    async def get_tasks(
        self,
        workspace_id: str,
        task_ids: Sequence[str],
        backlog_only: bool = False,
    ) -> List[Task]:
        """Existing tasks among ``task_ids``, oldest first.

        With ``backlog_only`` tasks that already belong to a brain dump are skipped.
        """
        raise NotImplementedError

    @abstractmethod
    async def update_task(
        self,
        workspace_id: str,
        task_id: str,
        text: Optional[str] = None,
        quadrant: Optional[Quadrant] = None,
    ) -> Optional[Task]:
        raise NotImplementedError

    @abstractmethod
    async def set_quadrant(self, workspace_id: str, task_id: str, quadrant: Quadrant) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def delete_task(self, workspace_id: str, task_id: str) -> bool:
        raise NotImplementedError

    # --- brain dumps -----------------------------------------------------

    @abstractmethod
    async def create_brain_dump(self, workspace_id: str, title: str, raw_text: str = "") -> BrainDump:
        raise NotImplementedError

    @abstractmethod
    async def create_brain_dump_with_tasks(
        self,
        workspace_id: str,
        title: str,
        lines: Sequence[str],
        raw_text: str = "",
        source: TaskSource = "WEB",
    ) -> BrainDump:
        """Create a dump holding one task per line (positions 0..n-1), all or nothing."""
        raise NotImplementedError

    @abstractmethod
    async def get_brain_dump(self, workspace_id: str, brain_dump_id: str) -> Optional[BrainDump]:
        """The dump with its tasks ordered by position."""
        raise NotImplementedError

    @abstractmethod
    async def list_brain_dumps(self, workspace_id: str, limit: int = 20) -> List[BrainDumpSummary]:
        raise NotImplementedError

    @abstractmethod
    async def update_brain_dump(self, workspace_id: str, brain_dump_id: str, title: str) -> Optional[BrainDump]:
        raise NotImplementedError

    @abstractmethod
    async def delete_brain_dump(self, workspace_id: str, brain_dump_id: str) -> bool:
        """Remove the dump; its tasks go back to the backlog."""
        raise NotImplementedError

    @abstractmethod
    async def max_position(self, workspace_id: str, brain_dump_id: str) -> Optional[int]:
        raise NotImplementedError

    @abstractmethod
    async def add_task_to_dump(
        self,
        workspace_id: str,
        brain_dump_id: str,
        text: str,
        source: TaskSource = "WEB",
        quadrant: Optional[Quadrant] = None,
    ) -> Task:
        """Create a task directly inside a dump, appended after the last position."""
        raise NotImplementedError

    # --- bulk ------------------------------------------------------------

    @abstractmethod
    async def assign_tasks(
        self,
        workspace_id: str,
        task_ids: Sequence[str],
        brain_dump_id: str,
        start_position: int = 0,
    ) -> List[str]:
        """
        Point the backlog tasks among ``task_ids`` at ``brain_dump_id``.

        Tasks that already belong to a dump are left where they are. Positions are handed out from ``start_position`` in creation order.
        Returns the ids of the rows actually mutated.
        """
        raise NotImplementedError

    @abstractmethod
    async def reorder(self, workspace_id: str, task_ids: Sequence[str], brain_dump_id: str) -> int:
        """
        Set ``position = index`` for each id, all or nothing.

        Returns the number of tasks updated, or 0 without writing anything
        when any id is missing or belongs to another dump.
        """
        raise NotImplementedError

    async def health(self) -> dict:
        return {"status": "healthy", "store": self.kind}
