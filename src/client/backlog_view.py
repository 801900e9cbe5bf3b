"""
Backlog screen state and the actions that drive it.

``BacklogViewState`` is the single explicit state object of the screen;
``BacklogController`` validates user input, calls the API and always
returns the view to an interactive state, whatever the outcome.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass, field
from typing import FrozenSet, List, Optional

from backlog import selection
from brainflow.models import BrainDumpSummary, Task
from client.api_client import ApiError, BacklogApi
from client.messages import message

logger = logging.getLogger(__name__)

DELETE_FANOUT = int(os.getenv("CLIENT_DELETE_FANOUT", "6"))


@dataclass
class Notification:
    level: str  # "success" | "error"
    text: str


@dataclass
class BacklogViewState:
    tasks: List[Task] = field(default_factory=list)
    dumps: List[BrainDumpSummary] = field(default_factory=list)
    selected: FrozenSet[str] = frozenset()

    loading: bool = False
    busy: bool = False

    move_dialog_open: bool = False
    create_dialog_open: bool = False
    target_dump_id: str = ""
    new_dump_title: str = ""
    use_ai: bool = False
    new_task_text: str = ""

    notifications: List[Notification] = field(default_factory=list)
    # Per-id outcome of the last bulk delete
    last_delete_results: dict = field(default_factory=dict)
    # Set after a dump is created so the caller can navigate to it
    opened_dump_id: Optional[str] = None

    @property
    def visible_ids(self) -> List[str]:
        return [t.id for t in self.tasks]


class BacklogController:

    def __init__(self, api: BacklogApi, state: Optional[BacklogViewState] = None, locale: str = "en"):
        self.api = api
        self.state = state or BacklogViewState()
        self.locale = locale

    def _notify(self, level: str, key: str, **params) -> None:
        self.state.notifications.append(
            Notification(level=level, text=message(self.locale, key, **params))
        )

    # --- selection (no network) ------------------------------------------

    def toggle_task(self, task_id: str) -> None:
        self.state.selected = selection.toggle_task(self.state.selected, task_id)

    def toggle_all(self) -> None:
        self.state.selected = selection.toggle_all(self.state.selected, self.state.visible_ids)

    def open_move_dialog(self) -> None:
        self.state.move_dialog_open = True

    def open_create_dialog(self) -> None:
        self.state.create_dialog_open = True

    # --- network actions -------------------------------------------------

    async def refresh(self) -> None:
        self.state.loading = True
        try:
            tasks, dumps = await asyncio.gather(
                self.api.list_backlog(),
                self.api.list_brain_dumps(limit=20),
            )
            self.state.tasks = tasks
            self.state.dumps = dumps
            self.state.selected = selection.prune(self.state.selected, self.state.visible_ids)
        except ApiError as e:
            logger.error(f"Error fetching backlog: {e}")
            self._notify("error", "load_failed")
        finally:
            self.state.loading = False

    async def create_task(self) -> bool:
        text = self.state.new_task_text.strip()
        if not text:
            self._notify("error", "enter_task")
            return False

        self.state.busy = True
        try:
            await self.api.create_task(text)
            self._notify("success", "task_created")
            self.state.new_task_text = ""
        except ApiError as e:
            logger.error(f"Error creating task: {e}")
            self._notify("error", "create_task_failed")
            return False
        finally:
            self.state.busy = False

        await self.refresh()
        return True

    async def delete_selected(self) -> bool:
        ids = sorted(self.state.selected)
        if not ids:
            self._notify("error", "select_task")
            return False

        self.state.busy = True
        semaphore = asyncio.Semaphore(DELETE_FANOUT)

        async def _delete(task_id: str):
            async with semaphore:
                try:
                    await self.api.delete_task(task_id)
                    return task_id, None
                except ApiError as e:
                    return task_id, str(e)

        try:
            outcomes = await asyncio.gather(*(_delete(i) for i in ids))
        finally:
            self.state.busy = False

        self.state.last_delete_results = {task_id: err is None for task_id, err in outcomes}
        failed = [task_id for task_id, err in outcomes if err is not None]
        deleted = len(ids) - len(failed)

        if not failed:
            self._notify("success", "tasks_deleted", count=deleted)
        elif deleted:
            logger.error(f"Deleting {len(failed)} of {len(ids)} tasks failed")
            self._notify("error", "tasks_partially_deleted", count=deleted, failed=len(failed))
        else:
            logger.error("Deleting tasks failed")
            self._notify("error", "delete_failed")

        self.state.selected = frozenset(failed)
        await self.refresh()
        return not failed

    async def move_selected(self) -> bool:
        ids = sorted(self.state.selected)
        if not ids:
            self._notify("error", "select_task")
            return False
        if self.state.target_dump_id not in {d.id for d in self.state.dumps}:
            self._notify("error", "select_dump")
            return False

        self.state.busy = True
        try:
            moved = await self.api.move(ids, self.state.target_dump_id)
        except ApiError as e:
            logger.error(f"Error moving tasks: {e}")
            self._notify("error", "move_failed")
            return False
        finally:
            self.state.busy = False

        self._notify("success", "tasks_moved", count=moved)
        self.state.selected = frozenset()
        self.state.move_dialog_open = False
        self.state.target_dump_id = ""
        await self.refresh()
        return True

    async def create_dump(self) -> bool:
        ids = sorted(self.state.selected)
        title = self.state.new_dump_title.strip()
        if not ids:
            self._notify("error", "select_task")
            return False
        if not title:
            self._notify("error", "enter_title")
            return False

        self.state.busy = True
        try:
            body = await self.api.create_dump(ids, title, self.state.use_ai)
        except ApiError as e:
            logger.error(f"Error creating dump: {e}")
            self._notify("error", "create_dump_failed")
            return False
        finally:
            self.state.busy = False

        self._notify("success", "dump_created", count=body["taskCount"])
        self.state.selected = frozenset()
        self.state.create_dialog_open = False
        self.state.new_dump_title = ""
        self.state.use_ai = False
        self.state.opened_dump_id = body["brainDump"]["id"]
        return True
