"""Async HTTP client for the backlog endpoints."""

from __future__ import annotations

import logging
from typing import List, Optional

import httpx

from brainflow.models import BrainDumpSummary, Task

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Any non-2xx answer or transport failure."""

    def __init__(self, message: str, status_code: Optional[int] = None, kind: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.kind = kind


class BacklogApi:

    def __init__(self, client: httpx.AsyncClient, workspace_id: Optional[str] = None):
        self.client = client
        self.headers = {"X-Workspace-Id": workspace_id} if workspace_id else {}

    async def _request(self, method: str, url: str, **kwargs) -> dict:
        try:
            r = await self.client.request(method, url, headers=self.headers, **kwargs)
        except httpx.HTTPError as e:
            raise ApiError(f"{method} {url} failed: {e}") from e

        if r.status_code >= 400:
            kind = None
            try:
                detail = r.json().get("detail")
                if isinstance(detail, dict):
                    kind = detail.get("kind")
            except ValueError:
                pass
            raise ApiError(f"{method} {url} returned {r.status_code}", r.status_code, kind)
        return r.json()

    async def list_backlog(self, limit: int = 100, offset: int = 0) -> List[Task]:
        body = await self._request("GET", "/api/backlog", params={"limit": limit, "offset": offset})
        return [Task.model_validate(t) for t in (body.get("data") or {}).get("tasks", [])]

    async def list_brain_dumps(self, limit: int = 20) -> List[BrainDumpSummary]:
        body = await self._request("GET", "/api/braindump", params={"limit": limit})
        return [BrainDumpSummary.model_validate(d) for d in (body.get("data") or {}).get("dumps", [])]

    async def create_task(self, text: str) -> Task:
        body = await self._request("POST", "/api/backlog", json={"text": text})
        return Task.model_validate(body)

    async def delete_task(self, task_id: str) -> None:
        await self._request("DELETE", "/api/backlog", params={"id": task_id})

    async def move(self, task_ids: List[str], brain_dump_id: str) -> int:
        body = await self._request(
            "POST",
            "/api/backlog/move",
            json={"taskIds": task_ids, "brainDumpId": brain_dump_id},
        )
        return int(body["movedCount"])

    async def create_dump(self, task_ids: List[str], title: str, use_ai: bool) -> dict:
        return await self._request(
            "POST",
            "/api/backlog/create-dump",
            json={"taskIds": task_ids, "title": title, "useAI": use_ai},
        )

    async def reorder(self, task_ids: List[str], brain_dump_id: Optional[str] = None) -> int:
        payload = {"taskIds": task_ids}
        if brain_dump_id:
            payload["brainDumpId"] = brain_dump_id
        body = await self._request("POST", "/api/tasks/reorder", json=payload)
        return int(body["data"]["updated"])
