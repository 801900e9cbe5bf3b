"""
PostgreSQL-backed task store.

Bulk writes (assign, reorder, dump deletion) run inside a single
transaction so a failure leaves no partial state behind.
"""

from __future__ import annotations

import logging
import uuid
from typing import List, Optional, Sequence

from brainflow.models import (
    BrainDump,
    BrainDumpSummary,
    Quadrant,
    Task,
    TaskCount,
    TaskSource,
)
from storage import db
from storage.task_store import TaskStore

logger = logging.getLogger(__name__)

_TASK_COLUMNS = """
    id, workspace_id, text, source::text AS source, quadrant::text AS quadrant,
    created_at, position, brain_dump_id
"""


def _uuid(value: str) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(str(value))
    except (ValueError, AttributeError, TypeError):
        return None


def _uuids(values: Sequence[str]) -> List[uuid.UUID]:
    return [u for u in (_uuid(v) for v in values) if u is not None]


def _task_from_record(record) -> Task:
    return Task(
        id=str(record["id"]),
        workspace_id=record["workspace_id"],
        text=record["text"],
        source=record["source"],
        quadrant=record["quadrant"],
        created_at=record["created_at"],
        position=record["position"],
        brain_dump_id=str(record["brain_dump_id"]) if record["brain_dump_id"] else None,
    )


def _dump_from_record(record, tasks: Optional[List[Task]] = None) -> BrainDump:
    return BrainDump(
        id=str(record["id"]),
        workspace_id=record["workspace_id"],
        title=record["title"],
        raw_text=record["raw_text"],
        created_at=record["created_at"],
        tasks=tasks or [],
    )


class PostgresTaskStore(TaskStore):

    kind = "postgres"

    async def list_backlog(self, workspace_id: str, limit: int = 100, offset: int = 0) -> List[Task]:
        records = await db.fetch(
            f"""
            SELECT {_TASK_COLUMNS} FROM tasks
            WHERE workspace_id = $1 AND brain_dump_id IS NULL
            ORDER BY created_at DESC
            LIMIT $2 OFFSET $3
            """,
            workspace_id,
            limit,
            offset,
        )
        return [_task_from_record(r) for r in records]

    async def create_task(
        self,
        workspace_id: str,
        text: str,
        source: TaskSource = "WEB",
        quadrant: Optional[Quadrant] = None,
    ) -> Task:
        record = await db.fetchrow(
            f"""
            INSERT INTO tasks (workspace_id, text, source, quadrant)
            VALUES ($1, $2, $3::task_source, $4::quadrant)
            RETURNING {_TASK_COLUMNS}
            """,
            workspace_id,
            text,
            source,
            quadrant,
        )
        return _task_from_record(record)

    async def get_task(self, workspace_id: str, task_id: str) -> Optional[Task]:
        task_uuid = _uuid(task_id)
        if task_uuid is None:
            return None
        record = await db.fetchrow(
            f"SELECT {_TASK_COLUMNS} FROM tasks WHERE id = $1 AND workspace_id = $2",
            task_uuid,
            workspace_id,
        )
        return _task_from_record(record) if record else None

    async def get_tasks(
        self,
        workspace_id: str,
        task_ids: Sequence[str],
        backlog_only: bool = False,
    ) -> List[Task]:
        backlog_filter = "AND brain_dump_id IS NULL" if backlog_only else ""
        records = await db.fetch(
            f"""
            SELECT {_TASK_COLUMNS} FROM tasks
            WHERE id = ANY($1::uuid[]) AND workspace_id = $2 {backlog_filter}
            ORDER BY created_at ASC
            """,
            _uuids(task_ids),
            workspace_id,
        )
        return [_task_from_record(r) for r in records]

    async def update_task(
        self,
        workspace_id: str,
        task_id: str,
        text: Optional[str] = None,
        quadrant: Optional[Quadrant] = None,
    ) -> Optional[Task]:
        task_uuid = _uuid(task_id)
        if task_uuid is None:
            return None
        record = await db.fetchrow(
            f"""
            UPDATE tasks
            SET text = COALESCE($3, text),
                quadrant = COALESCE($4::quadrant, quadrant)
            WHERE id = $1 AND workspace_id = $2
            RETURNING {_TASK_COLUMNS}
            """,
            task_uuid,
            workspace_id,
            text.strip() if text is not None else None,
            quadrant,
        )
        return _task_from_record(record) if record else None

    async def set_quadrant(self, workspace_id: str, task_id: str, quadrant: Quadrant) -> bool:
        status = await db.execute(
            "UPDATE tasks SET quadrant = $3::quadrant WHERE id = $1 AND workspace_id = $2",
            _uuid(task_id),
            workspace_id,
            quadrant,
        )
        return db.affected_rows(status) == 1

    async def delete_task(self, workspace_id: str, task_id: str) -> bool:
        task_uuid = _uuid(task_id)
        if task_uuid is None:
            return False
        status = await db.execute(
            "DELETE FROM tasks WHERE id = $1 AND workspace_id = $2",
            task_uuid,
            workspace_id,
        )
        return db.affected_rows(status) == 1

    async def create_brain_dump(self, workspace_id: str, title: str, raw_text: str = "") -> BrainDump:
        record = await db.fetchrow(
            """
            INSERT INTO brain_dumps (workspace_id, title, raw_text)
            VALUES ($1, $2, $3)
            RETURNING id, workspace_id, title, raw_text, created_at
            """,
            workspace_id,
            title,
            raw_text,
        )
        logger.info(f"Created brain dump {record['id']} in workspace {workspace_id}")
        return _dump_from_record(record)

    async def create_brain_dump_with_tasks(
        self,
        workspace_id: str,
        title: str,
        lines: Sequence[str],
        raw_text: str = "",
        source: TaskSource = "WEB",
    ) -> BrainDump:
        async with db.transaction() as conn:
            record = await conn.fetchrow(
                """
                INSERT INTO brain_dumps (workspace_id, title, raw_text)
                VALUES ($1, $2, $3)
                RETURNING id, workspace_id, title, raw_text, created_at
                """,
                workspace_id,
                title,
                raw_text,
            )
            task_records = await conn.fetch(
                f"""
                INSERT INTO tasks (workspace_id, text, source, brain_dump_id, position)
                SELECT $1, l.text, $3::task_source, $4, l.ord - 1
                FROM unnest($2::text[]) WITH ORDINALITY AS l(text, ord)
                ORDER BY l.ord
                RETURNING {_TASK_COLUMNS}
                """,
                workspace_id,
                list(lines),
                source,
                record["id"],
            )
        tasks = sorted((_task_from_record(r) for r in task_records), key=lambda t: t.position)
        return _dump_from_record(record, tasks)

    async def get_brain_dump(self, workspace_id: str, brain_dump_id: str) -> Optional[BrainDump]:
        dump_uuid = _uuid(brain_dump_id)
        if dump_uuid is None:
            return None
        async with db.get_connection() as conn:
            record = await conn.fetchrow(
                """
                SELECT id, workspace_id, title, raw_text, created_at
                FROM brain_dumps WHERE id = $1 AND workspace_id = $2
                """,
                dump_uuid,
                workspace_id,
            )
            if record is None:
                return None
            task_records = await conn.fetch(
                f"""
                SELECT {_TASK_COLUMNS} FROM tasks
                WHERE brain_dump_id = $1
                ORDER BY position ASC NULLS LAST, created_at ASC
                """,
                dump_uuid,
            )
        return _dump_from_record(record, [_task_from_record(r) for r in task_records])

    async def list_brain_dumps(self, workspace_id: str, limit: int = 20) -> List[BrainDumpSummary]:
        records = await db.fetch(
            """
            SELECT d.id, d.title, d.created_at, COUNT(t.id) AS task_count
            FROM brain_dumps d
            LEFT JOIN tasks t ON t.brain_dump_id = d.id
            WHERE d.workspace_id = $1
            GROUP BY d.id
            ORDER BY d.created_at DESC
            LIMIT $2
            """,
            workspace_id,
            limit,
        )
        return [
            BrainDumpSummary(
                id=str(r["id"]),
                title=r["title"],
                created_at=r["created_at"],
                count=TaskCount(tasks=r["task_count"]),
            )
            for r in records
        ]

    async def update_brain_dump(self, workspace_id: str, brain_dump_id: str, title: str) -> Optional[BrainDump]:
        status = await db.execute(
            "UPDATE brain_dumps SET title = $3 WHERE id = $1 AND workspace_id = $2",
            _uuid(brain_dump_id),
            workspace_id,
            title,
        )
        if db.affected_rows(status) != 1:
            return None
        return await self.get_brain_dump(workspace_id, brain_dump_id)

    async def delete_brain_dump(self, workspace_id: str, brain_dump_id: str) -> bool:
        dump_uuid = _uuid(brain_dump_id)
        if dump_uuid is None:
            return False
        async with db.transaction() as conn:
            await conn.execute(
                """
                UPDATE tasks SET brain_dump_id = NULL, position = NULL
                WHERE brain_dump_id = $1 AND workspace_id = $2
                """,
                dump_uuid,
                workspace_id,
            )
            status = await conn.execute(
                "DELETE FROM brain_dumps WHERE id = $1 AND workspace_id = $2",
                dump_uuid,
                workspace_id,
            )
        return db.affected_rows(status) == 1

    async def max_position(self, workspace_id: str, brain_dump_id: str) -> Optional[int]:
        return await db.fetchval(
            "SELECT MAX(position) FROM tasks WHERE brain_dump_id = $1 AND workspace_id = $2",
            _uuid(brain_dump_id),
            workspace_id,
        )

    async def add_task_to_dump(
        self,
        workspace_id: str,
        brain_dump_id: str,
        text: str,
        source: TaskSource = "WEB",
        quadrant: Optional[Quadrant] = None,
    ) -> Task:
        record = await db.fetchrow(
            f"""
            INSERT INTO tasks (workspace_id, text, source, quadrant, brain_dump_id, position)
            VALUES (
                $1, $2, $3::task_source, $4::quadrant, $5,
                (SELECT COALESCE(MAX(position) + 1, 0) FROM tasks WHERE brain_dump_id = $5)
            )
            RETURNING {_TASK_COLUMNS}
            """,
            workspace_id,
            text,
            source,
            quadrant,
            _uuid(brain_dump_id),
        )
        return _task_from_record(record)

    async def assign_tasks(
        self,
        workspace_id: str,
        task_ids: Sequence[str],
        brain_dump_id: str,
        start_position: int = 0,
    ) -> List[str]:
        async with db.transaction() as conn:
            locked = await conn.fetch(
                """
                SELECT id FROM tasks
                WHERE id = ANY($1::uuid[]) AND workspace_id = $2
                  AND brain_dump_id IS NULL
                ORDER BY created_at ASC
                FOR UPDATE
                """,
                _uuids(task_ids),
                workspace_id,
            )
            records = await conn.fetch(
                """
                UPDATE tasks t
                SET brain_dump_id = $2, position = $3 + o.ord - 1
                FROM unnest($1::uuid[]) WITH ORDINALITY AS o(id, ord)
                WHERE t.id = o.id
                RETURNING t.id
                """,
                [r["id"] for r in locked],
                _uuid(brain_dump_id),
                start_position,
            )
        moved = [str(r["id"]) for r in records]
        logger.info(f"Assigned {len(moved)}/{len(task_ids)} tasks to brain dump {brain_dump_id}")
        return moved

    async def reorder(self, workspace_id: str, task_ids: Sequence[str], brain_dump_id: str) -> int:
        ids = _uuids(task_ids)
        if len(ids) != len(task_ids):
            return 0
        async with db.transaction() as conn:
            owned = await conn.fetchval(
                """
                SELECT COUNT(*) FROM tasks
                WHERE id = ANY($1::uuid[]) AND workspace_id = $2 AND brain_dump_id = $3
                """,
                ids,
                workspace_id,
                _uuid(brain_dump_id),
            )
            if owned != len(set(ids)):
                return 0
            status = await conn.execute(
                """
                UPDATE tasks t
                SET position = o.ord - 1
                FROM unnest($1::uuid[]) WITH ORDINALITY AS o(id, ord)
                WHERE t.id = o.id
                """,
                ids,
            )
        return db.affected_rows(status)

    async def health(self) -> dict:
        health = await db.health_check()
        health["store"] = self.kind
        return health
