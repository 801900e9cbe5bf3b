from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal, Optional, List

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


Quadrant = Literal["Q1_DO", "Q2_SCHEDULE", "Q3_DELEGATE", "Q4_DELETE"]
QUADRANTS: tuple = ("Q1_DO", "Q2_SCHEDULE", "Q3_DELEGATE", "Q4_DELETE")

TaskSource = Literal["MANUAL", "TELEGRAM", "WEB", "IMPORT"]

DEFAULT_WORKSPACE_ID = "default"
TASK_TEXT_MAX_LENGTH = 2000


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def default_dump_title(now: Optional[datetime] = None) -> str:
    now = now or utcnow()
    return f"Brain Dump {now.strftime('%d/%m/%Y')}"


class ApiModel(BaseModel):
    """Base for everything that crosses the HTTP boundary (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_api(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class Task(ApiModel):
    id: str
    text: str = Field(..., min_length=1, max_length=TASK_TEXT_MAX_LENGTH)
    source: TaskSource = "WEB"
    quadrant: Optional[Quadrant] = None
    created_at: datetime = Field(default_factory=utcnow)

    # Only meaningful while the task belongs to a brain dump
    position: Optional[int] = None
    brain_dump_id: Optional[str] = None

    workspace_id: str = DEFAULT_WORKSPACE_ID

    @field_validator("text")
    @classmethod
    def text_not_blank(cls, v: str) -> str:
        v2 = v.strip()
        if not v2:
            raise ValueError("text must not be blank")
        return v2

    @property
    def in_backlog(self) -> bool:
        return self.brain_dump_id is None


class BrainDump(ApiModel):
    id: str
    title: str = Field(..., min_length=1, max_length=200)
    raw_text: str = ""
    created_at: datetime = Field(default_factory=utcnow)
    workspace_id: str = DEFAULT_WORKSPACE_ID

    tasks: List[Task] = Field(default_factory=list)

    @property
    def task_count(self) -> int:
        return len(self.tasks)


class TaskCount(BaseModel):
    tasks: int = 0


class BrainDumpSummary(ApiModel):
    """Listing row: the dump without its tasks, plus a derived count."""

    id: str
    title: str
    created_at: datetime
    count: TaskCount = Field(default_factory=TaskCount, alias="_count")

    @property
    def task_count(self) -> int:
        return self.count.tasks
