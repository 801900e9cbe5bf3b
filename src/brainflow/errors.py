from __future__ import annotations

from typing import Optional


class BrainflowError(Exception):
    """Base class for failures that map onto an HTTP status."""

    kind = "internal"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_detail(self) -> dict:
        return {"error": self.message, "kind": self.kind}


class ValidationFailed(BrainflowError):
    kind = "validation"
    status_code = 400


class NotFound(BrainflowError):
    kind = "not_found"
    status_code = 404


class Conflict(BrainflowError):
    kind = "conflict"
    status_code = 409


class PartialFailure(BrainflowError):
    """The brain dump was created but only part of the selection ended up in it."""

    kind = "partial_failure"
    status_code = 500

    def __init__(self, message: str, brain_dump_id: str, task_count: int = 0):
        super().__init__(message)
        self.brain_dump_id = brain_dump_id
        self.task_count = task_count

    def to_detail(self) -> dict:
        detail = super().to_detail()
        detail["brainDumpId"] = self.brain_dump_id
        detail["taskCount"] = self.task_count
        return detail


class ClassificationError(Exception):
    """Raised by a quadrant classifier when it cannot produce a label."""

    def __init__(self, message: str, text: Optional[str] = None):
        super().__init__(message)
        self.text = text
