"""Pure selection helpers for the backlog listing. No I/O."""

from typing import FrozenSet, Iterable


def toggle_task(selected: FrozenSet[str], task_id: str) -> FrozenSet[str]:
    """Add ``task_id`` if absent, remove it if present."""
    return selected ^ {task_id}


def toggle_all(selected: FrozenSet[str], visible_ids: Iterable[str]) -> FrozenSet[str]:
    """Clear the selection when every visible task is selected, else select them all."""
    visible = frozenset(visible_ids)
    if visible and visible <= selected:
        return frozenset()
    return visible


def prune(selected: FrozenSet[str], visible_ids: Iterable[str]) -> FrozenSet[str]:
    """Drop ids that are no longer in the listing (after a refresh)."""
    return selected & frozenset(visible_ids)
