from brainflow.models import BrainDump, BrainDumpSummary, Task, TaskCount, default_dump_title


def test_task_defaults():
    t = Task(id="t1", text="  Buy milk  ")
    assert t.text == "Buy milk"
    assert t.source == "WEB"
    assert t.quadrant is None
    assert t.in_backlog


def test_task_serializes_camel_case():
    t = Task(id="t1", text="X", brain_dump_id="d1", position=2)
    out = t.to_api()
    assert out["brainDumpId"] == "d1"
    assert out["position"] == 2
    assert "createdAt" in out


def test_task_parses_camel_case():
    t = Task.model_validate({"id": "t1", "text": "X", "brainDumpId": "d1", "quadrant": "Q2_SCHEDULE"})
    assert t.brain_dump_id == "d1"
    assert t.quadrant == "Q2_SCHEDULE"


def test_brain_dump_task_count():
    d = BrainDump(id="d1", title="Monday", tasks=[Task(id="a", text="A"), Task(id="b", text="B")])
    assert d.task_count == 2


def test_summary_count_alias():
    s = BrainDumpSummary(id="d1", title="T", created_at="2026-01-01T00:00:00Z", count=TaskCount(tasks=3))
    assert s.to_api()["_count"] == {"tasks": 3}
    parsed = BrainDumpSummary.model_validate(s.to_api())
    assert parsed.task_count == 3


def test_default_title():
    assert default_dump_title().startswith("Brain Dump ")
