def _create(client, text, **extra):
    r = client.post("/api/backlog", json={"text": text, **extra})
    assert r.status_code == 201
    return r.json()


def _dump(client, title="D1", raw_text="seed"):
    r = client.post("/api/braindump", json={"title": title, "rawText": raw_text})
    assert r.status_code == 201
    return r.json()


def test_create_and_list_backlog(client):
    created = _create(client, "  Buy milk ", source="TELEGRAM")
    assert created["text"] == "Buy milk"
    assert created["source"] == "TELEGRAM"
    assert created["brainDumpId"] is None

    r = client.get("/api/backlog")
    assert r.status_code == 200
    body = r.json()
    assert [t["id"] for t in body["data"]["tasks"]] == [created["id"]]
    assert body["data"]["count"] == 1


def test_create_rejects_blank_text(client):
    r = client.post("/api/backlog", json={"text": "   "})
    assert r.status_code == 400
    assert r.json()["detail"]["kind"] == "validation"


def test_create_rejects_malformed_body(client):
    r = client.post("/api/backlog", json={"text": "x", "quadrant": "Q9"})
    assert r.status_code == 400
    assert r.json()["detail"]["kind"] == "validation"


def test_delete_backlog_task(client):
    task = _create(client, "Temp")
    assert client.delete("/api/backlog", params={"id": task["id"]}).status_code == 200
    assert client.get("/api/backlog").json()["data"]["tasks"] == []
    assert client.delete("/api/backlog", params={"id": task["id"]}).status_code == 404
    assert client.delete("/api/backlog").status_code == 400


def test_move_scenario(client):
    a = _create(client, "a")
    b = _create(client, "b")
    c = _create(client, "c")
    d1 = _dump(client)

    r = client.post("/api/backlog/move", json={"taskIds": [a["id"], c["id"]], "brainDumpId": d1["id"]})
    assert r.status_code == 200
    assert r.json()["movedCount"] == 2

    dump = client.get(f"/api/braindump/{d1['id']}").json()["data"]
    assert {t["id"] for t in dump["tasks"]} >= {a["id"], c["id"]}
    moved = {t["id"] for t in dump["tasks"] if t["text"] in {"a", "c"}}
    assert moved == {a["id"], c["id"]}

    backlog = client.get("/api/backlog").json()["data"]["tasks"]
    assert [t["id"] for t in backlog] == [b["id"]]


def test_move_errors(client):
    a = _create(client, "a")
    assert client.post("/api/backlog/move", json={"taskIds": [], "brainDumpId": "x"}).status_code == 400
    r = client.post("/api/backlog/move", json={"taskIds": [a["id"]], "brainDumpId": "unknown"})
    assert r.status_code == 404
    assert r.json()["detail"]["kind"] == "not_found"


def test_create_dump_endpoint(client):
    a = _create(client, "Pay rent")
    b = _create(client, "Something else")

    r = client.post(
        "/api/backlog/create-dump",
        json={"taskIds": [a["id"], b["id"]], "title": "From backlog", "useAI": True},
    )
    assert r.status_code == 201
    body = r.json()
    assert body["taskCount"] == 2
    assert body["brainDump"]["title"] == "From backlog"
    assert body["classifiedCount"] == 1
    assert body["unclassifiedTaskIds"] == [b["id"]]
    quadrants = {t["text"]: t["quadrant"] for t in body["brainDump"]["tasks"]}
    assert quadrants == {"Pay rent": "Q1_DO", "Something else": None}

    assert client.get("/api/backlog").json()["data"]["tasks"] == []


def test_create_dump_requires_title(client):
    a = _create(client, "a")
    r = client.post("/api/backlog/create-dump", json={"taskIds": [a["id"]], "title": " "})
    assert r.status_code == 400


def test_bulk_delete_endpoint(client):
    a = _create(client, "a")
    r = client.post("/api/backlog/bulk-delete", json={"taskIds": [a["id"], "missing"]})
    assert r.status_code == 200
    body = r.json()
    assert body["deletedCount"] == 1
    assert {x["id"]: x["ok"] for x in body["results"]} == {a["id"]: True, "missing": False}


def test_workspace_header_isolates_backlogs(client):
    _create(client, "mine")
    r = client.get("/api/backlog", headers={"X-Workspace-Id": "team-b"})
    assert r.json()["data"]["tasks"] == []


def test_backlog_pagination(client):
    for i in range(5):
        _create(client, f"task {i}")
    page = client.get("/api/backlog", params={"limit": 2, "offset": 1}).json()["data"]
    assert page["count"] == 2
