def test_create_brain_dump_from_raw_text(client):
    r = client.post("/api/braindump", json={"rawText": "  first \n\n second\n   \nthird"})
    assert r.status_code == 201
    dump = r.json()
    assert dump["title"].startswith("Brain Dump ")
    assert [(t["text"], t["position"]) for t in dump["tasks"]] == [
        ("first", 0),
        ("second", 1),
        ("third", 2),
    ]


def test_create_brain_dump_without_lines(client):
    r = client.post("/api/braindump", json={"rawText": "\n  \n"})
    assert r.status_code == 400


def test_list_brain_dumps_shape(client):
    client.post("/api/braindump", json={"title": "One", "rawText": "a\nb"})
    r = client.get("/api/braindump", params={"limit": 20})
    assert r.status_code == 200
    dumps = r.json()["data"]["dumps"]
    assert len(dumps) == 1
    assert set(dumps[0]) == {"id", "title", "createdAt", "_count"}
    assert dumps[0]["_count"] == {"tasks": 2}


def test_update_and_delete_brain_dump(client):
    dump = client.post("/api/braindump", json={"title": "Old", "rawText": "a"}).json()

    r = client.patch(f"/api/braindump/{dump['id']}", json={"title": "New"})
    assert r.status_code == 200
    assert r.json()["data"]["title"] == "New"

    assert client.delete(f"/api/braindump/{dump['id']}").status_code == 200
    assert client.get(f"/api/braindump/{dump['id']}").status_code == 404

    # tasks survive the dump and land back in the backlog
    backlog = client.get("/api/backlog").json()["data"]["tasks"]
    assert [t["text"] for t in backlog] == ["a"]
    assert backlog[0]["position"] is None


def test_add_task_to_dump(client):
    dump = client.post("/api/braindump", json={"title": "D", "rawText": "a"}).json()
    r = client.post(f"/api/braindump/{dump['id']}/tasks", json={"text": "b"})
    assert r.status_code == 201
    assert r.json()["position"] == 1
    assert client.post(f"/api/braindump/{dump['id']}/tasks", json={"text": " "}).status_code == 400
    assert client.post("/api/braindump/missing/tasks", json={"text": "x"}).status_code == 404


def test_create_brain_dump_rejects_overlong_line_before_writing(client):
    r = client.post("/api/braindump", json={"title": "T", "rawText": "ok\n" + "x" * 2001})
    assert r.status_code == 400
    assert r.json()["detail"]["kind"] == "validation"
    assert client.get("/api/braindump").json()["data"]["dumps"] == []
    assert client.get("/api/backlog").json()["data"]["tasks"] == []
