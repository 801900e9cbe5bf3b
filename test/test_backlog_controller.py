import asyncio

import httpx

from client.api_client import BacklogApi
from client.backlog_view import BacklogController


def run(coro):
    return asyncio.run(coro)


def _controller(app, locale="en"):
    transport = httpx.ASGITransport(app=app)
    http = httpx.AsyncClient(transport=transport, base_url="http://test")
    return http, BacklogController(BacklogApi(http), locale=locale)


async def _seed(store, *texts):
    return [await store.create_task("default", t) for t in texts]


def test_toggle_all_selects_visible_then_clears(app, store):
    async def scenario():
        await _seed(store, "a", "b")
        http, ctl = _controller(app)
        async with http:
            await ctl.refresh()
        ctl.toggle_all()
        assert ctl.state.selected == frozenset(ctl.state.visible_ids)
        ctl.toggle_all()
        assert ctl.state.selected == frozenset()

    run(scenario())


def test_move_without_selection_sends_nothing(app):
    async def scenario():
        sent = []

        async def handler(request):
            sent.append(request)
            return httpx.Response(500)

        http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test")
        ctl = BacklogController(BacklogApi(http))
        ctl.state.target_dump_id = "d1"
        async with http:
            assert await ctl.move_selected() is False
            assert await ctl.create_dump() is False
            assert await ctl.delete_selected() is False
        assert sent == []
        assert [n.text for n in ctl.state.notifications] == ["Select at least one task"] * 3
        assert ctl.state.busy is False

    run(scenario())


def test_move_requires_target_dump(app):
    async def scenario():
        http, ctl = _controller(app, locale="es")
        ctl.toggle_task("t1")
        async with http:
            assert await ctl.move_selected() is False
        assert ctl.state.notifications[-1].level == "error"
        assert ctl.state.notifications[-1].text == "Selecciona un brain dump"

    run(scenario())


def test_move_selected_scenario(app, store):
    async def scenario():
        a, b, c = await _seed(store, "a", "b", "c")
        dump = await store.create_brain_dump("default", "D1")
        http, ctl = _controller(app)
        async with http:
            await ctl.refresh()
            ctl.toggle_task(a.id)
            ctl.toggle_task(c.id)
            ctl.open_move_dialog()
            ctl.state.target_dump_id = dump.id
            assert await ctl.move_selected() is True

        assert [t.id for t in ctl.state.tasks] == [b.id]
        assert ctl.state.selected == frozenset()
        assert ctl.state.move_dialog_open is False
        assert ctl.state.target_dump_id == ""
        assert ctl.state.busy is False
        assert ctl.state.notifications[-1].text == "2 tasks moved to the brain dump"
        assert ctl.state.dumps[0].task_count == 2

    run(scenario())


def test_move_failure_keeps_selection(app, store):
    async def scenario():
        (a,) = await _seed(store, "a")
        dump = await store.create_brain_dump("default", "Gone soon")
        http, ctl = _controller(app)
        async with http:
            await ctl.refresh()
            ctl.toggle_task(a.id)
            ctl.state.target_dump_id = dump.id
            # another session removes the dump after the listing was loaded
            await store.delete_brain_dump("default", dump.id)
            assert await ctl.move_selected() is False
        assert ctl.state.selected == frozenset({a.id})
        assert ctl.state.busy is False
        assert ctl.state.notifications[-1].text == "Could not move the tasks"

    run(scenario())


def test_create_dump_opens_new_dump(app, store):
    async def scenario():
        a, b = await _seed(store, "Pay rent", "b")
        http, ctl = _controller(app)
        async with http:
            await ctl.refresh()
            ctl.toggle_all()
            ctl.open_create_dialog()
            ctl.state.new_dump_title = "   "
            assert await ctl.create_dump() is False
            assert ctl.state.notifications[-1].text == "Enter a title"

            ctl.state.new_dump_title = "Mine"
            ctl.state.use_ai = True
            assert await ctl.create_dump() is True

        dump_id = ctl.state.opened_dump_id
        assert dump_id is not None
        dump = await store.get_brain_dump("default", dump_id)
        assert {t.id for t in dump.tasks} == {a.id, b.id}
        assert ctl.state.create_dialog_open is False
        assert ctl.state.use_ai is False
        assert ctl.state.selected == frozenset()

    run(scenario())


def test_delete_selected_reports_each_task(app, store):
    async def scenario():
        a, b = await _seed(store, "a", "b")
        http, ctl = _controller(app)
        async with http:
            await ctl.refresh()
            ctl.toggle_all()
            # b disappears before the delete is sent
            await store.delete_task("default", b.id)
            assert await ctl.delete_selected() is False

        assert ctl.state.last_delete_results == {a.id: True, b.id: False}
        assert ctl.state.notifications[-1].level == "error"
        assert ctl.state.tasks == []
        # the refresh pruned b from the kept selection
        assert ctl.state.selected == frozenset()
        assert ctl.state.busy is False

    run(scenario())


def test_create_task_from_input(app, store):
    async def scenario():
        http, ctl = _controller(app)
        async with http:
            assert await ctl.create_task() is False
            ctl.state.new_task_text = " Call mom "
            assert await ctl.create_task() is True
        assert [t.text for t in ctl.state.tasks] == ["Call mom"]
        assert ctl.state.new_task_text == ""

    run(scenario())


def test_move_target_must_be_a_listed_dump(app, store):
    async def scenario():
        (a,) = await _seed(store, "a")
        other = await store.create_brain_dump("elsewhere", "Not listed")

        sent = []

        async def handler(request):
            sent.append(request.url.path)
            return httpx.Response(200, json={"success": True, "movedCount": 1})

        http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test")
        ctl = BacklogController(BacklogApi(http))
        ctl.state.tasks = [a]
        ctl.toggle_task(a.id)
        ctl.state.target_dump_id = other.id
        async with http:
            assert await ctl.move_selected() is False
        assert sent == []
        assert ctl.state.notifications[-1].text == "Select a brain dump"
        assert ctl.state.selected == frozenset({a.id})

    run(scenario())
