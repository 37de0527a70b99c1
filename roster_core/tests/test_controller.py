import asyncio
import tempfile
from datetime import datetime, timezone
from pathlib import Path

import pytest

from roster_core.domain.exceptions import ApiError, NetworkError, ValidationError
from roster_core.domain.session import SessionContextReader
from roster_core.infrastructure.storage.json_session_store import JsonSessionStore
from roster_core.roster.controller import RosterController
from roster_core.tests.fakes import (
    ME,
    DictSessionStore,
    FakeBackend,
    RecordingNavigator,
    RecordingNotifier,
    SettingsStub,
    contact,
    conversation,
)

SESSION_RECORD = {"token": ME.token, "user": {"_id": ME.user_id}}


def make_controller(backend, record=SESSION_RECORD):
    navigator = RecordingNavigator()
    notifier = RecordingNotifier()
    controller = RosterController(
        session_reader=SessionContextReader(DictSessionStore(record)),
        backend=backend,
        navigator=navigator,
        notifier=notifier,
        settings=SettingsStub(),
    )
    return controller, navigator, notifier


@pytest.mark.asyncio
async def test_missing_credential_navigates_to_login_without_calls():
    backend = FakeBackend()
    controller, navigator, _ = make_controller(backend, record=None)

    assert await controller.activate() is False
    assert navigator.paths == ["/login"]
    assert backend.calls == []
    with pytest.raises(ValidationError):
        controller.view()


@pytest.mark.asyncio
async def test_activate_loads_both_collections():
    backend = FakeBackend()
    backend.conversations = [conversation("c1", contact("u-2", "Bob"), "hey")]
    backend.contacts = [contact(ME.user_id), contact("u-2", "Bob")]
    controller, _, _ = make_controller(backend)

    assert await controller.activate() is True

    v = controller.view(datetime.now(timezone.utc))
    assert not v.loading
    assert v.error is None
    assert [r.name for r in v.conversations] == ["Bob"]
    assert [r.contact_id for r in v.contacts] == ["u-2"]


@pytest.mark.asyncio
async def test_retry_replaces_error_with_fresh_collection():
    backend = FakeBackend()
    backend.conversations_error = NetworkError(code="NETWORK_ERROR", message="down")
    controller, _, _ = make_controller(backend)
    await controller.activate()
    assert controller.view().error == "Failed to connect to server"

    backend.conversations_error = None
    backend.conversations = [conversation("c1", contact("u-2"))]
    outcome = await controller.retry()

    assert outcome.ok
    assert backend.calls.count("list_conversations") == 2
    v = controller.view()
    assert v.error is None
    assert [r.conversation_id for r in v.conversations] == ["c1"]


@pytest.mark.asyncio
async def test_contact_failure_does_not_block_conversations():
    backend = FakeBackend()
    backend.conversations = [conversation("c1", contact("u-2"))]
    backend.contacts_error = ApiError(code="API_ERROR", message="nope", http_status=500)
    controller, _, _ = make_controller(backend)

    await controller.activate()

    v = controller.view()
    assert v.error is None
    assert len(v.conversations) == 1
    assert v.contacts_placeholder == "No users available"


@pytest.mark.asyncio
async def test_start_conversation_navigates_to_chat():
    backend = FakeBackend()
    backend.started = conversation("c7", contact("u-2"))
    controller, navigator, _ = make_controller(backend)
    await controller.activate()

    conv = await controller.start_conversation("u-2")

    assert conv.id == "c7"
    assert navigator.paths == ["/chat/c7"]


@pytest.mark.asyncio
async def test_double_start_issues_one_call():
    backend = FakeBackend()
    backend.started = conversation("c7", contact("u-2"))
    backend.start_gate = asyncio.Event()
    controller, navigator, _ = make_controller(backend)
    await controller.activate()

    first = asyncio.create_task(controller.start_conversation("u-2"))
    await asyncio.sleep(0)
    assert controller.view().starting is True
    assert await controller.start_conversation("u-2") is None

    backend.start_gate.set()
    await first
    assert [c for c in backend.calls if c.startswith("start")] == ["start_conversation:u-2"]
    assert navigator.paths == ["/chat/c7"]


@pytest.mark.asyncio
async def test_start_failure_is_transient_notice():
    backend = FakeBackend()
    backend.start_error = ApiError(code="API_ERROR", message="Failed to start chat", http_status=500)
    controller, navigator, notifier = make_controller(backend)
    await controller.activate()

    assert await controller.start_conversation("u-2") is None

    assert notifier.notices == ["Failed to start chat"]
    assert controller.view().error is None
    assert navigator.paths == []


@pytest.mark.asyncio
async def test_late_results_after_deactivate_are_dropped():
    backend = FakeBackend()
    backend.conversations = [conversation("c1", contact("u-2"))]
    backend.conversations_gate = asyncio.Event()
    controller, _, _ = make_controller(backend)

    task = asyncio.create_task(controller.activate())
    await asyncio.sleep(0)
    controller.deactivate()
    backend.conversations_gate.set()
    await task

    assert controller.state.conversations == ()
    assert controller.active is False


@pytest.mark.asyncio
async def test_start_resolving_after_deactivate_does_not_navigate():
    backend = FakeBackend()
    backend.started = conversation("c7", contact("u-2"))
    backend.start_gate = asyncio.Event()
    controller, navigator, _ = make_controller(backend)
    await controller.activate()

    task = asyncio.create_task(controller.start_conversation("u-2"))
    await asyncio.sleep(0)
    controller.deactivate()
    backend.start_gate.set()
    await task

    assert navigator.paths == []


@pytest.mark.asyncio
async def test_empty_roster_renders_placeholders():
    controller, _, _ = make_controller(FakeBackend())
    await controller.activate()

    v = controller.view()
    assert v.conversations == ()
    assert v.conversations_placeholder[0] == "No conversations yet"


def test_navigation_helpers():
    controller, navigator, _ = make_controller(FakeBackend())
    controller.open_conversation("c3")
    controller.back()
    assert navigator.paths == ["/chat/c3", "/home"]


@pytest.mark.asyncio
async def test_corrupt_session_file_navigates_to_login():
    backend = FakeBackend()
    navigator = RecordingNavigator()
    with tempfile.TemporaryDirectory() as d:
        store = JsonSessionStore(Path(d) / "session.json")
        store.path.write_text("{not json", encoding="utf-8")
        controller = RosterController(
            session_reader=SessionContextReader(store),
            backend=backend,
            navigator=navigator,
            notifier=RecordingNotifier(),
            settings=SettingsStub(),
        )

        assert await controller.activate() is False

    assert navigator.paths == ["/login"]
    assert backend.calls == []


@pytest.mark.asyncio
async def test_fetch_and_start_in_flight_together():
    backend = FakeBackend()
    backend.conversations = [conversation("c1", contact("u-2"))]
    backend.started = conversation("c7", contact("u-3"))
    controller, navigator, _ = make_controller(backend)
    await controller.activate()

    backend.conversations = [conversation("c1", contact("u-2")), conversation("c7", contact("u-3"))]
    backend.conversations_gate = asyncio.Event()
    backend.start_gate = asyncio.Event()
    retry = asyncio.create_task(controller.retry())
    start = asyncio.create_task(controller.start_conversation("u-3"))
    for _ in range(5):
        await asyncio.sleep(0)

    # 两个请求同时挂起，互不阻塞
    assert "start_conversation:u-3" in backend.calls
    assert backend.calls.count("list_conversations") == 2
    assert controller.view().starting is True

    backend.start_gate.set()
    assert (await start).id == "c7"
    assert navigator.paths == ["/chat/c7"]
    assert not retry.done()

    backend.conversations_gate.set()
    outcome = await retry
    assert outcome.applied
    assert [c.id for c in controller.state.conversations] == ["c1", "c7"]
