import asyncio

import pytest

from roster_core.domain.exceptions import ApiError, NetworkError
from roster_core.roster.fetcher import RosterFetcher
from roster_core.roster.state import Liveness, RosterState
from roster_core.tests.fakes import ME, FakeBackend, contact, conversation


def make_fetcher(backend):
    state = RosterState()
    liveness = Liveness()
    generation = liveness.begin()
    return RosterFetcher(backend, state, liveness), state, liveness, generation


@pytest.mark.asyncio
async def test_contacts_exclude_session_user():
    backend = FakeBackend()
    backend.contacts = [contact(ME.user_id, "Me"), contact("u-2"), contact("u-3")]
    fetcher, state, _, gen = make_fetcher(backend)

    outcome = await fetcher.fetch_contacts(ME, gen)

    assert outcome.ok and outcome.applied
    assert [c.id for c in state.contacts] == ["u-2", "u-3"]
    assert all(c.id != ME.user_id for c in state.contacts)


@pytest.mark.asyncio
async def test_conversation_failure_keeps_previous_collection():
    backend = FakeBackend()
    backend.conversations = [conversation("c1", contact("u-2"), "hi")]
    fetcher, state, _, gen = make_fetcher(backend)
    await fetcher.fetch_conversations(ME, gen)

    backend.conversations_error = ApiError(code="API_ERROR", message="Boom", http_status=500, server_message="Boom")
    outcome = await fetcher.fetch_conversations(ME, gen)

    assert not outcome.ok
    assert state.error == "Boom"
    assert [c.id for c in state.conversations] == ["c1"]


@pytest.mark.asyncio
async def test_conversation_failure_messages():
    backend = FakeBackend()
    fetcher, state, _, gen = make_fetcher(backend)

    backend.conversations_error = NetworkError(code="NETWORK_ERROR", message="refused")
    await fetcher.fetch_conversations(ME, gen)
    assert state.error == "Failed to connect to server"

    backend.conversations_error = ApiError(code="API_ERROR", message="Failed to fetch chats", http_status=502)
    await fetcher.fetch_conversations(ME, gen)
    assert state.error == "Failed to fetch chats"
    assert state.loading is False


@pytest.mark.asyncio
async def test_contact_failure_is_silent():
    backend = FakeBackend()
    backend.conversations = [conversation("c1", contact("u-2"))]
    backend.contacts_error = NetworkError(code="NETWORK_ERROR", message="down")
    fetcher, state, _, gen = make_fetcher(backend)

    conv_outcome, contacts_outcome = await fetcher.fetch_all(ME, gen)

    assert conv_outcome.ok
    assert not contacts_outcome.ok
    assert state.error is None
    assert state.contacts == ()
    assert [c.id for c in state.conversations] == ["c1"]


@pytest.mark.asyncio
async def test_fetches_apply_independently():
    backend = FakeBackend()
    backend.conversations = [conversation("c1", contact("u-2"))]
    backend.contacts = [contact("u-2")]
    backend.conversations_gate = asyncio.Event()
    fetcher, state, _, gen = make_fetcher(backend)

    task = asyncio.create_task(fetcher.fetch_all(ME, gen))
    for _ in range(5):
        await asyncio.sleep(0)

    # 会话列表还挂着，联系人已经写回
    assert [c.id for c in state.contacts] == ["u-2"]
    assert state.conversations == ()

    backend.conversations_gate.set()
    await task
    assert [c.id for c in state.conversations] == ["c1"]


@pytest.mark.asyncio
async def test_stale_results_are_discarded():
    backend = FakeBackend()
    backend.conversations = [conversation("c1", contact("u-2"))]
    backend.contacts = [contact("u-2")]
    fetcher, state, liveness, gen = make_fetcher(backend)
    liveness.end()

    conv_outcome, contacts_outcome = await fetcher.fetch_all(ME, gen)

    assert conv_outcome.ok and not conv_outcome.applied
    assert contacts_outcome.ok and not contacts_outcome.applied
    assert state.conversations == ()
    assert state.contacts == ()
