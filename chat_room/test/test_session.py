"""会话协议测试"""

import asyncio

import pytest

from chat_room.hub import Session
from chat_room.protocol import SessionState
from chat_room.test.fakes import FakeConnection, joined, left, running_hub, wait_until


@pytest.mark.asyncio
async def test_login_relay_and_disconnect():
    async with running_hub() as hub:
        connection = FakeConnection("alice", inbound=["alice", "hello"])
        session = Session(hub, connection)
        assert session.state == SessionState.CONNECTING

        task = asyncio.create_task(session.run())
        await wait_until(lambda: "[alice] hello" in connection.texts())

        assert session.state == SessionState.ACTIVE
        assert session.name == "alice"
        assert connection.texts() == [
            "0",
            '// members: ["alice"]',
            joined("alice"),
            "[alice] hello",
        ]

        connection.disconnect()
        await task
        await hub.drain()

        assert session.state == SessionState.CLOSED
        assert connection.closed
        assert await hub.members() == []


@pytest.mark.asyncio
async def test_name_taken_rejects_without_membership():
    async with running_hub() as hub:
        alice = FakeConnection("alice")
        await hub.register("alice", alice)

        second = FakeConnection("second", inbound=["alice"])
        session = Session(hub, second)
        await session.run()
        await hub.drain()

        assert second.sent == [b"1"]
        assert second.closed
        assert session.user is None
        assert session.state == SessionState.CLOSED
        assert await hub.members() == ["alice"]
        assert left("alice") not in alice.texts()


@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["", "   ", "//admin", "a" * 33, "[alice]", "bad\x07name"])
async def test_invalid_name_rejected(name):
    async with running_hub() as hub:
        connection = FakeConnection(inbound=[name])
        await Session(hub, connection).run()

        assert connection.sent == [b"2"]
        assert connection.closed
        assert await hub.members() == []


@pytest.mark.asyncio
async def test_name_is_stripped_before_registration():
    async with running_hub() as hub:
        connection = FakeConnection(inbound=["  alice \n"])
        task = asyncio.create_task(Session(hub, connection).run())
        await wait_until(lambda: joined("alice") in connection.texts())

        assert await hub.members() == ["alice"]

        connection.disconnect()
        await task


@pytest.mark.asyncio
async def test_control_and_empty_payloads_are_not_broadcast():
    async with running_hub() as hub:
        bob = FakeConnection("bob")
        await hub.register("bob", bob)

        connection = FakeConnection(inbound=["alice", "//typing", "", "hi"])
        task = asyncio.create_task(Session(hub, connection).run())
        await wait_until(lambda: "[alice] hi" in bob.texts())

        chat = [text for text in bob.texts() if text.startswith("[")]
        assert chat == ["[alice] hi"]

        connection.disconnect()
        await task


@pytest.mark.asyncio
async def test_read_failure_deregisters_exactly_once():
    async with running_hub() as hub:
        bob = FakeConnection("bob")
        await hub.register("bob", bob)

        connection = FakeConnection(inbound=["alice"])
        session = Session(hub, connection)
        task = asyncio.create_task(session.run())
        await wait_until(lambda: joined("alice") in bob.texts())

        connection.disconnect()
        await task
        await session._close()
        await hub.drain()

        assert bob.texts().count(left("alice")) == 1
        assert connection.close_calls == 1
        assert await hub.members() == ["bob"]


@pytest.mark.asyncio
async def test_login_timeout_closes_connection():
    async with running_hub() as hub:
        connection = FakeConnection()
        session = Session(hub, connection, login_timeout=0.05)

        await asyncio.wait_for(session.run(), 1.0)

        assert connection.sent == []
        assert connection.closed
        assert session.state == SessionState.CLOSED


@pytest.mark.asyncio
async def test_disconnect_during_login_needs_no_deregister():
    async with running_hub() as hub:
        bob = FakeConnection("bob")
        await hub.register("bob", bob)
        await hub.drain()
        before = list(bob.sent)

        connection = FakeConnection()
        connection.disconnect()
        await Session(hub, connection).run()
        await hub.drain()

        assert connection.closed
        assert bob.sent == before


@pytest.mark.asyncio
async def test_session_ends_when_hub_closes():
    async with running_hub() as hub:
        connection = FakeConnection(inbound=["alice"])
        session = Session(hub, connection)
        task = asyncio.create_task(session.run())
        await wait_until(lambda: session.state == SessionState.ACTIVE)

    connection.feed("anyone there?")
    await asyncio.wait_for(task, 1.0)

    assert session.state == SessionState.CLOSED
    assert connection.closed
