"""服务器与客户端集成测试（真实 WebSocket 连接）"""

import asyncio
import json
import urllib.error
import urllib.request
from contextlib import asynccontextmanager

import pytest

from chat_room.client import ChatClient
from chat_room.exceptions import ConnectionClosedError, InvalidNameError, NameTakenError
from chat_room.hub import ChatServer
from chat_room.protocol import LineKind, PresenceEvent
from chat_room.utils import ChatConfig


@asynccontextmanager
async def running_server(**overrides):
    config = ChatConfig(host="127.0.0.1", port=0)
    config.update(**overrides)
    server = ChatServer(config)
    await server.start()
    try:
        yield server
    finally:
        await server.stop()


@asynccontextmanager
async def logged_in(server: ChatServer, name: str):
    client = ChatClient(server.url)
    await client.login(name)
    try:
        yield client
    finally:
        await client.close()


async def next_line(stream):
    return await asyncio.wait_for(stream.__anext__(), 2.0)


def http_get(url: str):
    with urllib.request.urlopen(url, timeout=2.0) as response:
        return response.status, response.headers.get("Content-Type"), response.read()


@pytest.mark.asyncio
async def test_chat_between_two_clients():
    async with running_server() as server:
        async with logged_in(server, "alice") as alice, logged_in(server, "bob") as bob:
            alice_lines, bob_lines = alice.lines(), bob.lines()

            line = await next_line(alice_lines)
            assert line.kind == LineKind.MEMBERS and line.members == ["alice"]
            line = await next_line(alice_lines)
            assert (line.kind, line.sender) == (LineKind.PRESENCE, "alice")
            line = await next_line(alice_lines)
            assert (line.sender, line.event) == ("bob", PresenceEvent.JOINED)

            line = await next_line(bob_lines)
            assert line.members == ["alice", "bob"]
            line = await next_line(bob_lines)
            assert (line.sender, line.event) == ("bob", PresenceEvent.JOINED)

            await alice.send("hi")

            for stream in (alice_lines, bob_lines):
                line = await next_line(stream)
                assert line.kind == LineKind.CHAT
                assert (line.sender, line.body) == ("alice", "hi")

            assert alice.roster.names() == ["alice", "bob"]
            assert bob.roster.names() == ["alice", "bob"]


@pytest.mark.asyncio
async def test_taken_name_can_retry_with_another_name():
    async with running_server() as server:
        async with logged_in(server, "alice"):
            client = ChatClient(server.url)
            try:
                with pytest.raises(NameTakenError):
                    await client.login("alice")
                assert not client.logged_in

                await client.login("alice2")
                assert client.logged_in
                assert client.name == "alice2"
            finally:
                await client.close()


@pytest.mark.asyncio
async def test_invalid_name_rejected():
    async with running_server() as server:
        client = ChatClient(server.url)
        with pytest.raises(InvalidNameError):
            await client.login("//root")
        assert not client.connected


@pytest.mark.asyncio
async def test_peer_disconnect_produces_left_event():
    async with running_server() as server:
        async with logged_in(server, "alice") as alice:
            stream = alice.lines()
            await next_line(stream)  # members
            await next_line(stream)  # alice joined

            async with logged_in(server, "bob"):
                line = await next_line(stream)
                assert (line.sender, line.event) == ("bob", PresenceEvent.JOINED)

            line = await next_line(stream)
            assert (line.sender, line.event) == ("bob", PresenceEvent.LEFT)
            assert alice.roster.names() == ["alice"]


@pytest.mark.asyncio
async def test_users_endpoint_lists_registered_names():
    async with running_server() as server:
        base = f"http://127.0.0.1:{server.port}"
        async with logged_in(server, "bob"), logged_in(server, "alice"):
            status, content_type, body = await asyncio.to_thread(http_get, base + "/users")

        assert status == 200
        assert content_type == "application/json"
        assert json.loads(body) == ["alice", "bob"]

        with pytest.raises(urllib.error.HTTPError) as excinfo:
            await asyncio.to_thread(http_get, base + "/nope")
        assert excinfo.value.code == 404


@pytest.mark.asyncio
async def test_connection_limit():
    async with running_server(max_connections=1) as server:
        async with logged_in(server, "alice"):
            client = ChatClient(server.url)
            with pytest.raises(ConnectionClosedError):
                await client.login("bob")
            assert server.get_stats()["sessions"] == 1


@pytest.mark.asyncio
async def test_stop_closes_clients():
    async with running_server() as server:
        client = ChatClient(server.url)
        await client.login("alice")
        stats = server.get_stats()
        assert stats["server"]["running"]
        assert stats["sessions"] == 1

    lines = [line async for line in client.lines()]
    assert not client.logged_in
    assert not client.connected
    assert len(client.roster) == 0
    assert all(line.kind != LineKind.CHAT for line in lines)
    assert not server.running
    await client.close()


@pytest.mark.asyncio
async def test_client_reconnects_after_server_restart():
    async with running_server() as server:
        client = ChatClient(server.url)
        await client.login("alice")

    async for _ in client.lines():
        pass

    async with running_server() as server:
        client.url = server.url
        try:
            await client.login("alice")
            assert client.logged_in
            assert client.connected

            line = await next_line(client.lines())
            assert line.members == ["alice"]
        finally:
            await client.close()
