"""Registry 测试"""

import logging

import pytest

from chat_room.exceptions import NameTakenError
from chat_room.hub import Registry
from chat_room.test.fakes import FakeConnection


def test_register_inserts_user():
    registry = Registry()
    connection = FakeConnection("alice")

    user = registry.try_register("alice", connection)

    assert user.name == "alice"
    assert user.connection is connection
    assert "alice" in registry
    assert registry.names() == ["alice"]


def test_register_taken_name_leaves_registry_unchanged():
    registry = Registry()
    first = FakeConnection("first")
    registry.try_register("alice", first)

    with pytest.raises(NameTakenError) as excinfo:
        registry.try_register("alice", FakeConnection("second"))

    assert excinfo.value.name == "alice"
    assert excinfo.value.error_code == "LOGIN002"
    assert len(registry) == 1
    assert registry.get("alice").connection is first


def test_remove_present_and_absent(caplog):
    registry = Registry()
    registry.try_register("user1", FakeConnection())

    assert registry.remove("user1") is True
    assert len(registry) == 0

    with caplog.at_level(logging.INFO, logger="chat_room.hub.registry"):
        assert registry.remove("user2") is False
    assert "user2" in caplog.text
    assert len(registry) == 0


def test_name_reusable_after_removal():
    registry = Registry()
    registry.try_register("alice", FakeConnection("old"))
    registry.remove("alice")

    new_connection = FakeConnection("new")
    registry.try_register("alice", new_connection)

    assert registry.get("alice").connection is new_connection


def test_snapshot_is_point_in_time_copy():
    registry = Registry()
    registry.try_register("alice", FakeConnection())
    registry.try_register("bob", FakeConnection())

    snapshot = registry.snapshot()
    registry.remove("alice")
    registry.try_register("carol", FakeConnection())

    assert sorted(user.name for user in snapshot) == ["alice", "bob"]
    assert registry.names() == ["bob", "carol"]
