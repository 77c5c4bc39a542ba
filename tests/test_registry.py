"""Tests for the per-user channel registry."""

import threading

from livetimers.services.registry import ConnectionRegistry


class FakeChannel:
    def __init__(self, name="channel"):
        self.name = name
        self.messages = []

    def send(self, message):
        self.messages.append(message)
        return True


def test_register_and_get():
    registry = ConnectionRegistry()
    channel = FakeChannel()

    assert registry.register(1, channel) is None
    assert registry.get(1) is channel
    assert registry.get(2) is None
    assert 1 in registry


def test_register_replaces_previous_channel():
    registry = ConnectionRegistry()
    old, new = FakeChannel("old"), FakeChannel("new")
    registry.register(1, old)

    replaced = registry.register(1, new)

    assert replaced is old
    assert registry.get(1) is new
    assert len(registry) == 1


def test_unregister_unknown_user_is_noop():
    registry = ConnectionRegistry()

    assert registry.unregister(42) is False
    assert len(registry) == 0


def test_stale_channel_cannot_evict_its_replacement():
    registry = ConnectionRegistry()
    old, new = FakeChannel("old"), FakeChannel("new")
    registry.register(1, old)
    registry.register(1, new)

    assert registry.unregister(1, old) is False
    assert registry.get(1) is new
    assert registry.unregister(1, new) is True
    assert registry.get(1) is None


def test_for_each_user_id_walks_a_snapshot():
    registry = ConnectionRegistry()
    for user_id in (1, 2, 3):
        registry.register(user_id, FakeChannel())
    seen = []

    def visit(user_id):
        seen.append(user_id)
        registry.unregister(user_id)

    registry.for_each_user_id(visit)

    assert sorted(seen) == [1, 2, 3]
    assert len(registry) == 0


def test_concurrent_register_unregister_keeps_entries_consistent():
    registry = ConnectionRegistry()
    barrier = threading.Barrier(16)

    def churn(user_id):
        barrier.wait()
        for _ in range(200):
            channel = FakeChannel()
            registry.register(user_id, channel)
            registry.unregister(user_id, channel)
        registry.register(user_id, FakeChannel(f"final-{user_id}"))

    threads = [threading.Thread(target=churn, args=(user_id,)) for user_id in range(16)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(registry.user_ids()) == list(range(16))
    for user_id in range(16):
        assert registry.get(user_id).name == f"final-{user_id}"
