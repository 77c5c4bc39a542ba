"""Tests for snapshot pushes and the start/stop commands that trigger them."""

import threading
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError

from livetimers.crud.timers import get_timer
from livetimers.crud.users import create_user
from livetimers.db.session import Base, make_session_factory
from livetimers.services.registry import ConnectionRegistry
from livetimers.services.sync import SyncEngine
from livetimers.services.timers import start_timer, stop_timer

# Ensure models are registered so metadata tables are created
from livetimers.models import session as session_model  # noqa: F401
from livetimers.models import timer as timer_model  # noqa: F401
from livetimers.models import user as user_model  # noqa: F401

T0 = datetime(2024, 5, 1, 9, 0, 0, tzinfo=timezone.utc)


class FakeChannel:
    def __init__(self, open_=True):
        self.open = open_
        self.messages = []

    def send(self, message):
        if not self.open:
            return False
        self.messages.append(message)
        return True


class Clock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture()
def session_factory(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'sync.db'}", connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)
    try:
        yield make_session_factory(engine)
    finally:
        engine.dispose()


@pytest.fixture()
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def clock():
    return Clock(T0)


@pytest.fixture()
def registry():
    return ConnectionRegistry()


@pytest.fixture()
def sync(registry, session_factory, clock):
    return SyncEngine(registry, session_factory, clock=clock)


@pytest.fixture()
def alice(db_session):
    return create_user(db_session, "alice", "pw").id


@pytest.fixture()
def bob(db_session):
    return create_user(db_session, "bob", "pw").id


def test_push_all_with_no_timers_sends_empty_snapshot(db_session, sync, registry, alice):
    channel = FakeChannel()
    registry.register(alice, channel)

    assert sync.push_all(db_session, alice) is True
    assert channel.messages == [{"type": "all_timers", "timers": []}]


def test_push_without_channel_is_skipped(db_session, sync, alice):
    start_timer(db_session, sync, alice, "offline work", at=T0)

    assert sync.push_all(db_session, alice) is False
    assert sync.push_active(db_session, alice) is False


def test_push_to_closed_channel_is_skipped(db_session, sync, registry, alice):
    registry.register(alice, FakeChannel(open_=False))

    timer_id = start_timer(db_session, sync, alice, "still saved", at=T0)

    assert get_timer(db_session, timer_id) is not None
    assert sync.push_all(db_session, alice) is False


def test_start_stop_scenario(db_session, sync, registry, clock, alice):
    channel = FakeChannel()
    registry.register(alice, channel)

    timer_id = start_timer(db_session, sync, alice, "write spec", at=T0)

    [message] = channel.messages
    assert message["type"] == "all_timers"
    [view] = message["timers"]
    assert view["id"] == timer_id
    assert view["description"] == "write spec"
    assert view["isActive"] is True
    assert view["progress"] == 0

    clock.advance(seconds=1)
    assert sync.broadcast_active() == 1
    tick = channel.messages[-1]
    assert tick["type"] == "active_timers"
    assert tick["timers"][0]["id"] == timer_id
    assert tick["timers"][0]["progress"] == 1000

    clock.advance(seconds=4)
    assert stop_timer(db_session, sync, alice, timer_id, at=T0 + timedelta(seconds=5)) is True
    stopped = channel.messages[-1]
    assert stopped["type"] == "all_timers"
    [view] = stopped["timers"]
    assert view["isActive"] is False
    assert view["duration"] == 5000
    assert "progress" not in view

    pushes = len(channel.messages)
    assert stop_timer(db_session, sync, alice, timer_id) is False
    assert len(channel.messages) == pushes


def test_stop_by_other_user_fails_without_push(db_session, sync, registry, alice, bob):
    alice_channel, bob_channel = FakeChannel(), FakeChannel()
    registry.register(alice, alice_channel)
    registry.register(bob, bob_channel)
    timer_id = start_timer(db_session, sync, alice, "mine", at=T0)

    assert stop_timer(db_session, sync, bob, timer_id) is False
    assert bob_channel.messages == []
    assert len(alice_channel.messages) == 1
    assert get_timer(db_session, timer_id).end_iso is None


def test_stop_unknown_timer_returns_false(db_session, sync, alice):
    assert stop_timer(db_session, sync, alice, 9999) is False


def test_active_snapshot_excludes_stopped_timers(db_session, sync, registry, alice):
    running = start_timer(db_session, sync, alice, "running", at=T0)
    finished = start_timer(db_session, sync, alice, "finished", at=T0)
    stop_timer(db_session, sync, alice, finished, at=T0 + timedelta(seconds=2))
    channel = FakeChannel()
    registry.register(alice, channel)

    assert sync.push_active(db_session, alice) is True
    assert [t["id"] for t in channel.messages[0]["timers"]] == [running]

    assert sync.push_all(db_session, alice) is True
    assert {t["id"] for t in channel.messages[1]["timers"]} == {running, finished}


def test_broadcast_targets_only_registered_users(db_session, sync, registry, alice, bob):
    start_timer(db_session, sync, alice, "a", at=T0)
    start_timer(db_session, sync, bob, "b", at=T0)
    channel = FakeChannel()
    registry.register(alice, channel)

    assert sync.broadcast_active() == 1
    assert [t["userId"] for t in channel.messages[0]["timers"]] == [alice]


def test_replaced_channel_receives_no_further_pushes(db_session, sync, registry, alice):
    old, new = FakeChannel(), FakeChannel()
    registry.register(alice, old)
    registry.register(alice, new)

    start_timer(db_session, sync, alice, "after reconnect", at=T0)

    assert old.messages == []
    assert len(new.messages) == 1


def test_load_failure_on_push_path_is_swallowed(db_session, sync, registry, alice, monkeypatch):
    channel = FakeChannel()
    registry.register(alice, channel)

    def broken_loader(db, user_id):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr("livetimers.services.sync.list_timers", broken_loader)

    timer_id = start_timer(db_session, sync, alice, "survives", at=T0)

    assert get_timer(db_session, timer_id) is not None
    assert channel.messages == []


def test_concurrent_starts_push_once_each(session_factory, sync, registry, alice):
    channel = FakeChannel()
    registry.register(alice, channel)
    workers = 8
    barrier = threading.Barrier(workers)
    errors = []

    def worker(n):
        barrier.wait()
        try:
            with session_factory() as db:
                start_timer(db, sync, alice, f"task {n}", at=T0)
        except Exception as exc:  # noqa: BLE001
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert len(channel.messages) == workers
    assert all(m["type"] == "all_timers" for m in channel.messages)
    assert max(len(m["timers"]) for m in channel.messages) == workers
    assert registry.user_ids() == [alice]
