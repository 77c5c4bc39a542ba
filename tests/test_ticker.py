"""Tests for the periodic broadcast driver."""

import asyncio
import threading

import pytest

from livetimers.services.ticker import Ticker


def test_interval_must_be_positive():
    with pytest.raises(ValueError):
        Ticker(lambda: None, 0)


@pytest.mark.asyncio
async def test_ticker_calls_tick_repeatedly_until_stopped():
    calls = []
    ticker = Ticker(lambda: calls.append(1), 0.01)

    ticker.start()
    await asyncio.sleep(0.1)
    await ticker.stop()
    seen = len(calls)
    await asyncio.sleep(0.05)

    assert seen >= 3
    assert len(calls) == seen
    assert not ticker.running


@pytest.mark.asyncio
async def test_slow_tick_does_not_hold_back_the_next_one():
    started = []
    release = threading.Event()

    def slow_tick():
        started.append(1)
        release.wait(1)

    ticker = Ticker(slow_tick, 0.01)
    ticker.start()
    await asyncio.sleep(0.1)
    overlapping = len(started)
    release.set()
    await ticker.stop()

    assert overlapping >= 2


@pytest.mark.asyncio
async def test_failing_tick_is_logged_and_ticker_keeps_running(caplog):
    calls = []

    def flaky():
        calls.append(1)
        raise RuntimeError("boom")

    ticker = Ticker(flaky, 0.01)
    ticker.start()
    await asyncio.sleep(0.08)
    await ticker.stop()

    assert len(calls) >= 2
    assert "ticker.tick_failed" in caplog.text
