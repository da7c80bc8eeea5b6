"""Smoothing process and animation ticker."""

import asyncio

import pytest

from autowalk.core import DEFAULT_TARGET_SPEED, MAX_SPEED
from autowalk.smoothing import AnimationTicker, SpeedSmoother


def test_starts_settled_on_default():
    smoother = SpeedSmoother()
    assert smoother.current == DEFAULT_TARGET_SPEED
    assert smoother.is_settled
    assert smoother.settle() == 0


def test_single_tick_moves_one_percent_of_gap():
    smoother = SpeedSmoother(target=MAX_SPEED, current=0.0)
    assert smoother.tick() == pytest.approx(0.1)


def test_snaps_inside_epsilon():
    smoother = SpeedSmoother(target=5.0, current=4.96)
    assert smoother.tick() == 5.0


@pytest.mark.parametrize(
    "start,target", [(0.0, MAX_SPEED), (MAX_SPEED, 0.0), (2.5, 7.0)]
)
def test_converges_exactly_without_overshoot(start, target):
    smoother = SpeedSmoother(target=target, current=start)
    low, high = sorted((start, target))
    previous = start
    for _ in range(10_000):
        current = smoother.tick()
        assert low <= current <= high
        # monotonic approach
        assert abs(target - current) <= abs(target - previous)
        previous = current
        if smoother.is_settled:
            break
    assert smoother.current == target


def test_target_change_takes_effect_next_tick():
    smoother = SpeedSmoother(target=MAX_SPEED, current=5.0)
    smoother.tick()
    assert smoother.current > 5.0

    smoother.target = 0.0
    before = smoother.current
    smoother.tick()
    assert smoother.current < before


def test_settle_reports_ticks():
    smoother = SpeedSmoother(target=6.0, current=5.0)
    ticks = smoother.settle()
    assert ticks > 0
    assert smoother.current == 6.0


def test_settle_respects_limit():
    smoother = SpeedSmoother(target=MAX_SPEED, current=0.0)
    assert smoother.settle(max_ticks=3) == 3
    assert not smoother.is_settled


@pytest.mark.asyncio
async def test_ticker_calls_back_until_cancelled():
    calls = []
    ticker = AnimationTicker(lambda: calls.append(1), interval=0.001)
    ticker.start()
    assert ticker.is_running

    await asyncio.sleep(0.05)
    assert calls

    assert ticker.cancel() is True
    await asyncio.sleep(0)
    count = len(calls)
    await asyncio.sleep(0.02)
    assert len(calls) == count
    assert not ticker.is_running


@pytest.mark.asyncio
async def test_ticker_cancel_twice_is_noop():
    ticker = AnimationTicker(lambda: None, interval=0.001)
    assert ticker.cancel() is False

    ticker.start()
    assert ticker.cancel() is True
    assert ticker.cancel() is False
    await asyncio.sleep(0)
    assert not ticker.is_running


@pytest.mark.asyncio
async def test_ticker_stop_waits_for_task():
    ticker = AnimationTicker(lambda: None, interval=0.001)
    ticker.start()
    task = ticker._task
    await ticker.stop()
    assert task is not None and task.done()
    await ticker.stop()


@pytest.mark.asyncio
async def test_ticker_start_is_idempotent():
    ticker = AnimationTicker(lambda: None, interval=0.001)
    ticker.start()
    task = ticker._task
    ticker.start()
    assert ticker._task is task
    await ticker.stop()


@pytest.mark.asyncio
async def test_ticker_survives_callback_errors():
    calls = []

    def callback():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("boom")

    ticker = AnimationTicker(callback, interval=0.001)
    ticker.start()
    await asyncio.sleep(0.05)
    assert len(calls) >= 2
    assert ticker.is_running
    await ticker.stop()
