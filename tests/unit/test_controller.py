"""Session controller: user edits, resets, callbacks and lifecycle."""

import asyncio

import pytest

from autowalk.controller import AutoWalkController
from autowalk.core import DEFAULT_TARGET_SPEED, TEMP_OFFSET_AMOUNT, ResultCode
from autowalk.engine import OverrideLevel
from autowalk.nudge import NudgeDirection, ReleaseEvent


@pytest.fixture
def controller():
    return AutoWalkController(tick_interval=0.001)


def test_initial_state(controller):
    assert controller.target_speed == DEFAULT_TARGET_SPEED
    assert controller.current_speed == DEFAULT_TARGET_SPEED
    assert controller.multiplier == 1.0
    assert controller.override is OverrideLevel.OFF
    assert controller.temp_offset == 0.0
    assert controller.final_speed == pytest.approx(0.5)
    assert controller.treadmill_is_default
    assert controller.vrti_is_default
    assert not controller.is_running


def test_set_target_speed(controller):
    assert controller.set_target_speed(7.5) == ResultCode.SUCCESS
    assert controller.target_speed == 7.5
    # current only moves on ticks
    assert controller.current_speed == DEFAULT_TARGET_SPEED
    assert not controller.treadmill_is_default


@pytest.mark.parametrize("speed", [-0.5, 10.5])
def test_set_target_speed_out_of_range(controller, speed):
    assert controller.set_target_speed(speed) == ResultCode.INVALID_PARAMETER
    assert controller.target_speed == DEFAULT_TARGET_SPEED


def test_set_multiplier_snaps(controller):
    assert controller.set_multiplier(1.05) == ResultCode.SUCCESS
    assert controller.multiplier == 1.0
    assert controller.set_multiplier(1.5) == ResultCode.SUCCESS
    assert controller.multiplier == 1.5
    assert controller.final_speed == pytest.approx(0.75)


def test_set_multiplier_out_of_range(controller):
    assert controller.set_multiplier(2.5) == ResultCode.INVALID_PARAMETER
    assert controller.set_multiplier(-0.1) == ResultCode.INVALID_PARAMETER
    assert controller.multiplier == 1.0


def test_multiplier_locked_while_override_active(controller):
    controller.cycle_override()
    assert controller.multiplier_locked
    assert controller.set_multiplier(1.5) == ResultCode.NOT_PERMITTED
    assert controller.multiplier == 1.0


def test_cycle_override(controller):
    levels = [controller.cycle_override() for _ in range(5)]
    assert levels[:4] == [0, 1, 2, 3]
    assert levels[4] is OverrideLevel.OFF
    assert not controller.multiplier_locked


def test_override_pins_final_speed(controller):
    controller.set_multiplier(0.4)
    controller.cycle_override()
    controller.cycle_override()
    assert controller.final_speed == 0.5


def test_reset_vrti_clears_multiplier_and_override(controller):
    controller.set_multiplier(1.7)
    controller.cycle_override()
    assert not controller.vrti_is_default

    controller.reset_vrti()
    assert controller.multiplier == 1.0
    assert controller.override is OverrideLevel.OFF
    assert controller.vrti_is_default


def test_reset_treadmill(controller):
    controller.set_target_speed(9.0)
    controller.reset_treadmill()
    assert controller.target_speed == DEFAULT_TARGET_SPEED
    assert controller.treadmill_is_default


def test_nudges(controller):
    controller.press_nudge(NudgeDirection.SLOW_DOWN)
    assert controller.temp_offset == -TEMP_OFFSET_AMOUNT
    assert controller.holding is NudgeDirection.SLOW_DOWN
    assert controller.final_speed == pytest.approx(0.25)

    controller.release_nudge(ReleaseEvent.TOUCH_CANCEL)
    assert controller.temp_offset == 0.0

    with controller.hold_nudge(NudgeDirection.CATCH_UP):
        assert controller.final_speed == pytest.approx(0.75)
    assert controller.final_speed == pytest.approx(0.5)


def test_tick_and_settle(controller):
    controller.set_target_speed(10.0)
    controller.tick()
    assert DEFAULT_TARGET_SPEED < controller.current_speed < 10.0

    assert controller.settle() > 0
    assert controller.current_speed == 10.0
    assert controller.final_speed == 1.0
    assert controller.settle() == 0


def test_on_update_receives_status(controller):
    updates = []
    controller.set_on_update(updates.append)

    controller.set_target_speed(6.0)
    controller.set_multiplier(1.2)
    controller.cycle_override()
    controller.press_nudge(NudgeDirection.CATCH_UP)
    controller.release_nudge()
    controller.reset_vrti()
    controller.reset_treadmill()

    assert len(updates) == 7
    assert updates[0]["target_speed"] == 6.0
    assert updates[2]["override"] is OverrideLevel.QUARTER
    assert updates[3]["temp_offset"] == TEMP_OFFSET_AMOUNT


def test_tick_without_movement_does_not_notify(controller):
    updates = []
    controller.set_on_update(updates.append)
    controller.tick()
    assert updates == []


def test_failing_callback_does_not_break_edits(controller):
    def callback(data):
        raise RuntimeError("render failed")

    controller.set_on_update(callback)
    assert controller.set_target_speed(3.0) == ResultCode.SUCCESS
    assert controller.target_speed == 3.0


def test_get_status(controller):
    controller.set_target_speed(10.0)
    controller.settle()
    controller.press_nudge(NudgeDirection.SLOW_DOWN)

    status = controller.get_status()
    assert status["current_speed"] == 10.0
    assert status["base"] == 1.0
    assert status["post_multiplier"] == 1.0
    assert status["effective_offset"] == pytest.approx(-0.25)
    assert status["final_speed"] == pytest.approx(0.75)
    assert status["holding"] is NudgeDirection.SLOW_DOWN


@pytest.mark.asyncio
async def test_start_and_stop(controller):
    controller.set_target_speed(10.0)
    controller.start()
    assert controller.is_running

    await asyncio.sleep(0.05)
    assert controller.current_speed > DEFAULT_TARGET_SPEED

    controller.press_nudge(NudgeDirection.CATCH_UP)
    await controller.stop()
    assert not controller.is_running
    assert controller.temp_offset == 0.0

    # second teardown is harmless
    await controller.stop()

    frozen = controller.current_speed
    await asyncio.sleep(0.02)
    assert controller.current_speed == frozen


@pytest.mark.parametrize("speed", [float("nan"), float("inf"), float("-inf")])
def test_set_target_speed_rejects_non_finite(controller, speed):
    assert controller.set_target_speed(speed) == ResultCode.INVALID_PARAMETER
    assert controller.target_speed == DEFAULT_TARGET_SPEED
    assert controller.settle() == 0
    assert controller.final_speed == pytest.approx(0.5)


@pytest.mark.parametrize("value", [float("nan"), float("inf")])
def test_set_multiplier_rejects_non_finite(controller, value):
    controller.set_target_speed(0.0)
    controller.settle()
    assert controller.set_multiplier(value) == ResultCode.INVALID_PARAMETER
    assert controller.multiplier == 1.0
    assert controller.final_speed == 0.0


def test_target_speed_locked_while_override_active(controller):
    controller.cycle_override()
    assert controller.speed_locked
    assert controller.set_target_speed(8.0) == ResultCode.NOT_PERMITTED
    assert controller.target_speed == DEFAULT_TARGET_SPEED

    # reset stays available while locked
    controller.reset_treadmill()
    assert controller.target_speed == DEFAULT_TARGET_SPEED

    controller.reset_vrti()
    assert not controller.speed_locked
    assert controller.set_target_speed(8.0) == ResultCode.SUCCESS
