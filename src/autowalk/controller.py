"""
Session state for the walk-speed preview.

This module ties the smoothing process, the composition engine and the
nudge input together behind one controller, and notifies a callback
whenever anything the user would see has changed.
"""

import logging
import math
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional

from .core import (
    DEFAULT_MULTIPLIER,
    DEFAULT_TARGET_SPEED,
    FRAME_INTERVAL,
    MAX_SPEED,
    MULTIPLIER_MAX,
    MULTIPLIER_MIN,
    MULTIPLIER_STEP,
    SPEED_STEP,
    ResultCode,
)
from .engine import OverrideLevel, SpeedBreakdown, compute_breakdown, snap_multiplier
from .nudge import MomentaryInput, NudgeDirection, ReleaseEvent
from .smoothing import AnimationTicker, SpeedSmoother

logger = logging.getLogger(__name__)


class AutoWalkController:
    """Holds one preview session: treadmill speed, VRTI modifiers and nudges."""

    # Slider constraints
    SPEED_MIN = 0.0
    SPEED_MAX = MAX_SPEED
    SPEED_STEP = SPEED_STEP
    MULTIPLIER_MIN = MULTIPLIER_MIN
    MULTIPLIER_MAX = MULTIPLIER_MAX
    MULTIPLIER_STEP = MULTIPLIER_STEP

    def __init__(self, tick_interval: float = FRAME_INTERVAL) -> None:
        """Initialize controller with default settings and no ticker running."""
        self._smoother = SpeedSmoother(target=DEFAULT_TARGET_SPEED)
        self._multiplier = DEFAULT_MULTIPLIER
        self._override = OverrideLevel.OFF
        self._nudge = MomentaryInput(on_change=lambda _offset: self._notify())
        self._ticker = AnimationTicker(self.tick, interval=tick_interval)

        # Callbacks
        self._on_update: Optional[Callable] = None

    @property
    def target_speed(self) -> float:
        return self._smoother.target

    @property
    def current_speed(self) -> float:
        return self._smoother.current

    @property
    def multiplier(self) -> float:
        return self._multiplier

    @property
    def override(self) -> OverrideLevel:
        return self._override

    @property
    def multiplier_locked(self) -> bool:
        """Multiplier edits are refused while an override pins the output."""
        return self._override.is_active

    @property
    def speed_locked(self) -> bool:
        """Treadmill speed edits are refused while an override pins the output."""
        return self._override.is_active

    @property
    def temp_offset(self) -> float:
        return self._nudge.offset

    @property
    def holding(self) -> Optional[NudgeDirection]:
        return self._nudge.holding

    @property
    def is_running(self) -> bool:
        return self._ticker.is_running

    @property
    def treadmill_is_default(self) -> bool:
        return self._smoother.target == DEFAULT_TARGET_SPEED

    @property
    def vrti_is_default(self) -> bool:
        return (
            self._multiplier == DEFAULT_MULTIPLIER
            and self._override is OverrideLevel.OFF
        )

    @property
    def breakdown(self) -> SpeedBreakdown:
        """Recompute every stage from the current state."""
        return compute_breakdown(
            current_speed=self._smoother.current,
            target_speed=self._smoother.target,
            multiplier=self._multiplier,
            override=self._override,
            temp_offset=self._nudge.offset,
        )

    @property
    def final_speed(self) -> float:
        return self.breakdown.final

    def set_on_update(self, callback: Callable) -> None:
        """Set callback for state changes.

        Args:
            callback: Function called with the status dict after every change
        """
        self._on_update = callback

    def set_target_speed(self, km_h: float) -> ResultCode:
        """Set the treadmill target speed.

        Args:
            km_h: Speed in [0, MAX_SPEED]

        Returns:
            ResultCode indicating success or failure
        """
        if self.speed_locked:
            logger.error(
                f"Speed is locked while override {self._override.name} is active"
            )
            return ResultCode.NOT_PERMITTED

        if (
            not math.isfinite(km_h)
            or km_h < self.SPEED_MIN
            or km_h > self.SPEED_MAX
        ):
            logger.error(
                f"Speed {km_h} out of range [{self.SPEED_MIN}, {self.SPEED_MAX}]"
            )
            return ResultCode.INVALID_PARAMETER

        self._smoother.target = float(km_h)
        logger.info(f"Target speed set to {km_h:.1f}")
        self._notify()
        return ResultCode.SUCCESS

    def set_multiplier(self, value: float) -> ResultCode:
        """Set the auto-walk multiplier, snapping values near 1.0.

        Args:
            value: Multiplier in [MULTIPLIER_MIN, MULTIPLIER_MAX]

        Returns:
            ResultCode indicating success or failure
        """
        if self.multiplier_locked:
            logger.error(
                f"Multiplier is locked while override {self._override.name} is active"
            )
            return ResultCode.NOT_PERMITTED

        if (
            not math.isfinite(value)
            or value < self.MULTIPLIER_MIN
            or value > self.MULTIPLIER_MAX
        ):
            logger.error(
                f"Multiplier {value} out of range "
                f"[{self.MULTIPLIER_MIN}, {self.MULTIPLIER_MAX}]"
            )
            return ResultCode.INVALID_PARAMETER

        self._multiplier = snap_multiplier(float(value))
        logger.info(f"Multiplier set to {self._multiplier:.2f}x")
        self._notify()
        return ResultCode.SUCCESS

    def cycle_override(self) -> OverrideLevel:
        """Advance the override ladder one step.

        Returns:
            The new override level
        """
        self._override = self._override.next()
        logger.info(f"Override now {self._override.name}")
        self._notify()
        return self._override

    def press_nudge(self, direction: NudgeDirection) -> None:
        self._nudge.press(direction)

    def release_nudge(self, event: ReleaseEvent = ReleaseEvent.POINTER_UP) -> None:
        self._nudge.release(event)

    @contextmanager
    def hold_nudge(self, direction: NudgeDirection) -> Iterator[None]:
        """Hold a nudge for the duration of the block."""
        with self._nudge.hold(direction):
            yield

    def reset_treadmill(self) -> None:
        """Put the target speed back to its default."""
        self._smoother.target = DEFAULT_TARGET_SPEED
        logger.info("Treadmill reset")
        self._notify()

    def reset_vrti(self) -> None:
        """Clear the multiplier and override together."""
        self._multiplier = DEFAULT_MULTIPLIER
        self._override = OverrideLevel.OFF
        logger.info("VRTI reset")
        self._notify()

    def tick(self) -> None:
        """Advance the smoothing process by one frame."""
        previous = self._smoother.current
        current = self._smoother.tick()
        if current != previous:
            logger.debug(f"Current speed {previous:.3f} -> {current:.3f}")
            self._notify()

    def settle(self) -> int:
        """Run the smoothing process until the current speed reaches the target.

        Returns:
            Number of frames it took
        """
        ticks = self._smoother.settle()
        if ticks:
            self._notify()
        return ticks

    def start(self) -> None:
        """Start the frame ticker. Requires a running event loop."""
        self._ticker.start()

    async def stop(self) -> None:
        """Stop the frame ticker and drop any held nudge."""
        await self._ticker.stop()
        self._nudge.release(ReleaseEvent.TOUCH_CANCEL)

    def get_status(self) -> dict[str, Any]:
        """Get current state and derived values.

        Returns:
            Dictionary with the inputs and every composition stage
        """
        stages = self.breakdown
        return {
            "target_speed": self._smoother.target,
            "current_speed": self._smoother.current,
            "multiplier": self._multiplier,
            "override": self._override,
            "temp_offset": self._nudge.offset,
            "holding": self._nudge.holding,
            "base": stages.base,
            "post_multiplier": stages.post_multiplier,
            "effective_offset": stages.effective_offset,
            "final_speed": stages.final,
        }

    def _notify(self) -> None:
        if self._on_update is None:
            return
        try:
            self._on_update(self.get_status())
        except Exception as e:
            logger.error(f"Update callback error: {e}")
