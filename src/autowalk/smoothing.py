"""
Smoothing of the displayed treadmill speed.

The displayed speed eases toward the target once per animation frame
instead of jumping, and the frame source is an asyncio task that lives
exactly as long as the session that started it.
"""

import asyncio
import logging
from typing import Callable, Optional

from .core import APPROACH_RATE, DEFAULT_TARGET_SPEED, FRAME_INTERVAL, SNAP_EPSILON

logger = logging.getLogger(__name__)


class SpeedSmoother:
    """First-order approach of the current speed toward the target speed."""

    def __init__(
        self,
        target: float = DEFAULT_TARGET_SPEED,
        current: Optional[float] = None,
        rate: float = APPROACH_RATE,
        epsilon: float = SNAP_EPSILON,
    ) -> None:
        self.target = target
        self.current = target if current is None else current
        self._rate = rate
        self._epsilon = epsilon

    @property
    def is_settled(self) -> bool:
        """True once the current speed sits exactly on the target."""
        return self.current == self.target

    def tick(self) -> float:
        """Advance one frame and return the new current speed.

        The target is read fresh on every call, so a changed target takes
        effect on the next frame.
        """
        delta = self.target - self.current
        if abs(delta) < self._epsilon:
            self.current = self.target
        else:
            self.current += delta * self._rate
        return self.current

    def settle(self, max_ticks: int = 10_000) -> int:
        """Tick until settled or ``max_ticks`` is reached.

        Returns:
            Number of ticks taken
        """
        ticks = 0
        while not self.is_settled and ticks < max_ticks:
            self.tick()
            ticks += 1
        return ticks


class AnimationTicker:
    """Repeating frame callback backed by a cancellable asyncio task."""

    def __init__(
        self, callback: Callable[[], None], interval: float = FRAME_INTERVAL
    ) -> None:
        """Initialize ticker.

        Args:
            callback: Function called once per frame
            interval: Seconds between frames
        """
        self._callback = callback
        self._interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start ticking. Must be called from a running event loop."""
        if self.is_running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.debug(f"Animation ticker started ({self._interval:.4f}s)")

    def cancel(self) -> bool:
        """Cancel the tick task.

        Returns:
            True if a task was cancelled, False if nothing was running
        """
        if self._task is None:
            return False
        task, self._task = self._task, None
        task.cancel()
        logger.debug("Animation ticker cancelled")
        return True

    async def stop(self) -> None:
        """Cancel the tick task and wait for it to finish."""
        task = self._task
        self.cancel()
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                self._callback()
            except Exception as e:
                logger.error(f"Tick callback error: {e}")
