"""
Hold-to-nudge input.

A nudge applies a temporary offset only while it is held. Every way a
hold can end maps to the same release, so an offset can never stay stuck.
"""

import logging
from contextlib import contextmanager
from enum import Enum
from typing import Callable, Iterator, Optional

from .core import TEMP_OFFSET_AMOUNT

logger = logging.getLogger(__name__)


class NudgeDirection(Enum):
    SLOW_DOWN = -1
    CATCH_UP = 1


class ReleaseEvent(Enum):
    """Ways a hold can end. All of them release the nudge."""

    POINTER_UP = "pointer_up"
    POINTER_LEAVE = "pointer_leave"
    TOUCH_END = "touch_end"
    TOUCH_CANCEL = "touch_cancel"


class MomentaryInput:
    """Momentary offset that is non-zero only while held."""

    def __init__(
        self,
        on_change: Optional[Callable[[float], None]] = None,
        amount: float = TEMP_OFFSET_AMOUNT,
    ) -> None:
        """Initialize with nothing held.

        Args:
            on_change: Called with the new offset whenever it changes
            amount: Magnitude of the offset applied while held
        """
        self._on_change = on_change
        self._amount = amount
        self._holding: Optional[NudgeDirection] = None

    @property
    def holding(self) -> Optional[NudgeDirection]:
        return self._holding

    @property
    def offset(self) -> float:
        if self._holding is None:
            return 0.0
        return self._holding.value * self._amount

    def press(self, direction: NudgeDirection) -> None:
        """Start holding. Pressing the other direction replaces the hold."""
        if self._holding is direction:
            return
        self._holding = direction
        logger.info(f"Nudge {direction.name.lower()} held ({self.offset:+.2f})")
        self._notify()

    def release(self, event: ReleaseEvent = ReleaseEvent.POINTER_UP) -> None:
        """End the hold. Releasing while idle does nothing."""
        if self._holding is None:
            return
        self._holding = None
        logger.info(f"Nudge released ({event.value})")
        self._notify()

    @contextmanager
    def hold(self, direction: NudgeDirection) -> Iterator["MomentaryInput"]:
        """Hold for the duration of the block, releasing however it exits."""
        self.press(direction)
        try:
            yield self
        finally:
            self.release(ReleaseEvent.POINTER_UP)

    def _notify(self) -> None:
        if self._on_change:
            self._on_change(self.offset)
