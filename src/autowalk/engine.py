"""
Speed composition engine.

Maps the smoothed treadmill speed and the user modifiers onto the
normalized walk speed handed to the avatar controller. The clamping and
override rules follow the external control backend this tool previews.
"""

import math
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Union

from .core import (
    MAX_SPEED,
    MIN_FINAL_SPEED,
    MULTIPLIER_SNAP_THRESHOLD,
    PRESETS,
)


class OverrideLevel(IntEnum):
    """Override ladder: off, or one of the four presets in ascending order."""

    OFF = -1
    QUARTER = 0
    HALF = 1
    THREE_QUARTERS = 2
    FULL = 3

    @property
    def is_active(self) -> bool:
        return self is not OverrideLevel.OFF

    @property
    def preset(self) -> Optional[float]:
        """Pinned output fraction, or None when off."""
        if self is OverrideLevel.OFF:
            return None
        return PRESETS[self.value]

    def next(self) -> "OverrideLevel":
        """Step up the ladder, wrapping from the last preset back to off."""
        if self.value >= len(PRESETS) - 1:
            return OverrideLevel.OFF
        return OverrideLevel(self.value + 1)


@dataclass(frozen=True)
class SpeedBreakdown:
    """Every stage of one composition, from treadmill to game."""

    base: float
    override: Optional[float]
    post_multiplier: float
    effective_offset: float
    final: float


def to_override_level(override: Union[OverrideLevel, int]) -> OverrideLevel:
    """Convert a raw index to an OverrideLevel, refusing bools and floats."""
    if isinstance(override, bool) or not isinstance(override, int):
        raise ValueError(f"Override index must be an int, got {override!r}")
    return OverrideLevel(override)


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def snap_multiplier(value: float) -> float:
    """Coerce multipliers within the snap band around 1.0 to exactly 1.0.

    The band is inclusive on both edges, so 0.92 and 1.08 snap while
    0.91 and 1.09 are kept.
    """
    if round(abs(value - 1.0), 9) <= MULTIPLIER_SNAP_THRESHOLD:
        return 1.0
    return value


def effective_offset(post_multiplier: float, temp_offset: float) -> float:
    """Apply the minimum-floor policy to a temporary offset.

    A negative offset may pull the speed down to MIN_FINAL_SPEED but no
    further, and does nothing at all once the speed is already below it.
    Positive offsets are left for the final clamp.
    """
    if temp_offset >= 0:
        return temp_offset
    if post_multiplier >= MIN_FINAL_SPEED:
        return max(temp_offset, MIN_FINAL_SPEED - post_multiplier)
    return 0.0


def compute_breakdown(
    current_speed: float,
    target_speed: float,
    multiplier: float,
    override: Union[OverrideLevel, int],
    temp_offset: float,
    max_speed: float = MAX_SPEED,
) -> SpeedBreakdown:
    """Compose the final walk speed and keep the intermediate stages.

    Args:
        current_speed: Smoothed treadmill speed
        target_speed: Requested treadmill speed
        multiplier: Auto-walk multiplier, ignored while an override is active
        override: OverrideLevel or raw index in -1..3
        temp_offset: Momentary nudge
        max_speed: Treadmill speed that maps to a base of 1.0

    Returns:
        SpeedBreakdown with the final value in [0, 1]

    Raises:
        ValueError: If an input is not finite, override is not a valid index
            or max_speed is not positive
    """
    values = (current_speed, target_speed, multiplier, temp_offset, max_speed)
    if not all(math.isfinite(v) for v in values):
        raise ValueError(f"Inputs must be finite, got {values}")
    if max_speed <= 0:
        raise ValueError(f"max_speed must be positive, got {max_speed}")
    level = to_override_level(override)

    base = clamp(current_speed / max_speed, 0.0, 1.0)
    preset = level.preset

    if preset is not None:
        if target_speed >= 0.0:
            post_multiplier = preset
        else:
            # Reverse motion: never exceed what the belt actually does.
            # Unreachable while target speeds are forward-only.
            post_multiplier = min(base, preset)
    else:
        post_multiplier = base * multiplier

    offset = effective_offset(post_multiplier, temp_offset)
    final = clamp(post_multiplier + offset, 0.0, 1.0)

    return SpeedBreakdown(
        base=base,
        override=preset,
        post_multiplier=post_multiplier,
        effective_offset=offset,
        final=final,
    )


def compose_final_speed(
    current_speed: float,
    target_speed: float,
    multiplier: float,
    override: Union[OverrideLevel, int],
    temp_offset: float,
    max_speed: float = MAX_SPEED,
) -> float:
    """Return only the final normalized walk speed. See compute_breakdown."""
    return compute_breakdown(
        current_speed, target_speed, multiplier, override, temp_offset, max_speed
    ).final
