"""
Core constants and result codes for the speed-normalization engine.
"""

from enum import Enum

# Treadmill input range (km/h-equivalent speed units)
MAX_SPEED = 10.0
SPEED_STEP = 0.5
DEFAULT_TARGET_SPEED = 5.0

# Smoothing
APPROACH_RATE = 0.01
SNAP_EPSILON = 0.05
FRAME_INTERVAL = 1 / 60

# Multiplier slider
MULTIPLIER_MIN = 0.0
MULTIPLIER_MAX = 2.0
MULTIPLIER_STEP = 0.05
DEFAULT_MULTIPLIER = 1.0
MULTIPLIER_SNAP_THRESHOLD = 0.08

# Override ladder, ascending
PRESETS = (0.25, 0.50, 0.75, 1.00)

# Final output
MIN_FINAL_SPEED = 0.1
TEMP_OFFSET_AMOUNT = 0.25

# Application metadata
__version__ = "0.1.0"
__author__ = "OpenCode"
__description__ = "Terminal preview of the treadmill to avatar walk-speed mapping"


class ResultCode(Enum):
    """Outcome of a user edit applied to the session state."""

    SUCCESS = "success"
    INVALID_PARAMETER = "invalid_parameter"
    NOT_PERMITTED = "not_permitted"
