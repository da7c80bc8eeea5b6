"""
AutoWalk - Treadmill to Avatar Walk-Speed Preview

Maps a treadmill speed onto the normalized walk speed used by an avatar
controller, with multiplier, override presets and hold-to-nudge offsets.
"""

__version__ = "0.1.0"
__author__ = "OpenCode"
__description__ = "Terminal preview of the treadmill to avatar walk-speed mapping"

from .controller import AutoWalkController
from .display import DisplayManager
from .engine import OverrideLevel, compose_final_speed, compute_breakdown

__all__ = [
    "AutoWalkController",
    "DisplayManager",
    "OverrideLevel",
    "compose_final_speed",
    "compute_breakdown",
]
