"""Study streak classification and tracking."""

from __future__ import annotations

from .status import (
    StreakState,
    StreakStatus,
    advance,
    classify,
    days_since,
)
from .tracker import StreakTracker

__all__ = [
    "StreakState",
    "StreakStatus",
    "StreakTracker",
    "advance",
    "classify",
    "days_since",
]
