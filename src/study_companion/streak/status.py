"""Pure streak calculations.

Every function takes ``now`` explicitly; nothing here reads the clock.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Optional

__all__ = [
    "StreakStatus",
    "StreakState",
    "days_since",
    "classify",
    "advance",
]


class StreakStatus(Enum):
    ACTIVE = "active"
    NEARLY_EXPIRING = "nearly_expiring"
    EXPIRED = "expired"


def days_since(now: datetime, last: datetime) -> int:
    """Whole calendar days between ``last`` and ``now`` in ``now``'s zone.

    Mixing naive and aware datetimes compares wall-clock dates as given.
    """

    if now.tzinfo is not None and last.tzinfo is not None:
        last = last.astimezone(now.tzinfo)
    return (now.date() - last.date()).days


def classify(last_study: Optional[datetime], now: datetime) -> StreakStatus:
    """Classify the streak from the last study time.

    Same calendar day is active, the previous day is the grace window, and
    anything older (or no study at all) has expired.
    """

    if last_study is None:
        return StreakStatus.EXPIRED
    delta = days_since(now, last_study)
    if delta <= 0:
        return StreakStatus.ACTIVE
    if delta == 1:
        return StreakStatus.NEARLY_EXPIRING
    return StreakStatus.EXPIRED


@dataclass(frozen=True)
class StreakState:
    last_study_at: Optional[datetime] = None
    current: int = 0
    longest: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "last_study_at": (
                self.last_study_at.isoformat() if self.last_study_at else None
            ),
            "current": self.current,
            "longest": self.longest,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "StreakState":
        raw = payload.get("last_study_at")
        return cls(
            last_study_at=datetime.fromisoformat(raw) if raw else None,
            current=int(payload.get("current", 0) or 0),
            longest=int(payload.get("longest", 0) or 0),
        )

    def effective_current(self, now: datetime) -> int:
        """Current streak length as of ``now`` (0 once it has expired)."""

        if classify(self.last_study_at, now) is StreakStatus.EXPIRED:
            return 0
        return self.current


def advance(state: StreakState, now: datetime) -> StreakState:
    """Return the state after studying at ``now``."""

    status = classify(state.last_study_at, now)
    if status is StreakStatus.ACTIVE:
        current = max(state.current, 1)
    elif status is StreakStatus.NEARLY_EXPIRING:
        current = state.current + 1
    else:
        current = 1
    last = state.last_study_at
    if last is None or days_since(now, last) >= 0:
        last = now
    return StreakState(
        last_study_at=last,
        current=current,
        longest=max(state.longest, current),
    )
