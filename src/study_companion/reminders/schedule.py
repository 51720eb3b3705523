"""Daily reminder schedule with quiet hours."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import TYPE_CHECKING, Optional

from study_companion.streak.status import StreakStatus, days_since

if TYPE_CHECKING:  # pragma: no cover - typing only
    from study_companion.settings import ReminderSettings

__all__ = [
    "ReminderError",
    "ReminderSchedule",
    "parse_clock",
    "should_remind",
]

_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


class ReminderError(RuntimeError):
    """Raised for invalid reminder configuration or state."""


def parse_clock(value: str) -> time:
    """Parse a 24h ``HH:MM`` string."""

    match = _CLOCK_RE.match(value.strip())
    if not match:
        raise ReminderError(f"expected HH:MM, got {value!r}")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise ReminderError(f"time out of range: {value!r}")
    return time(hour, minute)


@dataclass(frozen=True)
class ReminderSchedule:
    time: time
    quiet_start: time
    quiet_end: time
    enabled: bool = True

    @classmethod
    def from_settings(cls, settings: "ReminderSettings") -> "ReminderSchedule":
        return cls(
            time=settings.time,
            quiet_start=settings.quiet_start,
            quiet_end=settings.quiet_end,
            enabled=settings.enabled,
        )

    def in_quiet_hours(self, moment: datetime) -> bool:
        """True when ``moment``'s wall-clock time is inside quiet hours.

        The window is half-open ``[quiet_start, quiet_end)`` and may wrap
        midnight. Equal bounds mean there is no quiet window.
        """

        start, end = self.quiet_start, self.quiet_end
        if start == end:
            return False
        current = moment.time().replace(tzinfo=None)
        if start < end:
            return start <= current < end
        return current >= start or current < end

    def fire_time(self, day: datetime) -> datetime:
        """Moment the reminder for ``day``'s calendar date goes out.

        A reminder time inside quiet hours is deferred to ``quiet_end``,
        which may land on the following date.
        """

        moment = _at(day, self.time)
        if self.in_quiet_hours(moment):
            deferred = _at(moment, self.quiet_end)
            if deferred <= moment:
                deferred += timedelta(days=1)
            moment = deferred
        return moment

    def next_fire(self, now: datetime) -> datetime:
        """Next reminder moment strictly after ``now``."""

        for offset in (-1, 0):
            candidate = self.fire_time(now + timedelta(days=offset))
            if candidate > now:
                return candidate
        return self.fire_time(now + timedelta(days=1))

    def due_today(self, now: datetime) -> bool:
        """True once a reminder moment on ``now``'s date has passed."""

        return any(
            fire.date() == now.date() and fire <= now
            for fire in (
                self.fire_time(now - timedelta(days=1)),
                self.fire_time(now),
            )
        )


def should_remind(
    schedule: ReminderSchedule,
    status: StreakStatus,
    now: datetime,
    last_sent: Optional[datetime] = None,
) -> bool:
    """Decide whether a reminder is due at ``now``."""

    if not schedule.enabled:
        return False
    if status is StreakStatus.ACTIVE:
        return False
    if schedule.in_quiet_hours(now):
        return False
    if not schedule.due_today(now):
        return False
    if last_sent is not None and days_since(now, last_sent) <= 0:
        return False
    return True


def _at(day: datetime, clock: time) -> datetime:
    return day.replace(
        hour=clock.hour, minute=clock.minute, second=0, microsecond=0
    )
