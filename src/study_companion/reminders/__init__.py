"""Daily study reminders.

The reminder check itself lives in :mod:`study_companion.reminders.runner`
and is meant to run as its own short-lived process.
"""

from __future__ import annotations

from .schedule import ReminderError, ReminderSchedule, parse_clock, should_remind

__all__ = [
    "ReminderError",
    "ReminderSchedule",
    "parse_clock",
    "should_remind",
]
