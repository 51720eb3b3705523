"""Standalone reminder check.

Designed to be launched by an external scheduler (cron, launchd, a systemd
timer) as ``study remind`` or ``python -m study_companion.reminders``. Each
run bootstraps its own settings, logger and store, decides whether a
reminder is due, prints it, and exits.
"""

from __future__ import annotations

import argparse
import sys
from datetime import datetime
from pathlib import Path
from typing import Mapping, Optional, Sequence

from rich.console import Console
from rich.panel import Panel

from study_companion.core.store import DocumentStore, StoreError
from study_companion.runtime import (
    add_context_arguments,
    open_context,
    overrides_from_args,
)
from study_companion.settings import SettingsError, SettingsOverrides
from study_companion.streak.status import StreakStatus
from study_companion.streak.tracker import PROFILE_COLLECTION, StreakTracker

from .schedule import ReminderSchedule, should_remind

__all__ = ["REMINDER_KEY", "run_reminder_check", "main"]

REMINDER_KEY = "reminder"

_MESSAGES = {
    StreakStatus.NEARLY_EXPIRING: (
        "You studied yesterday. A short quiz today keeps your "
        "{current}-day streak alive."
    ),
    StreakStatus.EXPIRED: (
        "Time for a study session. Run `study quiz start` to begin a new "
        "streak."
    ),
}


def run_reminder_check(
    *,
    now: Optional[datetime] = None,
    env: Optional[Mapping[str, str]] = None,
    console: Optional[Console] = None,
    workspace_path: Optional[Path] = None,
    config_path: Optional[Path] = None,
    show_next: bool = False,
    overrides: Optional[SettingsOverrides] = None,
) -> int:
    """Run one reminder check and return a process exit code."""

    console = console or Console()
    now = now or datetime.now().astimezone()
    try:
        ctx = open_context(
            "reminders",
            config_path=config_path,
            workspace_path=workspace_path,
            overrides=overrides,
            env=env,
        )
    except SettingsError as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return 2

    schedule = ReminderSchedule.from_settings(ctx.settings.reminders)
    try:
        tracker = StreakTracker(ctx.store)
        state = tracker.load()
        status = tracker.status(now)
        last_sent = _last_sent(ctx.store)
        due = should_remind(schedule, status, now, last_sent)
        ctx.logger.info(
            "Reminder check",
            extra={
                "status": status.value,
                "due": due,
                "enabled": schedule.enabled,
                "last_sent": last_sent,
            },
        )
        if due:
            message = _MESSAGES[status].format(current=state.current)
            console.print(
                Panel(message, title="Study reminder", border_style="cyan")
            )
            ctx.store.put(
                PROFILE_COLLECTION,
                REMINDER_KEY,
                {"last_sent_at": now.isoformat(), "status": status.value},
            )
    except StoreError as exc:
        ctx.logger.error("Reminder check failed", extra={"error": str(exc)})
        sys.stderr.write(f"Error: {exc}\n")
        return 1

    if show_next:
        if schedule.enabled:
            upcoming = schedule.next_fire(now)
            console.print(f"Next reminder: {upcoming:%Y-%m-%d %H:%M}")
        else:
            console.print("Reminders are disabled.")
    return 0


def _last_sent(store: DocumentStore) -> Optional[datetime]:
    payload = store.get(PROFILE_COLLECTION, REMINDER_KEY) or {}
    raw = payload.get("last_sent_at")
    if not raw:
        return None
    try:
        return datetime.fromisoformat(str(raw))
    except ValueError as exc:
        raise StoreError(f"Stored reminder timestamp is invalid: {raw!r}") from exc


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="study remind",
        description=(
            "Show a study reminder when one is due. Schedule this command "
            "with cron or a similar tool."
        ),
    )
    add_context_arguments(parser)
    parser.add_argument(
        "--next",
        dest="show_next",
        action="store_true",
        help="Also print when the next reminder is scheduled.",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(list(argv) if argv is not None else None)
    return run_reminder_check(
        workspace_path=args.workspace,
        config_path=args.config,
        show_next=args.show_next,
        overrides=overrides_from_args(args),
    )
