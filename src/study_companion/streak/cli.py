"""CLI entry point for ``study streak``."""

from __future__ import annotations

import argparse
import sys
from datetime import datetime
from typing import Sequence

from rich.console import Console

from study_companion.core.store import StoreError
from study_companion.runtime import (
    add_context_arguments,
    open_context,
    overrides_from_args,
)
from study_companion.settings import SettingsError

from .status import StreakStatus
from .tracker import StreakTracker

_STATUS_LABELS = {
    StreakStatus.ACTIVE: "[green]active[/] (studied today)",
    StreakStatus.NEARLY_EXPIRING: "[yellow]nearly expiring[/] (study today)",
    StreakStatus.EXPIRED: "[red]expired[/]",
}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="study streak",
        description="Show the current study streak.",
    )
    add_context_arguments(parser)
    return parser


def main(
    argv: Sequence[str] | None = None,
    *,
    console: Console | None = None,
    now: datetime | None = None,
) -> int:
    args = _build_parser().parse_args(list(argv) if argv is not None else None)
    console = console or Console()
    now = now or datetime.now().astimezone()

    try:
        ctx = open_context(
            "streak",
            config_path=args.config,
            workspace_path=args.workspace,
            overrides=overrides_from_args(args),
        )
    except SettingsError as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return 2

    try:
        tracker = StreakTracker(ctx.store)
        state = tracker.load()
        status = tracker.status(now)
    except StoreError as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return 1

    console.print(f"Streak: {_STATUS_LABELS[status]}")
    console.print(f"Current: {state.effective_current(now)} day(s)")
    console.print(f"Longest: {state.longest} day(s)")
    if state.last_study_at is not None:
        console.print(f"Last study: {state.last_study_at:%Y-%m-%d %H:%M}")
    ctx.logger.info(
        "Streak shown",
        extra={"status": status.value, "current": state.current},
    )
    return 0
