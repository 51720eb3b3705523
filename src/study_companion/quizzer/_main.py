"""CLI for ``study quiz``: import, browse and practise questions."""

from __future__ import annotations

import argparse
import random
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from study_companion.core.store import StoreError
from study_companion.runtime import (
    CommandContext,
    add_context_arguments,
    open_context,
    overrides_from_args,
)
from study_companion.settings import SettingsError
from study_companion.streak.tracker import StreakTracker

from .bank import QuestionBank
from .ingest import QuestionImportError, import_question_files
from .selection import ANY_TOPIC, SelectionMode, SelectionRequest, select
from .session import InputProvider, run_quiz_session


def _cmd_import(args: argparse.Namespace, ctx: CommandContext, console: Console) -> int:
    bank = QuestionBank(ctx.store)
    try:
        report = import_question_files(
            [Path(p).expanduser() for p in args.paths],
            bank,
            extensions=args.extensions,
            level_limit=int(args.level_limit),
            max_workers=int(args.workers),
            logger=ctx.logger,
        )
    except QuestionImportError as exc:
        console.print(f"Error: {exc}", style="red", markup=False)
        return 2
    if not report.files:
        console.print("No matching question files found.")
        return 1
    console.print(
        f"Imported {report.imported} question(s) from "
        f"{len(report.files)} file(s)."
    )
    if report.errors:
        console.print(f"[yellow]Skipped {report.skipped} entr(y/ies):[/]")
        for message in report.errors:
            console.print(f"  - {message}", markup=False)
    return report.exit_code


def _cmd_list(args: argparse.Namespace, ctx: CommandContext, console: Console) -> int:
    questions = QuestionBank(ctx.store).read_all(args.topic)
    if not questions:
        console.print("No questions to show with given filters.")
        return 1
    for q in questions:
        console.print(f"[{q.topic}] {q.prompt[:100]}", markup=False)
    return 0


def _cmd_topics(args: argparse.Namespace, ctx: CommandContext, console: Console) -> int:
    topics = QuestionBank(ctx.store).topics()
    if not topics:
        console.print("Question bank is empty. Run 'study quiz import'.")
        return 1
    for name, count in topics.items():
        console.print(f"- {name} ({count})", markup=False)
    return 0


def _cmd_report(args: argparse.Namespace, ctx: CommandContext, console: Console) -> int:
    questions = QuestionBank(ctx.store).read_all()
    if not questions:
        console.print("Question bank is empty. Run 'study quiz import'.")
        return 1
    rows: dict[str, dict[str, object]] = {}
    for q in questions:
        row = rows.setdefault(
            q.topic,
            {"questions": 0, "attempts": 0, "unseen": 0, "last": None},
        )
        row["questions"] += 1  # type: ignore[operator]
        row["attempts"] += q.times_attempted  # type: ignore[operator]
        if q.times_attempted == 0:
            row["unseen"] += 1  # type: ignore[operator]
        last = row["last"]
        if q.last_attempted_at and (last is None or q.last_attempted_at > last):  # type: ignore[operator]
            row["last"] = q.last_attempted_at

    table = Table(title="Progress by topic", box=box.SIMPLE)
    table.add_column("Topic")
    table.add_column("Questions", justify="right")
    table.add_column("Attempts", justify="right")
    table.add_column("Never attempted", justify="right")
    table.add_column("Last attempt")
    for topic in sorted(rows, key=str.lower):
        row = rows[topic]
        last = row["last"]
        table.add_row(
            topic,
            str(row["questions"]),
            str(row["attempts"]),
            str(row["unseen"]),
            f"{last.astimezone():%Y-%m-%d %H:%M}" if last else "-",
        )
    console.print(table)
    return 0


def _cmd_start(
    args: argparse.Namespace,
    ctx: CommandContext,
    console: Console,
    *,
    input_provider: Optional[InputProvider] = None,
    now: Optional[datetime] = None,
) -> int:
    """Select questions, run a Rich session, then persist attempts.

    Attempts and the streak are only recorded when the session is
    submitted.
    """
    bank = QuestionBank(ctx.store)
    pool = bank.read_all()
    if not pool:
        console.print("Question bank is empty. Run 'study quiz import'.")
        return 1

    quiz = ctx.settings.quiz
    request = SelectionRequest(
        count=quiz.default_count,
        topic=args.topic or ANY_TOPIC,
        mode=quiz.default_mode,
    )
    ids = select(pool, request, rng=random.Random(args.seed))
    ctx.logger.info(
        "Selected questions",
        extra={
            "mode": request.mode.value,
            "topic": request.topic,
            "requested": request.count,
            "selected": len(ids),
            "pool": len(pool),
        },
    )

    show_explanations = (
        quiz.show_explanations if args.explain is None else args.explain
    )
    provider = input_provider or (lambda: console.input("> "))
    result = run_quiz_session(
        bank.get_many(ids),
        console,
        provider,
        show_explanations=show_explanations,
    )
    ctx.logger.info(
        "Quiz session finished",
        extra={
            "exit_action": result.exit_action,
            "correct": result.summary.correct_answers,
            "answered": result.summary.answered_questions,
        },
    )
    if result.exit_action == "empty":
        return 1
    if result.exit_action != "submitted":
        return 0

    answered = result.answered_ids()
    when = now or datetime.now().astimezone()
    bank.record_attempts(answered, when)
    if answered:
        state = StreakTracker(ctx.store).record_study(when)
        console.print(f"Streak: {state.current} day(s).")
    return 0


def build_arg_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    add_context_arguments(common)

    p = argparse.ArgumentParser(
        prog="study quiz",
        description="Import questions and run quiz sessions",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    sub = p.add_subparsers(dest="command", required=True)

    sp_import = sub.add_parser(
        "import", parents=[common], help="Import question files"
    )
    sp_import.add_argument("paths", nargs="+")
    sp_import.add_argument(
        "--extensions",
        nargs="+",
        default=["json", "jsonl", "csv"],
        help="File extensions to include for discovery",
    )
    sp_import.add_argument(
        "--level-limit",
        type=int,
        default=0,
        help="Directory depth limit (0 = no limit)",
    )
    sp_import.add_argument(
        "--workers", type=int, default=4, help="Parser threads"
    )

    sp_list = sub.add_parser("list", parents=[common], help="List questions")
    sp_list.add_argument("--topic")

    sub.add_parser("topics", parents=[common], help="List topics")
    sub.add_parser(
        "report", parents=[common], help="Show progress by topic"
    )

    sp_start = sub.add_parser(
        "start", parents=[common], help="Start a quiz session"
    )
    sp_start.add_argument("--count", type=int)
    sp_start.add_argument("--topic")
    sp_start.add_argument(
        "--mode", choices=[m.value for m in SelectionMode]
    )
    sp_start.add_argument("--seed", type=int)
    sp_start.add_argument("--explain", dest="explain", action="store_true")
    sp_start.add_argument("--no-explain", dest="explain", action="store_false")
    sp_start.set_defaults(explain=None)
    return p


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    console: Optional[Console] = None,
    input_provider: Optional[InputProvider] = None,
    now: Optional[datetime] = None,
) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    console = console or Console()

    try:
        ctx = open_context(
            "quizzer",
            config_path=args.config,
            workspace_path=args.workspace,
            overrides=overrides_from_args(args),
        )
    except SettingsError as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return 2

    try:
        if args.command == "import":
            return _cmd_import(args, ctx, console)
        if args.command == "list":
            return _cmd_list(args, ctx, console)
        if args.command == "topics":
            return _cmd_topics(args, ctx, console)
        if args.command == "report":
            return _cmd_report(args, ctx, console)
        if args.command == "start":
            return _cmd_start(
                args, ctx, console, input_provider=input_provider, now=now
            )
    except StoreError as exc:
        ctx.logger.error("Store failure", extra={"error": str(exc)})
        sys.stderr.write(f"Error: {exc}\n")
        return 1
    parser.print_help()  # pragma: no cover - argparse enforces commands
    return 2
