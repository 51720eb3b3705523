"""``study`` entry point that dispatches to the per-feature CLIs."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from importlib import import_module, metadata
from typing import Mapping, Optional, Sequence, TextIO


@dataclass(frozen=True)
class CommandSpec:
    """A ``study`` subcommand backed by a module exposing ``main(argv)``."""

    name: str
    summary: str
    module: str
    interactive: bool = False

    def run(self, argv: Sequence[str]) -> int:
        target = import_module(self.module).main
        args = list(argv)
        saved = sys.argv
        sys.argv = [f"study {self.name}", *args]
        try:
            result = target(args)
        except SystemExit as exc:
            return _exit_code(exc.code)
        finally:
            sys.argv = saved
        return result if isinstance(result, int) else 0


COMMANDS: Mapping[str, CommandSpec] = {
    spec.name: spec
    for spec in (
        CommandSpec(
            "init",
            "Bootstrap the workspace and default study.toml.",
            "study_companion.workspace.cli",
        ),
        CommandSpec(
            "quiz",
            "Import questions, review progress and run quiz sessions.",
            "study_companion.quizzer._main",
            interactive=True,
        ),
        CommandSpec(
            "streak",
            "Show the current study streak.",
            "study_companion.streak.cli",
        ),
        CommandSpec(
            "remind",
            "Show a study reminder when one is due (run from cron).",
            "study_companion.reminders.runner",
        ),
    )
}


def format_command_table() -> str:
    width = max(len(name) for name in COMMANDS)
    rows = ["Available commands:"]
    for spec in COMMANDS.values():
        flag = " (interactive)" if spec.interactive else ""
        rows.append(f"  {spec.name:<{width}}  {spec.summary}{flag}")
    return "\n".join(rows)


def format_usage() -> str:
    return "\n".join(
        [
            "Usage: study <command> [args...]",
            "Run `study list` for commands or `study help <name>` for details.",
            "",
            format_command_table(),
        ]
    )


def _emit(text: str, stream: Optional[TextIO] = None) -> None:
    print(text, file=stream or sys.stdout)


def _unknown(name: str) -> int:
    _emit(f"Unknown command '{name}'.", sys.stderr)
    _emit(format_command_table(), sys.stderr)
    return 2


def _show_version() -> int:
    try:
        _emit(metadata.version("study-companion"))
    except metadata.PackageNotFoundError:
        _emit("unknown")
    return 0


def _show_help(argv: Sequence[str]) -> int:
    if not argv:
        _emit(format_usage())
        return 0
    spec = COMMANDS.get(argv[0])
    if spec is None:
        return _unknown(argv[0])
    _emit(f"{spec.name}: {spec.summary}")
    _emit(f"Run `study {spec.name} --help` for CLI-specific options.")
    return 0


def _exit_code(code: object) -> int:
    if code is None:
        return 0
    if isinstance(code, int):
        return code
    _emit(str(code), sys.stderr)
    return 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        _emit(format_usage())
        return 2

    head, tail = args[0], args[1:]
    if head in ("-h", "--help"):
        _emit(format_usage())
        return 0
    if head in ("-V", "--version", "version"):
        return _show_version()
    if head == "list":
        _emit(format_command_table())
        return 0
    if head == "help":
        return _show_help(tail)

    spec = COMMANDS.get(head)
    if spec is None:
        return _unknown(head)
    return spec.run(tail)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
