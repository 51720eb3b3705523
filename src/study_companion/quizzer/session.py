"""Rich-powered quiz session controller.

The loop renders one question at a time, reads commands from an injectable
input provider and returns a :class:`QuizSessionResult`. Choosing which
questions to ask happens before the loop (``selection``) and persisting
attempts happens after it (``bank``), so nothing here touches the store.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Literal, Sequence

from rich import box
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .records import QuestionRecord
from .summary import (
    QuestionResponse,
    QuizSummary,
    aggregate_summary,
    summarize_results,
)

__all__ = [
    "InputProvider",
    "ExitAction",
    "QuizSessionResult",
    "QuizSessionState",
    "SessionCommand",
    "parse_session_command",
    "run_quiz_session",
]

InputProvider = Callable[[], str]
ExitAction = Literal["submitted", "quit", "empty"]
CommandType = Literal["next", "prev", "submit", "quit", "select"]

_ALIASES: dict[str, CommandType] = {
    "n": "next",
    "next": "next",
    "p": "prev",
    "prev": "prev",
    "previous": "prev",
    "s": "submit",
    "submit": "submit",
    "q": "quit",
    "quit": "quit",
    "exit": "quit",
}


@dataclass(frozen=True)
class QuizSessionResult:
    responses: list[QuestionResponse]
    summary: QuizSummary
    exit_action: ExitAction

    def answered_ids(self) -> list[str]:
        """Ids of questions that received a selection, in session order."""

        return [r.question_id for r in self.responses if r.selected]


@dataclass(frozen=True)
class SessionCommand:
    type: CommandType
    choice: str | None = None


@dataclass
class QuizSessionState:
    """Cursor and selections for one session."""

    questions: list[QuestionRecord]
    show_explanations: bool = True
    index: int = 0
    selections: dict[str, str] = field(default_factory=dict)

    @property
    def total_questions(self) -> int:
        return len(self.questions)

    @property
    def current(self) -> QuestionRecord:
        return self.questions[self.index]

    @property
    def is_last(self) -> bool:
        return self.index >= self.total_questions - 1

    def answered_count(self) -> int:
        return len(self.selections)

    def select(self, choice_key: str) -> bool:
        choice = self.current.choice_for(choice_key)
        if choice is None:
            return False
        self.selections[self.current.id] = choice.key
        return True

    def next(self) -> None:
        self.index = min(self.index + 1, self.total_questions - 1)

    def previous(self) -> None:
        self.index = max(self.index - 1, 0)

    def selected_for(
        self, question: QuestionRecord | None = None
    ) -> str | None:
        return self.selections.get((question or self.current).id)

    def available_choice_keys(self) -> list[str]:
        return [choice.key for choice in self.current.choices]


def parse_session_command(raw: str | None) -> SessionCommand | None:
    """Turn console input into a command, or ``None`` when unrecognized.

    A single letter that is not an alias selects that choice.
    """

    text = (raw or "").strip()
    if not text:
        return None
    alias = _ALIASES.get(text.lower())
    if alias is not None:
        return SessionCommand(alias)
    if len(text) == 1 and text.isalpha():
        return SessionCommand("select", text.upper())
    return None


def run_quiz_session(
    questions: Sequence[QuestionRecord],
    console: Console,
    input_provider: InputProvider,
    *,
    show_explanations: bool = True,
) -> QuizSessionResult:
    """Run an interactive quiz session over ``questions`` in order.

    Answering a question moves on to the next one. The summary is only
    rendered when the user submits.
    """

    state = QuizSessionState(
        list(questions), show_explanations=show_explanations
    )
    if not state.questions:
        console.print(
            Panel(
                "No questions match this session.",
                title="Quiz Session",
                border_style="yellow",
            )
        )
        return QuizSessionResult([], QuizSummary.empty(), "empty")

    exit_action = _session_loop(state, console, input_provider)

    responses = summarize_results(
        state.questions,
        state.selections,
        include_explanations=show_explanations,
    )
    result = QuizSessionResult(
        responses, aggregate_summary(responses), exit_action
    )
    if exit_action == "submitted":
        _render_summary(console, result)
    return result


def _session_loop(
    state: QuizSessionState,
    console: Console,
    input_provider: InputProvider,
) -> ExitAction:
    while True:
        console.print()
        console.print(_question_panel(state))
        try:
            raw = input_provider()
        except (EOFError, KeyboardInterrupt, StopIteration):
            console.print("\n[bold yellow]Session interrupted.[/]")
            return "quit"

        command = parse_session_command(raw)
        if command is None:
            console.print("[red]Unrecognized command. Try again.[/]")
        elif command.type == "select":
            if state.select(command.choice or ""):
                console.print(f"Selected [bold]{command.choice}[/].")
                state.next()
            else:
                console.print(
                    f"[red]'{command.choice}' is not a valid choice for "
                    "this question.[/]"
                )
        elif command.type == "next":
            state.next()
        elif command.type == "prev":
            state.previous()
        elif command.type == "quit":
            console.print("\n[bold yellow]Ending session without submission.[/]")
            return "quit"
        else:
            return "submitted"


def _question_panel(state: QuizSessionState) -> Panel:
    question = state.current
    selected = state.selected_for()

    choices = Table(show_header=False, box=None, expand=True, padding=(0, 1))
    choices.add_column("Key", justify="center", style="cyan", width=3)
    choices.add_column("Choice")
    for choice in question.choices:
        marked = choice.key == selected
        label = Text(("• " if marked else "  ") + choice.text)
        if marked:
            label.stylize("bold green")
        choices.add_row(choice.key, label)

    keys = ", ".join(state.available_choice_keys())
    footer = Text(
        f"Answered {state.answered_count()}/{state.total_questions} | "
        f"Commands: choices [{keys}], n (next), p (prev), submit, quit",
        style="dim",
    )
    title = Text.assemble(
        (f"Question {state.index + 1}", "bold cyan"),
        (f" / {state.total_questions}", "dim"),
        (f"  [{question.topic}]", "magenta"),
    )
    return Panel(
        Group(Text(question.prompt, style="bold"), choices, footer),
        title=title,
        title_align="left",
        border_style="cyan",
    )


def _render_summary(console: Console, result: QuizSessionResult) -> None:
    summary = result.summary
    console.print()
    console.rule(Text("Quiz Summary", style="bold magenta"))

    overview = Table(show_header=False, box=box.MINIMAL_DOUBLE_HEAD)
    overview.add_column("Metric", style="bold")
    overview.add_column("Value", justify="right")
    for label, value in (
        ("Total questions", summary.total_questions),
        ("Answered", summary.answered_questions),
        ("Correct", summary.correct_answers),
        ("Accuracy", f"{summary.accuracy:.1%}"),
    ):
        overview.add_row(label, str(value))
    console.print(overview)

    if len(summary.per_topic) > 1:
        topics = Table(title="Per topic", box=box.SIMPLE)
        for column in ("Topic", "Asked", "Correct", "Accuracy"):
            topics.add_column(column, justify="left" if column == "Topic" else "right")
        for name, metrics in summary.per_topic.items():
            topics.add_row(
                name,
                str(metrics.asked),
                str(metrics.correct),
                f"{metrics.accuracy:.1%}",
            )
        console.print(topics)

    answers = Table(title="Responses", box=box.SIMPLE, expand=True)
    answers.add_column("#", justify="right")
    answers.add_column("Question", overflow="fold")
    answers.add_column("Your answer")
    answers.add_column("Correct answer")
    answers.add_column("Result", justify="center")
    for number, response in enumerate(result.responses, start=1):
        answers.add_row(
            str(number),
            response.prompt,
            response.selected or "-",
            response.answer,
            "correct" if response.is_correct else "wrong",
        )
    console.print(answers)

    for response in result.responses:
        if response.explanation:
            console.print(
                Panel(
                    response.explanation,
                    title=f"Explanation: {response.question_id}",
                    border_style="green" if response.is_correct else "red",
                )
            )
