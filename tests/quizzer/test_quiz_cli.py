from __future__ import annotations

from datetime import datetime, timezone

import pytest
from rich.console import Console

from fixtures import question_dict

from study_companion.core.store import DocumentStore
from study_companion.quizzer import _main as quiz_cli
from study_companion.quizzer.bank import QuestionBank
from study_companion.streak.tracker import StreakTracker

NOW = datetime(2024, 6, 10, 20, 0).astimezone()


def make_provider(commands: list[str]):
    iterator = iter(commands)

    def _provider() -> str:
        return next(iterator)

    return _provider


def _console() -> Console:
    return Console(record=True, width=120)


@pytest.fixture
def seeded(data_home, workspace):
    """Import three biology and one physics question into the workspace."""

    workspace.write_json(
        "bank.json",
        [
            question_dict("bio-1", topic="biology"),
            question_dict("bio-2", topic="biology"),
            question_dict("bio-3", topic="biology"),
            question_dict("phys-1", topic="physics", answer="A"),
        ],
    )
    code = quiz_cli.main(["import", str(workspace.root)], console=_console())
    assert code == 0
    return data_home


def _bank(home) -> QuestionBank:
    return QuestionBank(DocumentStore(home / "store"))


def test_import_reports_counts_and_skips(data_home, workspace):
    workspace.write_json(
        "bank.json", [question_dict("q1"), {"topic": "x", "prompt": "y"}]
    )
    console = _console()

    code = quiz_cli.main(["import", str(workspace.root)], console=console)

    output = console.export_text()
    assert code == 0
    assert "Imported 1 question(s) from 1 file(s)." in output
    assert "bank.json#2" in output


def test_import_unknown_path_is_usage_error(data_home, tmp_path):
    console = _console()

    code = quiz_cli.main(["import", str(tmp_path / "missing")], console=console)

    assert code == 2
    assert "Input not found" in console.export_text()


def test_list_and_topics(seeded):
    console = _console()

    assert quiz_cli.main(["topics"], console=console) == 0
    assert quiz_cli.main(["list", "--topic", "physics"], console=console) == 0

    output = console.export_text()
    assert "- biology (3)" in output
    assert "- physics (1)" in output
    assert "[physics] Prompt for phys-1?" in output
    assert "[biology]" not in output


def test_start_sequential_records_attempts_and_streak(seeded):
    console = _console()

    code = quiz_cli.main(
        ["start", "--mode", "sequential", "--count", "2", "--topic", "biology"],
        console=console,
        input_provider=make_provider(["b", "a", "submit"]),
        now=NOW,
    )

    assert code == 0
    output = console.export_text()
    assert "Quiz Summary" in output
    assert "Streak: 1 day(s)." in output
    attempts = {r.id: r.times_attempted for r in _bank(seeded).read_all()}
    assert attempts == {"bio-1": 1, "bio-2": 1, "bio-3": 0, "phys-1": 0}
    state = StreakTracker(DocumentStore(seeded / "store")).load()
    assert state.last_study_at == NOW


def test_unique_mode_prefers_unseen_questions(seeded):
    quiz_cli.main(
        ["start", "--mode", "sequential", "--count", "3", "--topic", "biology"],
        console=_console(),
        input_provider=make_provider(["a", "a", "a", "submit"]),
        now=NOW,
    )
    console = _console()

    quiz_cli.main(
        ["start", "--mode", "unique", "--count", "1", "--seed", "4"],
        console=console,
        input_provider=make_provider(["a", "submit"]),
        now=NOW,
    )

    attempts = {r.id: r.times_attempted for r in _bank(seeded).read_all()}
    assert attempts["phys-1"] == 1


def test_quit_does_not_record_attempts(seeded):
    code = quiz_cli.main(
        ["start", "--count", "2"],
        console=_console(),
        input_provider=make_provider(["a", "quit"]),
        now=NOW,
    )

    assert code == 0
    assert all(r.times_attempted == 0 for r in _bank(seeded).read_all())
    assert StreakTracker(DocumentStore(seeded / "store")).load().current == 0


def test_start_with_unmatched_topic_shows_empty_session(seeded):
    console = _console()

    code = quiz_cli.main(
        ["start", "--topic", "astronomy"],
        console=console,
        input_provider=make_provider([]),
    )

    assert code == 1
    assert "No questions match this session." in console.export_text()


def test_start_on_empty_bank(data_home):
    console = _console()

    code = quiz_cli.main(["start"], console=console)

    assert code == 1
    assert "Question bank is empty" in console.export_text()


def test_report_summarizes_progress(seeded):
    quiz_cli.main(
        ["start", "--mode", "sequential", "--count", "1"],
        console=_console(),
        input_provider=make_provider(["b", "submit"]),
        now=NOW,
    )
    console = _console()

    assert quiz_cli.main(["report"], console=console) == 0

    output = console.export_text()
    assert "Progress by topic" in output
    assert f"{NOW:%Y-%m-%d %H:%M}" in output


def test_invalid_config_is_usage_error(data_home, monkeypatch, capsys):
    monkeypatch.setenv("STUDY_COMPANION_QUIZ_DEFAULT_MODE", "shuffle")

    code = quiz_cli.main(["topics"], console=_console())

    assert code == 2
    assert "quiz.default_mode" in capsys.readouterr().err


def test_report_handles_naive_and_aware_timestamps(data_home, workspace):
    workspace.write_json(
        "mixed.json",
        [
            question_dict(
                "q1",
                topic="bio",
                times_attempted=1,
                last_attempted_at=datetime(2024, 6, 1, 10, 0),
            ),
            question_dict(
                "q2",
                topic="bio",
                times_attempted=1,
                last_attempted_at=datetime(2024, 6, 2, 10, 0, tzinfo=timezone.utc),
            ),
        ],
    )
    assert quiz_cli.main(["import", str(workspace.root)], console=_console()) == 0
    console = _console()

    assert quiz_cli.main(["report"], console=console) == 0

    latest = datetime(2024, 6, 2, 10, 0, tzinfo=timezone.utc).astimezone()
    assert f"{latest:%Y-%m-%d %H:%M}" in console.export_text()
