import sys
import types

import pytest

from study_companion import cli


@pytest.fixture(autouse=True)
def fake_metadata(monkeypatch):
    """Ensure metadata.version is controllable during tests."""

    def fake_version(name: str) -> str:
        assert name == "study-companion"
        return "0.0-test"

    monkeypatch.setattr(cli.metadata, "version", fake_version)


def test_no_args_prints_usage_and_returns_error(capsys):
    code = cli.main([])
    captured = capsys.readouterr()
    assert code == 2
    assert "Usage: study" in captured.out
    assert "Available commands:" in captured.out


def test_list_outputs_command_table(capsys):
    code = cli.main(["list"])
    captured = capsys.readouterr()
    assert code == 0
    for name in ("init", "quiz", "streak", "remind"):
        assert name in captured.out
    assert "(interactive)" in captured.out


def test_help_known_and_unknown_command(capsys):
    assert cli.main(["help", "quiz"]) == 0
    assert "Run `study quiz --help`" in capsys.readouterr().out

    assert cli.main(["help", "rag"]) == 2
    assert "Unknown command 'rag'" in capsys.readouterr().err


@pytest.mark.parametrize("flag", ["version", "--version", "-V"])
def test_version_variants(flag, capsys):
    assert cli.main([flag]) == 0
    assert capsys.readouterr().out.strip() == "0.0-test"


def test_version_handles_missing_package(monkeypatch, capsys):
    def missing(name: str) -> str:
        raise cli.metadata.PackageNotFoundError(name)

    monkeypatch.setattr(cli.metadata, "version", missing)

    assert cli.main(["version"]) == 0
    assert capsys.readouterr().out.strip() == "unknown"


def test_unknown_command_errors(capsys):
    code = cli.main(["bogus"])
    captured = capsys.readouterr()
    assert code == 2
    assert "Unknown command" in captured.err


def test_dispatch_passes_arguments_and_restores_argv(monkeypatch):
    before = list(sys.argv)
    captured: dict[str, list[str]] = {}

    def fake_import(module_name: str):
        assert module_name == "study_companion.quizzer._main"

        def stub_main(argv):
            captured["argv"] = list(argv)
            captured["sys_argv"] = list(sys.argv)
            return 7

        return types.SimpleNamespace(main=stub_main)

    monkeypatch.setattr(cli, "import_module", fake_import)

    code = cli.main(["quiz", "start", "--count", "3"])

    assert code == 7
    assert captured["argv"] == ["start", "--count", "3"]
    assert captured["sys_argv"] == ["study quiz", "start", "--count", "3"]
    assert list(sys.argv) == before


@pytest.mark.parametrize(
    "exit_value,expected",
    [(None, 0), (5, 5), ("boom", 1)],
)
def test_dispatch_normalizes_system_exit(monkeypatch, exit_value, expected):
    def fake_import(module_name: str):
        def stub_main(argv):
            raise SystemExit(exit_value)

        return types.SimpleNamespace(main=stub_main)

    monkeypatch.setattr(cli, "import_module", fake_import)

    assert cli.main(["streak"]) == expected


def test_remind_runs_real_module(data_home, capsys):
    code = cli.main(["remind", "--workspace", str(data_home)])

    assert code == 0
    assert (data_home / "store").is_dir()


def test_argparse_errors_become_exit_code_two(data_home, capsys):
    code = cli.main(["quiz", "start", "--mode", "shuffle"])

    assert code == 2
    assert "invalid choice" in capsys.readouterr().err
