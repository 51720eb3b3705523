"""Bulk import of question files into the question bank."""

from __future__ import annotations

import csv
import io
import json
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

from study_companion.core.files import (
    QUESTION_EXTENSIONS,
    iter_text_files,
    parse_extensions,
    read_text_file,
)

from .bank import QuestionBank
from .records import QuestionRecord, RecordError, record_from_dict

__all__ = [
    "SUPPORTED_EXTENSIONS",
    "QuestionImportError",
    "ImportReport",
    "import_question_files",
    "parse_question_file",
]

SUPPORTED_EXTENSIONS: tuple[str, ...] = tuple(sorted(QUESTION_EXTENSIONS))
_CHOICE_COLUMNS = ("A", "B", "C", "D", "E", "F")

_log = logging.getLogger(__name__)


class QuestionImportError(RuntimeError):
    """Raised when an import cannot start or a file cannot be parsed."""


@dataclass(frozen=True)
class ImportReport:
    """Aggregated results for an import run."""

    files: tuple[Path, ...]
    imported: int
    skipped: int
    errors: tuple[str, ...] = field(default_factory=tuple)

    @property
    def exit_code(self) -> int:
        return 1 if self.errors and not self.imported else 0


@dataclass(frozen=True)
class _ParsedFile:
    path: Path
    records: tuple[QuestionRecord, ...]
    errors: tuple[str, ...]


def import_question_files(
    paths: Sequence[Path],
    bank: QuestionBank,
    *,
    extensions: Optional[Sequence[str]] = None,
    level_limit: int = 0,
    max_workers: int = 4,
    logger: Optional[logging.Logger] = None,
) -> ImportReport:
    """Parse question files off the calling thread and store them in bulk.

    Files are parsed concurrently; the store is written once, from the
    calling thread, after every file has been parsed. Later files win when
    two files define the same question id.
    """

    log = logger or _log
    exts = parse_extensions(extensions, default=SUPPORTED_EXTENSIONS)
    unsupported = exts - set(SUPPORTED_EXTENSIONS)
    if unsupported:
        raise QuestionImportError(
            "Unsupported extensions: {0}".format(", ".join(sorted(unsupported)))
        )
    try:
        files = tuple(iter_text_files(paths, exts, level_limit))
    except (FileNotFoundError, ValueError) as exc:
        raise QuestionImportError(str(exc)) from exc

    log.info(
        "Starting question import",
        extra={"file_count": len(files), "extensions": sorted(exts)},
    )

    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as pool:
        parsed = list(pool.map(_parse_safely, files))

    merged: dict[str, QuestionRecord] = {}
    errors: list[str] = []
    for result in parsed:
        errors.extend(result.errors)
        for record in result.records:
            merged[record.id] = record
        log.debug(
            "Parsed question file",
            extra={
                "path": str(result.path),
                "records": len(result.records),
                "errors": len(result.errors),
            },
        )

    imported = bank.add_many(merged.values()) if merged else 0
    for message in errors:
        log.warning("Skipped question", extra={"reason": message})

    report = ImportReport(
        files=files,
        imported=imported,
        skipped=len(errors),
        errors=tuple(errors),
    )
    log.info(
        "Completed question import",
        extra={"imported": report.imported, "skipped": report.skipped},
    )
    return report


def parse_question_file(
    path: Path,
) -> tuple[list[QuestionRecord], list[str]]:
    """Parse ``path`` into records plus per-record error messages."""

    text = read_text_file(path)
    suffix = path.suffix.lower().lstrip(".")
    if suffix == "json":
        rows = _rows_from_json(text, path)
    elif suffix == "jsonl":
        rows = _rows_from_jsonl(text, path)
    elif suffix == "csv":
        rows = _rows_from_csv(text)
    else:
        raise QuestionImportError(f"Unsupported question file: {path}")

    records: list[QuestionRecord] = []
    errors: list[str] = []
    for index, row in enumerate(rows, start=1):
        if not isinstance(row, Mapping):
            errors.append(f"{path.name}#{index}: entry must be an object")
            continue
        try:
            records.append(record_from_dict(row))
        except RecordError as exc:
            errors.append(f"{path.name}#{index}: {exc}")
    return records, errors


def _parse_safely(path: Path) -> _ParsedFile:
    try:
        records, errors = parse_question_file(path)
    except (QuestionImportError, OSError) as exc:
        return _ParsedFile(path, (), (f"{path.name}: {exc}",))
    return _ParsedFile(path, tuple(records), tuple(errors))


def _rows_from_json(text: str, path: Path) -> list[Any]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise QuestionImportError(f"Invalid JSON in {path}: {exc}") from exc
    if isinstance(data, Mapping):
        data = data.get("questions")
    if not isinstance(data, list):
        raise QuestionImportError(
            f"{path} must contain a list or an object with 'questions'"
        )
    return data


def _rows_from_jsonl(text: str, path: Path) -> list[Any]:
    rows: list[Any] = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            rows.append(json.loads(line))
        except json.JSONDecodeError as exc:
            raise QuestionImportError(
                f"Invalid JSON on line {lineno} of {path}: {exc}"
            ) from exc
    return rows


def _rows_from_csv(text: str) -> list[dict[str, Any]]:
    reader = csv.DictReader(io.StringIO(text))
    return [_csv_row_to_question(row) for row in reader]


def _csv_row_to_question(row: Mapping[str, Optional[str]]) -> dict[str, Any]:
    clean = {
        key.strip(): (value or "").strip()
        for key, value in row.items()
        if isinstance(key, str)
    }
    choices = [
        {"key": column, "text": clean[column]}
        for column in _CHOICE_COLUMNS
        if clean.get(column)
    ]
    question: dict[str, Any] = {
        "topic": clean.get("topic", ""),
        "prompt": clean.get("prompt", ""),
        "choices": choices,
        "answer": clean.get("answer", ""),
    }
    if clean.get("id"):
        question["id"] = clean["id"]
    if clean.get("explanation"):
        question["explanation"] = clean["explanation"]
    return question

