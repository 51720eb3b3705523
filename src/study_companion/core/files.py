"""Locate question files on disk for ``study quiz import``."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator, Optional, Sequence, Set

__all__ = [
    "QUESTION_EXTENSIONS",
    "parse_extensions",
    "iter_text_files",
    "read_text_file",
]

QUESTION_EXTENSIONS = frozenset({"json", "jsonl", "csv"})


def parse_extensions(
    values: Optional[Sequence[object]],
    *,
    default: Optional[Iterable[str]] = None,
) -> Set[str]:
    """Lowercase ``values`` and drop leading dots.

    Blank and non-string entries are ignored; when nothing usable remains
    the ``default`` set (question formats unless given) is returned.
    """

    cleaned = {
        item.strip().lower().lstrip(".")
        for item in values or ()
        if isinstance(item, str)
    }
    cleaned.discard("")
    return cleaned or set(QUESTION_EXTENSIONS if default is None else default)


def iter_text_files(
    paths: Sequence[Path],
    extensions: Set[str],
    level_limit: int = 0,
) -> Iterator[Path]:
    """Yield files under ``paths`` whose suffix is in ``extensions``.

    Explicit files keep their input order. Directories are walked
    recursively and sorted by lowercase file name; ``level_limit`` caps the
    depth (1 means direct children, 0 means unlimited).
    """

    if level_limit < 0:
        raise ValueError("level_limit must be >= 0")

    for entry in map(Path, paths):
        if entry.is_dir():
            yield from _walk(entry, extensions, level_limit)
        elif entry.is_file():
            if _has_extension(entry, extensions):
                yield entry
        else:
            raise FileNotFoundError(f"Input not found: {entry}")


def _walk(root: Path, extensions: Set[str], level_limit: int) -> Iterator[Path]:
    matches = [
        child
        for child in root.rglob("*")
        if child.is_file()
        and _has_extension(child, extensions)
        and not (level_limit and len(child.relative_to(root).parts) > level_limit)
    ]
    yield from sorted(matches, key=lambda child: child.name.lower())


def _has_extension(path: Path, extensions: Set[str]) -> bool:
    return path.suffix.lower().lstrip(".") in extensions


def read_text_file(path: Path) -> str:
    """Read ``path`` as UTF-8, replacing undecodable bytes."""

    return Path(path).read_text(encoding="utf-8", errors="replace")
