"""Logging helpers shared across study-companion commands.

Each command logs to its own JSON-lines file under the workspace ``logs``
directory. Handlers installed here are tagged so repeated configuration
replaces them instead of stacking duplicates.
"""

from __future__ import annotations

import json
import logging
import sys
import tempfile
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

__all__ = [
    "JsonLogFormatter",
    "configure_logger",
]

_FILE_MARKER = "_study_companion_file"
_CONSOLE_MARKER = "_study_companion_console"

_STANDARD_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}


class JsonLogFormatter(logging.Formatter):
    """Render a record as one JSON object; ``extra`` fields are nested."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: dict[str, Any] = {
            "timestamp": created.isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        extra = {
            key: _jsonable(value)
            for key, value in vars(record).items()
            if key not in _STANDARD_ATTRS
        }
        if extra:
            payload["extra"] = extra
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = record.stack_info
        return json.dumps(payload, ensure_ascii=True)


def configure_logger(
    name: str,
    *,
    log_dir: Path,
    level: str = "INFO",
    verbose: bool = False,
    max_bytes: int = 2 * 1024 * 1024,
    backup_count: int = 3,
    filename: str | None = None,
) -> tuple[logging.Logger, Path]:
    """Return the logger ``name`` wired to a rotating JSON file.

    The file defaults to ``<last name segment>.log``. ``verbose`` lowers the
    file threshold to DEBUG and mirrors records to stderr.
    """

    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    log_name = filename or name.rsplit(".", 1)[-1] + ".log"
    path = _writable_log_path(log_dir, log_name)

    handler = _tagged(logger, _FILE_MARKER)
    if handler is not None and Path(handler.baseFilename) != path:  # type: ignore[attr-defined]
        _detach(logger, handler)
        handler = None
    if handler is None:
        handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        handler.setFormatter(JsonLogFormatter())
        setattr(handler, _FILE_MARKER, True)
        logger.addHandler(handler)
    handler.setLevel(logging.DEBUG if verbose else _coerce_level(level))

    console = _tagged(logger, _CONSOLE_MARKER)
    if verbose and console is None:
        console = logging.StreamHandler(stream=sys.stderr)
        console.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
        setattr(console, _CONSOLE_MARKER, True)
        logger.addHandler(console)
    elif not verbose and console is not None:
        _detach(logger, console)
    return logger, path


def _coerce_level(level: str) -> int:
    value = logging.getLevelName(str(level).upper())
    return value if isinstance(value, int) else logging.INFO


def _fallback_log_dir() -> Path:
    return Path(tempfile.gettempdir()) / "study-companion-logs"


def _writable_log_path(log_dir: Path, filename: str) -> Path:
    """Create ``log_dir/filename`` with private permissions.

    Falls back to a directory under the system temp dir when the requested
    location cannot be written.
    """

    candidates = [log_dir, _fallback_log_dir()]
    for directory in candidates:
        path = directory / filename
        try:
            directory.mkdir(parents=True, exist_ok=True)
            path.touch(exist_ok=True)
        except PermissionError:
            if directory is candidates[-1]:
                raise
            continue
        for target, mode in ((directory, 0o700), (path, 0o600)):
            try:
                target.chmod(mode)
            except PermissionError:  # pragma: no cover - depends on filesystem
                pass
        return path
    raise AssertionError("unreachable")  # pragma: no cover


def _tagged(logger: logging.Logger, marker: str) -> logging.Handler | None:
    return next(
        (h for h in logger.handlers if getattr(h, marker, False)), None
    )


def _detach(logger: logging.Logger, handler: logging.Handler) -> None:
    logger.removeHandler(handler)
    handler.close()


def _jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_jsonable(item) for item in value]
    return repr(value)
