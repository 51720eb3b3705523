"""Configuration loader for study-companion commands."""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass
from datetime import time
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Optional

from dotenv import find_dotenv, load_dotenv

from study_companion.core import config as core_config
from study_companion.core import workspace as workspace_mod
from study_companion.quizzer.selection import SelectionMode
from study_companion.reminders.schedule import ReminderError, parse_clock

CONFIG_FILENAME = "study.toml"
CONFIG_ENV = "STUDY_COMPANION_CONFIG"
ENV_PREFIX = "STUDY_COMPANION_"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}

_DEFAULTS: Mapping[str, Mapping[str, Any]] = {
    "quiz": {
        "default_count": 10,
        "default_mode": "unique",
        "show_explanations": True,
    },
    "reminders": {
        "enabled": True,
        "time": "19:00",
        "quiet_start": "22:00",
        "quiet_end": "07:00",
    },
    "logging": {"level": "INFO", "verbose": False},
}


class SettingsError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


@dataclass(frozen=True)
class QuizSettings:
    default_count: int
    default_mode: SelectionMode
    show_explanations: bool


@dataclass(frozen=True)
class ReminderSettings:
    enabled: bool
    time: time
    quiet_start: time
    quiet_end: time


@dataclass(frozen=True)
class LoggingSettings:
    level: str
    verbose: bool


@dataclass(frozen=True)
class Settings:
    """Fully resolved configuration for a command run."""

    quiz: QuizSettings
    reminders: ReminderSettings
    logging: LoggingSettings


@dataclass(frozen=True)
class SettingsOverrides:
    """CLI-sourced overrides applied on top of env and file options."""

    default_count: Optional[int] = None
    default_mode: Optional[str] = None
    log_level: Optional[str] = None
    verbose: Optional[bool] = None


@dataclass(frozen=True)
class LoadResult:
    """Loaded settings together with the workspace they were resolved in."""

    settings: Settings
    layout: workspace_mod.WorkspaceLayout
    config_path: Optional[Path]


def load_settings(
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[SettingsOverrides] = None,
    env: Optional[Mapping[str, str]] = None,
    workspace_path: Optional[Path] = None,
) -> LoadResult:
    """Load settings applying precedence CLI > env > TOML > defaults.

    When ``env`` is omitted the process environment is used, after loading
    any ``.env`` file found from the working directory upwards.
    """

    if env is None:
        load_dotenv(find_dotenv(usecwd=True))
        env = os.environ
    overrides = overrides or SettingsOverrides()

    try:
        layout = workspace_mod.ensure_workspace(env=env, path=workspace_path)
    except workspace_mod.WorkspaceError as exc:
        raise SettingsError(str(exc)) from exc

    requested = _resolve_config_path(
        config_path=config_path,
        env=env,
        default_path=layout.path_for("config") / CONFIG_FILENAME,
    )

    table = _default_table()
    loaded_path: Optional[Path] = None
    if requested.exists():
        try:
            core_config.merge_defaults(
                table, core_config.load_toml(requested)
            )
        except core_config.TomlConfigError as exc:
            raise SettingsError(str(exc)) from exc
        loaded_path = requested
    elif config_path is not None or (env.get(CONFIG_ENV) or "").strip():
        raise SettingsError(f"Config file not found: {requested}")

    _apply_env(table, env)
    _apply_overrides(table, overrides)

    settings = Settings(
        quiz=_build_quiz(table["quiz"]),
        reminders=_build_reminders(table["reminders"]),
        logging=_build_logging(table["logging"]),
    )
    return LoadResult(settings=settings, layout=layout, config_path=loaded_path)


def _default_table() -> MutableMapping[str, MutableMapping[str, Any]]:
    return copy.deepcopy(dict(_DEFAULTS))  # type: ignore[arg-type]


def _resolve_config_path(
    *,
    config_path: Optional[Path],
    env: Mapping[str, str],
    default_path: Path,
) -> Path:
    if config_path is not None:
        return config_path.expanduser()
    env_candidate = (env.get(CONFIG_ENV) or "").strip()
    if env_candidate:
        return Path(env_candidate).expanduser()
    return default_path


def _apply_env(
    table: MutableMapping[str, MutableMapping[str, Any]],
    env: Mapping[str, str],
) -> None:
    # STUDY_COMPANION_<SECTION>_<KEY>, e.g. STUDY_COMPANION_QUIZ_DEFAULT_MODE
    for section, values in table.items():
        for key, current in list(values.items()):
            name = f"{ENV_PREFIX}{section}_{key}".upper()
            raw = env.get(name)
            if raw is None or not raw.strip():
                continue
            values[key] = _coerce_env_value(raw.strip(), current, name)


def _coerce_env_value(raw: str, current: Any, name: str) -> Any:
    if isinstance(current, bool):
        lowered = raw.lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        raise SettingsError(f"{name} must be a boolean, got {raw!r}.")
    if isinstance(current, int):
        try:
            return int(raw)
        except ValueError as exc:
            raise SettingsError(
                f"{name} must be an integer, got {raw!r}."
            ) from exc
    return raw


def _apply_overrides(
    table: MutableMapping[str, MutableMapping[str, Any]],
    overrides: SettingsOverrides,
) -> None:
    if overrides.default_count is not None:
        table["quiz"]["default_count"] = overrides.default_count
    if overrides.default_mode is not None:
        table["quiz"]["default_mode"] = overrides.default_mode
    if overrides.log_level is not None:
        table["logging"]["level"] = overrides.log_level
    if overrides.verbose is not None:
        table["logging"]["verbose"] = overrides.verbose


def _require_bool(value: Any, *, field: str) -> bool:
    if not isinstance(value, bool):
        raise SettingsError(f"'{field}' must be a boolean.")
    return value


def _require_positive_int(value: Any, *, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise SettingsError(f"'{field}' must be a positive integer.")
    return value


def _require_clock(value: Any, *, field: str) -> time:
    if not isinstance(value, str):
        raise SettingsError(f"'{field}' must be an HH:MM string.")
    try:
        return parse_clock(value)
    except ReminderError as exc:
        raise SettingsError(f"'{field}': {exc}") from exc


def _build_quiz(section: Mapping[str, Any]) -> QuizSettings:
    raw_mode = section.get("default_mode")
    if not isinstance(raw_mode, str):
        raise SettingsError("'quiz.default_mode' must be a string.")
    try:
        mode = SelectionMode.from_value(raw_mode)
    except ValueError as exc:
        raise SettingsError(f"'quiz.default_mode': {exc}") from exc
    return QuizSettings(
        default_count=_require_positive_int(
            section.get("default_count"), field="quiz.default_count"
        ),
        default_mode=mode,
        show_explanations=_require_bool(
            section.get("show_explanations"), field="quiz.show_explanations"
        ),
    )


def _build_reminders(section: Mapping[str, Any]) -> ReminderSettings:
    return ReminderSettings(
        enabled=_require_bool(
            section.get("enabled"), field="reminders.enabled"
        ),
        time=_require_clock(section.get("time"), field="reminders.time"),
        quiet_start=_require_clock(
            section.get("quiet_start"), field="reminders.quiet_start"
        ),
        quiet_end=_require_clock(
            section.get("quiet_end"), field="reminders.quiet_end"
        ),
    )


def _build_logging(section: Mapping[str, Any]) -> LoggingSettings:
    level = section.get("level")
    if not isinstance(level, str) or level.strip().upper() not in _LOG_LEVELS:
        raise SettingsError(
            "'logging.level' must be one of "
            "DEBUG, INFO, WARNING, ERROR, CRITICAL."
        )
    return LoggingSettings(
        level=level.strip().upper(),
        verbose=_require_bool(section.get("verbose"), field="logging.verbose"),
    )
