"""Per-command bootstrap: settings, logger and document store."""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from study_companion.core.logging import configure_logger
from study_companion.core.store import DocumentStore
from study_companion.core.workspace import WorkspaceLayout
from study_companion.settings import Settings, SettingsOverrides, load_settings


def add_context_arguments(parser: argparse.ArgumentParser) -> None:
    """Register the options every command accepts for ``open_context``."""

    parser.add_argument("--config", type=Path, help="Path to study.toml.")
    parser.add_argument(
        "--workspace", type=Path, help="Override the workspace root."
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="Log file threshold (overrides [logging] level).",
    )
    parser.add_argument(
        "--verbose",
        action="store_const",
        const=True,
        help="Log at DEBUG and mirror log records to stderr.",
    )


def overrides_from_args(args: argparse.Namespace) -> SettingsOverrides:
    return SettingsOverrides(
        default_count=getattr(args, "count", None),
        default_mode=getattr(args, "mode", None),
        log_level=getattr(args, "log_level", None),
        verbose=getattr(args, "verbose", None),
    )


@dataclass(frozen=True)
class CommandContext:
    settings: Settings
    layout: WorkspaceLayout
    store: DocumentStore
    logger: logging.Logger
    log_path: Path


def open_context(
    command: str,
    *,
    config_path: Optional[Path] = None,
    workspace_path: Optional[Path] = None,
    overrides: Optional[SettingsOverrides] = None,
    env: Optional[Mapping[str, str]] = None,
) -> CommandContext:
    """Load settings and wire the logger and store for ``command``.

    Raises :class:`study_companion.settings.SettingsError` for bad config.
    """

    result = load_settings(
        config_path=config_path,
        overrides=overrides,
        env=env,
        workspace_path=workspace_path,
    )
    logger, log_path = configure_logger(
        f"study_companion.{command}",
        log_dir=result.layout.path_for("logs"),
        level=result.settings.logging.level,
        verbose=result.settings.logging.verbose,
    )
    logger.debug(
        "Command context ready",
        extra={
            "command": command,
            "workspace": result.layout.home,
            "config_path": result.config_path,
        },
    )
    return CommandContext(
        settings=result.settings,
        layout=result.layout,
        store=DocumentStore(result.layout.path_for("store")),
        logger=logger,
        log_path=log_path,
    )
