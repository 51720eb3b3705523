"""``study init``: create the workspace and a default study.toml."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Sequence

from study_companion.core import config_templates
from study_companion.core import workspace as workspace_mod
from study_companion.settings import CONFIG_FILENAME


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="study init",
        description=(
            "Create the study-companion workspace (config, logs, store) and "
            "write the default study.toml."
        ),
    )
    parser.add_argument(
        "--path",
        type=Path,
        help=(
            "Workspace root; defaults to STUDY_COMPANION_DATA_HOME or "
            "~/.study-companion-data."
        ),
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Replace an existing study.toml with the default template.",
    )
    parser.add_argument(
        "--quiet", action="store_true", help="Print nothing on success."
    )
    return parser


def _write_config(path: Path, force: bool) -> str:
    if path.exists() and not force:
        return "exists"
    config_templates.get_template("study").write(path, overwrite=True)
    return "written"


def _report(layout: workspace_mod.WorkspaceLayout, config: Path, status: str) -> str:
    def state(key: str) -> str:
        return "created" if layout.created.get(key) else "exists"

    width = max((len(name) for name in layout.directories), default=0)
    rows = [f"Workspace ready at {layout.home} ({state('home')})"]
    if layout.directories:
        rows.append("Subdirectories:")
        rows.extend(
            f"  {name:<{width}}  {directory} ({state(name)})"
            for name, directory in layout.items()
        )
    rows.append(f"Config: {config} ({status})")
    return "\n".join(rows)


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    try:
        layout = workspace_mod.ensure_workspace(path=args.path)
        config = layout.path_for("config") / CONFIG_FILENAME
        status = _write_config(config, args.force)
    except (
        workspace_mod.WorkspaceError,
        config_templates.ConfigTemplateError,
    ) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if not args.quiet:
        print(_report(layout, config, status))
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
