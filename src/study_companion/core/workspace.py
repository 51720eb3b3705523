"""Workspace bootstrap helpers shared by every study-companion command.

The workspace is a single data home holding ``config`` (study.toml),
``logs`` (JSON log files) and ``store`` (document collections).
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Mapping


WORKSPACE_ENV = "STUDY_COMPANION_DATA_HOME"
DEFAULT_WORKSPACE = Path.home() / ".study-companion-data"

_SUBDIRS: Mapping[str, str] = MappingProxyType(
    {"config": "config", "logs": "logs", "store": "store"}
)


class WorkspaceError(RuntimeError):
    """Raised when the workspace layout cannot be prepared."""


@dataclass(frozen=True)
class WorkspaceLayout:
    home: Path
    directories: Mapping[str, Path]
    created: Mapping[str, bool]

    def path_for(self, key: str) -> Path:
        if key not in self.directories:
            raise KeyError(f"Unknown workspace directory '{key}'.")
        return self.directories[key]

    def items(self) -> tuple[tuple[str, Path], ...]:
        return tuple(self.directories.items())


def ensure_workspace(
    *,
    env: Mapping[str, str] | None = None,
    path: Path | None = None,
    create: bool = True,
    subdirs: Mapping[str, str] | None = None,
) -> WorkspaceLayout:
    """Resolve the workspace and, unless ``create`` is false, build it.

    ``path`` wins over ``STUDY_COMPANION_DATA_HOME`` which wins over
    ``~/.study-companion-data``. Only the default location falls back to the
    system temp dir when it is not writable.
    """

    environ = os.environ if env is None else env
    layout = dict(subdirs or _SUBDIRS)
    explicit = path
    if explicit is None and (environ.get(WORKSPACE_ENV) or "").strip():
        explicit = Path(environ[WORKSPACE_ENV].strip())

    home = _absolute(explicit or DEFAULT_WORKSPACE)
    if not create:
        return _build(home, layout, create=False)
    candidates = [home]
    if explicit is None and _fallback_base() != home:
        candidates.append(_fallback_base())
    error: PermissionError | None = None
    for base in candidates:
        try:
            return _build(base, layout, create=True)
        except PermissionError as exc:
            error = exc
    raise WorkspaceError(f"Unable to prepare workspace at {home}") from error


def describe_layout(
    *, env: Mapping[str, str] | None = None, path: Path | None = None
) -> Mapping[str, Path]:
    """Return ``home`` plus every subdirectory without touching disk."""

    layout = ensure_workspace(env=env, path=path, create=False)
    return MappingProxyType({"home": layout.home, **layout.directories})


def _absolute(target: Path) -> Path:
    expanded = target.expanduser()
    try:
        return expanded.resolve()
    except FileNotFoundError:
        return expanded.absolute()


def _fallback_base() -> Path:
    return Path(tempfile.gettempdir()) / "study-companion-data"


def _build(
    home: Path, subdirs: Mapping[str, str], *, create: bool
) -> WorkspaceLayout:
    if home.exists() and not home.is_dir():
        raise WorkspaceError(
            f"Configured workspace exists and is not a directory: {home}"
        )

    directories = {key: home / relative for key, relative in subdirs.items()}
    if create:
        created = {"home": _ensure_dir(home)}
        created.update(
            (key, _ensure_dir(target)) for key, target in directories.items()
        )
    else:
        for key, target in directories.items():
            if target.exists() and not target.is_dir():
                raise WorkspaceError(
                    f"Expected workspace directory for '{key}' but found a "
                    f"file: {target}"
                )
        created = dict.fromkeys(["home", *directories], False)

    return WorkspaceLayout(
        home=home,
        directories=MappingProxyType(directories),
        created=MappingProxyType(created),
    )


def _ensure_dir(path: Path) -> bool:
    """Create ``path`` with owner-only permissions; True when it was new."""

    if path.exists():
        if not path.is_dir():
            raise WorkspaceError(f"Not a directory: {path}")
        return False
    path.mkdir(parents=True, exist_ok=True)
    try:
        path.chmod(0o700)
    except (PermissionError, NotImplementedError):
        pass
    return True
