"""Configuration templates shipped inside the package."""

from __future__ import annotations

from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Iterable

from .config import TomlConfigError, write_toml_template

__all__ = [
    "ConfigTemplate",
    "ConfigTemplateError",
    "get_template",
    "iter_templates",
]


class ConfigTemplateError(RuntimeError):
    """Raised for unknown templates or when a template cannot be written."""


@dataclass(frozen=True)
class ConfigTemplate:
    """A TOML template bundled as package data."""

    name: str
    filename: str
    description: str
    package: str = "study_companion.core"

    def read_text(self) -> str:
        """Return the template contents as UTF-8 text."""

        resource = resources.files(self.package) / self.filename
        if not resource.is_file():  # pragma: no cover - broken install
            raise ConfigTemplateError(
                f"Template '{self.name}' resource not found."
            )
        return resource.read_text(encoding="utf-8")

    def write(
        self, path: Path, *, overwrite: bool = False, mode: int = 0o600
    ) -> Path:
        """Write the template to ``path``; existing files need ``overwrite``."""

        try:
            return write_toml_template(
                path, template=self.read_text(), overwrite=overwrite, mode=mode
            )
        except TomlConfigError as exc:
            raise ConfigTemplateError(str(exc)) from exc


_TEMPLATES = {
    template.name: template
    for template in (
        ConfigTemplate(
            "study",
            "study.toml",
            "Quiz, reminder and logging defaults for study.",
        ),
    )
}


def get_template(name: str) -> ConfigTemplate:
    """Return the registered template ``name`` or raise an error."""

    template = _TEMPLATES.get(name)
    if template is None:
        raise ConfigTemplateError(f"Unknown config template '{name}'.")
    return template


def iter_templates() -> Iterable[ConfigTemplate]:
    """Return every registered template."""

    return tuple(_TEMPLATES.values())
