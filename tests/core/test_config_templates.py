from __future__ import annotations

import tomllib
from pathlib import Path

import pytest

from study_companion.core import config_templates
from study_companion.core.config_templates import (
    ConfigTemplate,
    ConfigTemplateError,
)


def test_study_template_round_trips_to_disk(tmp_path: Path) -> None:
    template = config_templates.get_template("study")
    assert isinstance(template, ConfigTemplate)

    contents = template.read_text()
    parsed = tomllib.loads(contents)
    assert parsed["quiz"]["default_mode"] == "unique"
    assert parsed["reminders"]["quiet_start"] == "22:00"
    assert parsed["logging"]["level"] == "INFO"

    target = tmp_path / "config" / "study.toml"
    assert template.write(target) == target
    assert target.read_text(encoding="utf-8") == contents

    with pytest.raises(ConfigTemplateError):
        template.write(target)

    assert template.write(target, overwrite=True) == target


def test_iter_templates_returns_registered_templates() -> None:
    names = {template.name for template in config_templates.iter_templates()}
    assert names == {"study"}


@pytest.mark.parametrize("unknown", ["missing", "", "convert_markdown"])
def test_get_template_unknown_raises(unknown: str) -> None:
    with pytest.raises(ConfigTemplateError):
        config_templates.get_template(unknown)
