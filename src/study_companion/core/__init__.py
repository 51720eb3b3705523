"""Core shared helpers for study-companion commands."""

from __future__ import annotations

from .config import (
    TomlConfigError,
    load_toml,
    merge_defaults,
    write_toml_template,
)
from .config_templates import (
    ConfigTemplate,
    ConfigTemplateError,
    get_template,
    iter_templates,
)
from .files import (
    QUESTION_EXTENSIONS,
    parse_extensions,
    iter_text_files,
    read_text_file,
)
from .logging import JsonLogFormatter, configure_logger
from .store import DocumentStore, StoreError
from .workspace import (
    WORKSPACE_ENV,
    WorkspaceError,
    WorkspaceLayout,
    ensure_workspace,
    describe_layout,
)

__all__ = [
    "TomlConfigError",
    "load_toml",
    "merge_defaults",
    "write_toml_template",
    "ConfigTemplate",
    "ConfigTemplateError",
    "get_template",
    "iter_templates",
    "QUESTION_EXTENSIONS",
    "parse_extensions",
    "iter_text_files",
    "read_text_file",
    "configure_logger",
    "JsonLogFormatter",
    "DocumentStore",
    "StoreError",
    "ensure_workspace",
    "describe_layout",
    "WorkspaceLayout",
    "WorkspaceError",
    "WORKSPACE_ENV",
]
