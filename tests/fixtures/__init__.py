"""Shared testing fixtures for the study_companion test suite."""

from .questions import make_record, question_dict  # noqa: F401
from .workspace import WorkspaceBuilder, build_tree  # noqa: F401

__all__ = [
    "WorkspaceBuilder",
    "build_tree",
    "make_record",
    "question_dict",
]
