"""Question record model shared by the bank, selection engine and session."""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Mapping

__all__ = [
    "CHOICE_KEYS",
    "Choice",
    "QuestionRecord",
    "RecordError",
    "validate_question",
    "record_from_dict",
    "derive_id",
]

CHOICE_KEYS = ("A", "B", "C", "D", "E", "F")

_slug_re = re.compile(r"[^a-z0-9]+")


class RecordError(ValueError):
    """Raised when a question document cannot be turned into a record."""


@dataclass(frozen=True)
class Choice:
    """Normalized multiple-choice option."""

    key: str
    text: str


@dataclass(frozen=True)
class QuestionRecord:
    """Immutable snapshot of a stored question."""

    id: str
    topic: str
    prompt: str
    choices: tuple[Choice, ...]
    answer: str
    explanation: str | None = None
    times_attempted: int = 0
    last_attempted_at: datetime | None = None
    extra: Mapping[str, Any] = field(default_factory=dict, compare=False)

    def choice_for(self, key: str | None) -> Choice | None:
        if not key:
            return None
        normalized = str(key).strip().upper()[:1]
        for choice in self.choices:
            if choice.key == normalized:
                return choice
        return None

    def with_attempt(self, when: datetime) -> "QuestionRecord":
        """Return a copy with the attempt counter bumped to ``when``."""

        return replace(
            self,
            times_attempted=self.times_attempted + 1,
            last_attempted_at=when,
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = dict(self.extra)
        payload.update(
            {
                "id": self.id,
                "topic": self.topic,
                "prompt": self.prompt,
                "choices": [
                    {"key": c.key, "text": c.text} for c in self.choices
                ],
                "answer": self.answer,
                "explanation": self.explanation,
                "times_attempted": self.times_attempted,
                "last_attempted_at": (
                    self.last_attempted_at.isoformat()
                    if self.last_attempted_at
                    else None
                ),
            }
        )
        return payload


def validate_question(q: Mapping[str, Any]) -> None:
    """Validate a raw question document.

    Required keys: topic, prompt, choices (list of {key,text} or strings),
    answer. Choices must have 2 to 6 unique keys from A..F with non-empty
    text, and the answer must be exactly one of those keys.
    Raises :class:`RecordError` with actionable messages when invalid.
    """
    if not isinstance(q, Mapping):
        raise RecordError("question must be a mapping")
    if not str(q.get("prompt") or "").strip():
        raise RecordError("prompt is required")
    if not str(q.get("topic") or "").strip():
        raise RecordError("topic is required")
    if not isinstance(q.get("choices"), (list, tuple)):
        raise RecordError("choices must be a list")
    choices = _normalize_choices(q.get("choices"))
    if not 2 <= len(choices) <= 6:
        raise RecordError("choices must have between 2 and 6 options")
    keys = [c.key for c in choices]
    if len(set(keys)) != len(keys):
        raise RecordError("duplicate choice keys detected")
    if not set(keys) <= set(CHOICE_KEYS):
        raise RecordError("choice keys must be single letters A..F")
    if not all(c.text for c in choices):
        raise RecordError("choice text must be non-empty")
    ans = q.get("answer")
    if isinstance(ans, (list, tuple)):
        raise RecordError("exactly one answer is required, not multiple")
    if not isinstance(ans, str) or not ans.strip():
        raise RecordError("answer is required")
    if ans.strip().upper() not in set(keys):
        raise RecordError("answer must match one of the choice keys")
    attempts = q.get("times_attempted", 0)
    if isinstance(attempts, bool) or not isinstance(attempts, int):
        raise RecordError("times_attempted must be an integer")
    if attempts < 0:
        raise RecordError("times_attempted must be non-negative")


def record_from_dict(data: Mapping[str, Any]) -> QuestionRecord:
    """Validate ``data`` and build a :class:`QuestionRecord`.

    Documents without an ``id`` get a stable one derived from the topic and
    prompt, so re-importing the same file updates rather than duplicates.
    """

    validate_question(data)
    topic = str(data["topic"]).strip()
    prompt = str(data["prompt"]).strip()
    identifier = str(data.get("id") or "").strip() or derive_id(topic, prompt)
    explanation = data.get("explanation")
    known = {
        "id",
        "topic",
        "prompt",
        "choices",
        "answer",
        "explanation",
        "times_attempted",
        "last_attempted_at",
    }
    return QuestionRecord(
        id=identifier,
        topic=topic,
        prompt=prompt,
        choices=_normalize_choices(data.get("choices")),
        answer=str(data["answer"]).strip().upper(),
        explanation=str(explanation).strip() if explanation else None,
        times_attempted=int(data.get("times_attempted", 0)),
        last_attempted_at=_parse_timestamp(data.get("last_attempted_at")),
        extra={k: v for k, v in data.items() if k not in known},
    )


def derive_id(topic: str, prompt: str) -> str:
    slug = _slug_re.sub("-", topic.strip().lower()).strip("-") or "topic"
    digest = hashlib.sha1(prompt.strip().encode("utf-8")).hexdigest()[:10]
    return f"{slug}-{digest}"


def _normalize_choices(raw: Any) -> tuple[Choice, ...]:
    if not isinstance(raw, (list, tuple)):
        return ()
    out: list[Choice] = []
    for i, item in enumerate(raw):
        if isinstance(item, Mapping):
            key = str(item.get("key") or "").strip().upper()
            text = str(item.get("text") or "").strip()
        else:
            key = ""
            text = str(item).strip()
        out.append(Choice(key or chr(ord("A") + i), text))
    return tuple(out)


def _parse_timestamp(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value))
        except ValueError as exc:
            raise RecordError(
                f"last_attempted_at is not an ISO timestamp: {value!r}"
            ) from exc
    # Naive values are read as local time.
    return parsed if parsed.tzinfo is not None else parsed.astimezone()
