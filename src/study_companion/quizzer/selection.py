"""Quiz session selection engine.

Turns a snapshot of question records plus a :class:`SelectionRequest` into
the ordered list of question ids to present. Nothing here touches the store
or the clock; randomness comes from the ``rng`` argument so callers and
tests can seed it.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum
from itertools import groupby
from typing import MutableSequence, Optional, Sequence, TypeVar

from .records import QuestionRecord

__all__ = [
    "ANY_TOPIC",
    "SelectionMode",
    "SelectionRequest",
    "filter_pool",
    "fisher_yates_shuffle",
    "order_least_attempted",
    "select",
]

ANY_TOPIC = "any"

T = TypeVar("T")


class SelectionMode(Enum):
    """Ordering applied to the filtered pool."""

    SEQUENTIAL = "sequential"
    RANDOM = "random"
    UNIQUE = "unique"

    @classmethod
    def from_value(cls, value: str) -> "SelectionMode":
        normalized = value.strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        expected = ", ".join(member.value for member in cls)
        raise ValueError(
            f"Unknown selection mode '{value}'. Expected one of: {expected}."
        )


@dataclass(frozen=True)
class SelectionRequest:
    count: int
    topic: Optional[str] = ANY_TOPIC
    mode: SelectionMode = SelectionMode.SEQUENTIAL


def select(
    pool: Sequence[QuestionRecord],
    request: SelectionRequest,
    *,
    rng: Optional[random.Random] = None,
) -> list[str]:
    """Return up to ``request.count`` question ids from ``pool``.

    - sequential: storage order of ``pool``
    - random: uniform permutation (Fisher-Yates)
    - unique: fewest attempts first, ties in random order
    Non-positive counts, empty pools and unmatched topics yield ``[]``.
    """
    if request.count <= 0:
        return []
    filtered = filter_pool(pool, request.topic)
    if not filtered:
        return []
    rng = rng or random.Random()

    if request.mode is SelectionMode.RANDOM:
        ordered = fisher_yates_shuffle(filtered, rng)
    elif request.mode is SelectionMode.UNIQUE:
        ordered = order_least_attempted(filtered, rng)
    else:
        ordered = filtered

    # Duplicate ids in a snapshot would otherwise be presented twice.
    seen: set[str] = set()
    ids: list[str] = []
    for record in ordered:
        if record.id in seen:
            continue
        seen.add(record.id)
        ids.append(record.id)
        if len(ids) >= request.count:
            break
    return ids


def filter_pool(
    pool: Sequence[QuestionRecord], topic: Optional[str]
) -> list[QuestionRecord]:
    wanted = (topic or "").strip()
    if not wanted or wanted.lower() == ANY_TOPIC:
        return list(pool)
    return [record for record in pool if record.topic.strip() == wanted]


def fisher_yates_shuffle(items: Sequence[T], rng: random.Random) -> list[T]:
    """Return a uniformly random permutation of ``items`` as a new list."""

    shuffled = list(items)
    _shuffle_in_place(shuffled, rng)
    return shuffled


def order_least_attempted(
    pool: Sequence[QuestionRecord], rng: random.Random
) -> list[QuestionRecord]:
    """Order by ``times_attempted`` ascending, shuffling each tie group.

    The sort is stable and keyed only on the counter; tie groups are then
    shuffled explicitly instead of using a random comparator.
    """

    ranked = sorted(pool, key=lambda record: record.times_attempted)
    ordered: list[QuestionRecord] = []
    for _, group in groupby(ranked, key=lambda record: record.times_attempted):
        ordered.extend(fisher_yates_shuffle(list(group), rng))
    return ordered


def _shuffle_in_place(items: MutableSequence[T], rng: random.Random) -> None:
    for i in range(len(items) - 1, 0, -1):
        j = rng.randint(0, i)
        items[i], items[j] = items[j], items[i]
