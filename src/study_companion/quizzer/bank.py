"""Typed access to the ``questions`` collection of the document store."""

from __future__ import annotations

from collections import Counter
from datetime import datetime
from typing import Iterable, Optional, Sequence

from study_companion.core.store import DocumentStore, StoreError

from .records import QuestionRecord, RecordError, record_from_dict
from .selection import filter_pool

__all__ = ["QUESTIONS_COLLECTION", "QuestionBank"]

QUESTIONS_COLLECTION = "questions"


class QuestionBank:
    """Read snapshots of stored questions and write attempt updates."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    @property
    def store(self) -> DocumentStore:
        return self._store

    def read_all(self, topic: Optional[str] = None) -> list[QuestionRecord]:
        """Return every stored question in storage order.

        ``topic`` narrows the snapshot the same way the selection engine
        filters; ``None`` or ``"any"`` returns everything.
        """

        documents = self._store.all(QUESTIONS_COLLECTION)
        records: list[QuestionRecord] = []
        for key, document in documents.items():
            try:
                records.append(record_from_dict({**document, "id": key}))
            except RecordError as exc:
                raise StoreError(
                    f"Stored question {key!r} is invalid: {exc}"
                ) from exc
        return filter_pool(records, topic)

    def get_many(self, ids: Sequence[str]) -> list[QuestionRecord]:
        """Resolve ``ids`` to records, preserving the order of ``ids``.

        Unknown ids are dropped.
        """

        by_id = {record.id: record for record in self.read_all()}
        return [by_id[qid] for qid in ids if qid in by_id]

    def add_many(self, records: Iterable[QuestionRecord]) -> int:
        """Insert or replace ``records`` keeping existing attempt counters."""

        existing = self._store.all(QUESTIONS_COLLECTION)
        payload: dict[str, dict] = {}
        for record in records:
            document = record.to_dict()
            previous = existing.get(record.id)
            if previous is not None:
                document["times_attempted"] = previous.get(
                    "times_attempted", 0
                )
                document["last_attempted_at"] = previous.get(
                    "last_attempted_at"
                )
            payload[record.id] = document
        return self._store.upsert_many(QUESTIONS_COLLECTION, payload)

    def record_attempts(self, ids: Iterable[str], when: datetime) -> int:
        """Bump attempt counters for ``ids`` with one bulk write."""

        wanted = list(dict.fromkeys(ids))
        updated = {
            record.id: record.with_attempt(when).to_dict()
            for record in self.get_many(wanted)
        }
        return self._store.upsert_many(QUESTIONS_COLLECTION, updated)

    def topics(self) -> dict[str, int]:
        """Return question counts per topic, sorted by topic name."""

        counts = Counter(record.topic for record in self.read_all())
        return dict(sorted(counts.items(), key=lambda item: item[0].lower()))
