from __future__ import annotations

from datetime import datetime, timezone

import pytest

from fixtures import make_record, question_dict

from study_companion.core.store import StoreError
from study_companion.quizzer.bank import QUESTIONS_COLLECTION, QuestionBank

WHEN = datetime(2024, 6, 2, 18, 30, tzinfo=timezone.utc)


@pytest.fixture
def bank(store) -> QuestionBank:
    bank = QuestionBank(store)
    bank.add_many(
        [
            make_record("q1", topic="biology"),
            make_record("q2", topic="Chemistry"),
            make_record("q3", topic="biology"),
        ]
    )
    return bank


def test_read_all_preserves_storage_order(bank):
    assert [r.id for r in bank.read_all()] == ["q1", "q2", "q3"]
    assert [r.id for r in bank.read_all("biology")] == ["q1", "q3"]
    assert [r.id for r in bank.read_all("any")] == ["q1", "q2", "q3"]


def test_store_key_is_the_question_id(store):
    store.put(QUESTIONS_COLLECTION, "stored-key", question_dict("inner-id"))

    records = QuestionBank(store).read_all()

    assert [r.id for r in records] == ["stored-key"]


def test_invalid_stored_question_raises_store_error(store):
    store.put(QUESTIONS_COLLECTION, "bad", {"topic": "x", "prompt": "y"})

    with pytest.raises(StoreError, match="'bad' is invalid"):
        QuestionBank(store).read_all()


def test_get_many_follows_requested_order(bank):
    records = bank.get_many(["q3", "missing", "q1"])

    assert [r.id for r in records] == ["q3", "q1"]


def test_record_attempts_updates_counters_in_one_write(bank, monkeypatch):
    calls: list[int] = []
    original = bank.store.upsert_many

    def spy(collection, documents):  # noqa: ANN001
        calls.append(len(documents))
        return original(collection, documents)

    monkeypatch.setattr(bank.store, "upsert_many", spy)

    updated = bank.record_attempts(["q1", "q3", "q1", "ghost"], WHEN)

    assert updated == 2
    assert calls == [2]
    by_id = {r.id: r for r in bank.read_all()}
    assert by_id["q1"].times_attempted == 1
    assert by_id["q1"].last_attempted_at == WHEN
    assert by_id["q2"].times_attempted == 0
    assert by_id["q3"].times_attempted == 1


def test_reimport_keeps_attempt_history(bank):
    bank.record_attempts(["q2"], WHEN)

    bank.add_many([make_record("q2", topic="Chemistry", prompt="Reworded?")])

    record = bank.get_many(["q2"])[0]
    assert record.prompt == "Reworded?"
    assert record.times_attempted == 1
    assert record.last_attempted_at == WHEN


def test_topics_counts_sorted_case_insensitively(bank):
    assert bank.topics() == {"biology": 2, "Chemistry": 1}


def test_empty_bank(store):
    bank = QuestionBank(store)

    assert bank.read_all() == []
    assert bank.topics() == {}
    assert bank.record_attempts(["q1"], WHEN) == 0
