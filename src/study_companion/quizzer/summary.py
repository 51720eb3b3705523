"""Scoring helpers for finished quiz sessions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Sequence

from .records import QuestionRecord

__all__ = [
    "QuestionResponse",
    "TopicSummary",
    "QuizSummary",
    "summarize_results",
    "aggregate_summary",
]


@dataclass(frozen=True)
class QuestionResponse:
    """A user's response to a specific question."""

    question_id: str
    prompt: str
    selected: str | None
    selected_text: str | None
    answer: str
    answer_text: str | None
    is_correct: bool
    topic: str
    explanation: str | None = None


@dataclass(frozen=True)
class TopicSummary:
    """Aggregate performance metrics for a single topic."""

    topic: str
    asked: int
    correct: int

    @property
    def accuracy(self) -> float:
        if self.asked == 0:
            return 0.0
        return self.correct / self.asked


@dataclass(frozen=True)
class QuizSummary:
    """Overall session summary derived from question responses."""

    total_questions: int
    correct_answers: int
    accuracy: float
    answered_questions: int
    per_topic: dict[str, TopicSummary] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> "QuizSummary":
        return cls(
            total_questions=0,
            correct_answers=0,
            accuracy=0.0,
            answered_questions=0,
        )


def summarize_results(
    questions: Sequence[QuestionRecord],
    selections: Mapping[str, str],
    *,
    include_explanations: bool = True,
) -> list[QuestionResponse]:
    """Compare ``selections`` (question id -> choice key) with the answers.

    One response per question, in presentation order; unanswered questions
    count as incorrect.
    """
    responses: list[QuestionResponse] = []
    for question in questions:
        raw = selections.get(question.id)
        selected = str(raw).strip().upper()[:1] if raw else None
        chosen = question.choice_for(selected)
        correct = question.choice_for(question.answer)
        responses.append(
            QuestionResponse(
                question_id=question.id,
                prompt=question.prompt,
                selected=selected,
                selected_text=chosen.text if chosen else None,
                answer=question.answer,
                answer_text=correct.text if correct else None,
                is_correct=selected is not None and selected == question.answer,
                topic=question.topic,
                explanation=(
                    question.explanation if include_explanations else None
                ),
            )
        )
    return responses


def aggregate_summary(responses: Sequence[QuestionResponse]) -> QuizSummary:
    total = len(responses)
    correct = sum(1 for r in responses if r.is_correct)
    asked: dict[str, int] = {}
    right: dict[str, int] = {}
    for r in responses:
        asked[r.topic] = asked.get(r.topic, 0) + 1
        if r.is_correct:
            right[r.topic] = right.get(r.topic, 0) + 1
    return QuizSummary(
        total_questions=total,
        correct_answers=correct,
        accuracy=(correct / total) if total else 0.0,
        answered_questions=sum(1 for r in responses if r.selected),
        per_topic={
            topic: TopicSummary(topic, count, right.get(topic, 0))
            for topic, count in asked.items()
        },
    )
