"""Answer checking and scoring for submitted exams."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from exam_app.core.models import Question, SubmittedAnswer


def is_correct(correct_key: str, selected_key: str) -> bool:
    """Compare option keys ignoring surrounding whitespace and case."""
    return correct_key.strip().casefold() == selected_key.strip().casefold()


@dataclass(slots=True)
class ScoredAnswer:
    question_id: int
    selected_key: str
    is_correct: bool


@dataclass(slots=True)
class ScoreSheet:
    """Outcome of scoring one submission."""

    answers: list[ScoredAnswer]
    discarded: int

    @property
    def score(self) -> int:
        return sum(1 for answer in self.answers if answer.is_correct)


def filter_answers(
    answers: Iterable[SubmittedAnswer],
    allowed_question_ids: set[int],
) -> tuple[dict[int, SubmittedAnswer], int]:
    """Keep answers whose question belongs to the exam, last answer per question wins.

    Returns the surviving answers keyed by question id plus the number of
    entries dropped, whether foreign to the exam or overridden by a later one.
    """
    kept: dict[int, SubmittedAnswer] = {}
    total = 0
    for answer in answers:
        total += 1
        if answer.question_id not in allowed_question_ids:
            continue
        # Re-insert so dict order follows the last occurrence.
        kept.pop(answer.question_id, None)
        kept[answer.question_id] = answer
    return kept, total - len(kept)


def score_answers(
    answers: Mapping[int, SubmittedAnswer],
    questions: Mapping[int, Question],
) -> ScoreSheet:
    """Score filtered answers against the stored keys; unknown questions are skipped."""
    scored: list[ScoredAnswer] = []
    for question_id, answer in answers.items():
        question = questions.get(question_id)
        if question is None:
            continue
        scored.append(
            ScoredAnswer(
                question_id=question_id,
                selected_key=answer.selected_key,
                is_correct=is_correct(question.correct_option_key, answer.selected_key),
            )
        )
    return ScoreSheet(answers=scored, discarded=len(answers) - len(scored))
