"""Service owning the start/resume/submit protocol of an exam attempt."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import replace
from datetime import datetime, timedelta, timezone
import logging
import random

from exam_app.constants.exam_constants import GRACE_PERIOD_MINUTES
from exam_app.core.errors import ConflictError, ForbiddenError, SubmissionConflictError
from exam_app.core.models import (
    Answer,
    Classroom,
    PublicQuestion,
    ScoreResult,
    SessionPayload,
    Student,
    Submission,
    SubmissionStatus,
    SubmittedAnswer,
)
from exam_app.core.question_selector import shuffled
from exam_app.core.services.exam_repository import ExamRepository
from exam_app.core.services.scorer import filter_answers, score_answers

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ExamSessionService:
    """Starts, resumes and scores exam submissions."""

    def __init__(
        self,
        repository: ExamRepository,
        clock: Callable[[], datetime] = utc_now,
        rng: random.Random | None = None,
    ) -> None:
        self._repository = repository
        self._clock = clock
        self._shuffle_rng = rng or random.Random()

    def set_shuffle_seed(self, seed: int | None) -> None:
        self._shuffle_rng.seed(seed)

    def start(self, access_code: str, student_email: str) -> SessionPayload:
        """Open or resume the student's attempt and return the exam questions.

        The questions come back in a fresh random order on every call; the
        submission start time is preserved across calls.
        """
        with self._repository.transaction():
            classroom = self._repository.find_classroom_by_access_code(access_code)
            if not classroom.is_active:
                logger.warning("Start rejected: classroom %s is not active", classroom.id)
                raise ForbiddenError("This exam is not currently active.")

            student = self._repository.find_student_by_email(student_email)
            if student.id not in classroom.registered_student_ids:
                logger.warning(
                    "Start rejected: student %s is not registered for classroom %s",
                    student.id,
                    classroom.id,
                )
                raise ForbiddenError("You are not registered for this classroom.")

            submission = self._resolve_submission(classroom, student)
            if submission.status is SubmissionStatus.COMPLETED:
                raise ConflictError("You have already completed this exam.")

            questions = self._repository.find_questions_by_ids(classroom.question_ids)
            ordered = [questions[qid] for qid in classroom.question_ids if qid in questions]

        return SessionPayload(
            classroom_id=classroom.id,
            title=classroom.title,
            duration_minutes=classroom.duration_minutes,
            submission_id=submission.id,
            submission_start_time=submission.start_time,
            questions=[
                PublicQuestion.from_question(q) for q in shuffled(ordered, self._shuffle_rng)
            ],
        )

    def submit(self, submission_id: int, answers: Iterable[SubmittedAnswer]) -> ScoreResult:
        """Score the answers once and mark the submission completed.

        Answers for questions outside the classroom, or for questions that no
        longer resolve, are dropped. When a question is answered more than once
        the last answer counts.
        """
        with self._repository.transaction():
            submission = self._repository.find_submission_by_id(submission_id)
            if submission.status is SubmissionStatus.COMPLETED:
                raise ConflictError("Exam already submitted.")

            classroom = self._repository.find_classroom_by_id(submission.classroom_id)
            now = self._clock()
            if now > deadline_for(submission, classroom):
                logger.warning("Submit rejected: submission %s is past its time limit", submission.id)
                raise ConflictError("Time limit exceeded.")

            allowed = set(classroom.question_ids)
            kept, dropped = filter_answers(answers, allowed)
            questions = self._repository.find_questions_by_ids(kept.keys())
            sheet = score_answers(kept, questions)
            if dropped or sheet.discarded:
                logger.warning(
                    "Submission %s: discarded %d answer(s) that do not count",
                    submission.id,
                    dropped + sheet.discarded,
                )

            self._repository.save_answers(
                Answer(
                    id=0,  # assigned by the repository
                    submission_id=submission.id,
                    question_id=scored.question_id,
                    selected_option_key=scored.selected_key,
                    is_correct=scored.is_correct,
                )
                for scored in sheet.answers
            )

            completed = replace(
                submission,
                total_score=sheet.score,
                submit_time=now,
                status=SubmissionStatus.COMPLETED,
            )
            self._repository.update_submission(completed)

        logger.info(
            "Submission %s completed with score %d/%d", submission.id, sheet.score, len(allowed)
        )
        return ScoreResult(score=sheet.score, total_questions=len(allowed))

    def _resolve_submission(self, classroom: Classroom, student: Student) -> Submission:
        existing = self._repository.find_submission(classroom.id, student.id)
        if existing is not None:
            logger.info("Resuming submission %s for student %s", existing.id, student.id)
            return existing
        try:
            created = self._repository.create_submission(
                classroom_id=classroom.id,
                student_id=student.id,
                start_time=self._clock(),
                status=SubmissionStatus.IN_PROGRESS,
            )
        except SubmissionConflictError:
            logger.warning(
                "Concurrent start for classroom %s and student %s; using the stored submission",
                classroom.id,
                student.id,
            )
            existing = self._repository.find_submission(classroom.id, student.id)
            if existing is None:
                raise
            return existing
        logger.info("Created submission %s for student %s", created.id, student.id)
        return created


def deadline_for(submission: Submission, classroom: Classroom) -> datetime:
    """Latest moment a submit is accepted: start + duration + grace period."""
    return submission.start_time + timedelta(
        minutes=classroom.duration_minutes + GRACE_PERIOD_MINUTES
    )
