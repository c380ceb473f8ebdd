"""Business logic shared between the API server and the entry point."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import datetime
from pathlib import Path
import random

from exam_app.core.bank_loader import load_bank_from_file
from exam_app.core.models import (
    Classroom,
    ClassroomSummary,
    Question,
    ScoreResult,
    SessionPayload,
    Student,
    StudentResult,
    SubmittedAnswer,
    Teacher,
)
from exam_app.core.services.classroom_service import ClassroomService
from exam_app.core.services.exam_repository import ExamRepository, InMemoryExamRepository
from exam_app.core.services.exam_session import ExamSessionService, utc_now
from exam_app.core.services.results_aggregator import ResultsAggregator


class ExamManager:
    """Facade for exam services: Repository, Classrooms, Sessions and Results."""

    def __init__(
        self,
        repository: ExamRepository | None = None,
        clock: Callable[[], datetime] = utc_now,
        rng: random.Random | None = None,
        shuffle_rng: random.Random | None = None,
    ) -> None:
        """``rng`` drives classroom sampling; ``shuffle_rng`` drives per-start question order."""
        self._repository = repository or InMemoryExamRepository()

        # Services
        self._classrooms = ClassroomService(self._repository, rng=rng)
        self._sessions = ExamSessionService(self._repository, clock=clock, rng=shuffle_rng)
        self._results = ResultsAggregator(self._repository)

    @property
    def repository(self) -> ExamRepository:
        return self._repository

    # --- Question bank and people ---

    def load_question_bank(self, file_path: Path) -> list[Question]:
        return load_bank_from_file(file_path, self._repository)

    def add_student(self, email: str, full_name: str) -> Student:
        with self._repository.transaction():
            return self._repository.add_student(email, full_name)

    def add_teacher(self, email: str, full_name: str) -> Teacher:
        with self._repository.transaction():
            return self._repository.add_teacher(email, full_name)

    # --- Classroom delegation ---

    def create_classroom(
        self,
        teacher_id: int,
        title: str,
        duration_minutes: int,
        category_counts: dict[str, int],
    ) -> Classroom:
        return self._classrooms.create_classroom(teacher_id, title, duration_minutes, category_counts)

    def list_classrooms(self, teacher_id: int) -> list[ClassroomSummary]:
        return self._classrooms.list_classrooms(teacher_id)

    def register_student(self, teacher_id: int, classroom_id: int, email: str) -> ClassroomSummary:
        return self._classrooms.register_student(teacher_id, classroom_id, email)

    def set_classroom_active(self, teacher_id: int, classroom_id: int, active: bool) -> ClassroomSummary:
        return self._classrooms.set_active(teacher_id, classroom_id, active)

    # --- Exam session delegation ---

    def start_exam(self, access_code: str, email: str) -> SessionPayload:
        return self._sessions.start(access_code, email)

    def submit_exam(self, submission_id: int, answers: Iterable[SubmittedAnswer]) -> ScoreResult:
        return self._sessions.submit(submission_id, answers)

    def set_shuffle_seed(self, seed: int | None) -> None:
        self._sessions.set_shuffle_seed(seed)

    # --- Results delegation ---

    def get_classroom_results(
        self, classroom_id: int, teacher_id: int | None = None
    ) -> list[StudentResult]:
        """Return the classroom's results, checking ownership when ``teacher_id`` is given."""
        if teacher_id is not None:
            self._classrooms.get_owned_classroom(teacher_id, classroom_id)
        return self._results.get_classroom_results(classroom_id)
