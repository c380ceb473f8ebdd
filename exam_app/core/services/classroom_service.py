"""Service for assembling classrooms and managing their roster."""

from __future__ import annotations

import logging
import random

from exam_app.core.errors import ForbiddenError
from exam_app.core.models import Classroom, ClassroomSummary
from exam_app.core.question_selector import generate_access_code, sample_by_category
from exam_app.core.services.exam_repository import ExamRepository

logger = logging.getLogger(__name__)


class ClassroomService:
    """Creates classrooms from the question bank and tracks who may sit them."""

    def __init__(self, repository: ExamRepository, rng: random.Random | None = None) -> None:
        self._repository = repository
        self._rng = rng or random.Random()

    def create_classroom(
        self,
        teacher_id: int,
        title: str,
        duration_minutes: int,
        category_counts: dict[str, int],
    ) -> Classroom:
        """Create an active classroom with questions drawn at random per category."""
        cleaned_title = title.strip()
        if not cleaned_title:
            raise ValueError("Classroom title must not be empty.")
        if duration_minutes <= 0:
            raise ValueError("Duration must be a positive number of minutes.")
        if not category_counts:
            raise ValueError("At least one question category must be requested.")
        if sum(category_counts.values()) <= 0:
            raise ValueError("A classroom needs at least one question.")

        with self._repository.transaction():
            self._repository.find_teacher_by_id(teacher_id)
            questions = sample_by_category(
                self._repository.find_questions_by_category, category_counts, self._rng
            )
            classroom = self._repository.create_classroom(
                title=cleaned_title,
                access_code=generate_access_code(self._repository.access_code_exists),
                duration_minutes=duration_minutes,
                teacher_id=teacher_id,
                question_ids=[q.id for q in questions],
                is_active=True,
            )
        logger.info(
            "Created classroom %s (%s) with %d questions for teacher %s",
            classroom.id,
            classroom.access_code,
            len(classroom.question_ids),
            teacher_id,
        )
        return classroom

    def list_classrooms(self, teacher_id: int) -> list[ClassroomSummary]:
        with self._repository.transaction():
            self._repository.find_teacher_by_id(teacher_id)
            classrooms = self._repository.find_classrooms_by_teacher(teacher_id)
        return [ClassroomSummary.from_classroom(c) for c in classrooms]

    def get_owned_classroom(self, teacher_id: int, classroom_id: int) -> Classroom:
        classroom = self._repository.find_classroom_by_id(classroom_id)
        if classroom.teacher_id != teacher_id:
            raise ForbiddenError("This classroom belongs to another teacher.")
        return classroom

    def register_student(self, teacher_id: int, classroom_id: int, email: str) -> ClassroomSummary:
        """Allow the student with ``email`` to sit the classroom's exam. Idempotent."""
        with self._repository.transaction():
            classroom = self.get_owned_classroom(teacher_id, classroom_id)
            student = self._repository.find_student_by_email(email)
            if student.id not in classroom.registered_student_ids:
                classroom.registered_student_ids = classroom.registered_student_ids | {student.id}
                self._repository.update_classroom(classroom)
                logger.info("Registered student %s for classroom %s", student.id, classroom.id)
        return ClassroomSummary.from_classroom(classroom)

    def set_active(self, teacher_id: int, classroom_id: int, active: bool) -> ClassroomSummary:
        with self._repository.transaction():
            classroom = self.get_owned_classroom(teacher_id, classroom_id)
            classroom.is_active = active
            self._repository.update_classroom(classroom)
        logger.info("Classroom %s is now %s", classroom.id, "active" if active else "inactive")
        return ClassroomSummary.from_classroom(classroom)
