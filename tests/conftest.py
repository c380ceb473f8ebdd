from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import random

import pytest

from exam_app.core.exam_manager import ExamManager
from exam_app.core.models import Classroom, Question, QuestionOption, Student
from exam_app.core.services.exam_repository import InMemoryExamRepository


class FixedClock:
    def __init__(self, start):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


def _options(*keys):
    return [QuestionOption(key=key, text=f"Option {key}") for key in keys]


@dataclass
class ExamWorld:
    repository: InMemoryExamRepository
    manager: ExamManager
    clock: FixedClock
    classroom: Classroom
    questions: list[Question]
    outsider: Question
    alice: Student
    bob: Student
    carol: Student


@pytest.fixture
def clock():
    return FixedClock(datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def world(clock):
    repository = InMemoryExamRepository()
    teacher = repository.add_teacher("teacher@school.test", "Grace Hopper")
    q1 = repository.add_question("Algebra", "2 + 2 = ?", _options("A", "B", "C"), "A")
    q2 = repository.add_question("Algebra", "3 * 3 = ?", _options("A", "B", "C"), "B")
    outsider = repository.add_question("Geometry", "Angles in a triangle?", _options("A", "B"), "A")
    alice = repository.add_student("alice@school.test", "Alice Doe")
    bob = repository.add_student("bob@school.test", "Bob Roe")
    carol = repository.add_student("carol@school.test", "Carol Poe")

    classroom = repository.create_classroom(
        title="Week 1 quiz",
        access_code="ABC123",
        duration_minutes=30,
        teacher_id=teacher.id,
        question_ids=[q1.id, q2.id],
    )
    classroom.registered_student_ids = frozenset({alice.id, bob.id})
    repository.update_classroom(classroom)

    manager = ExamManager(
        repository, clock=clock, rng=random.Random(7), shuffle_rng=random.Random(11)
    )
    return ExamWorld(
        repository=repository,
        manager=manager,
        clock=clock,
        classroom=repository.find_classroom_by_id(classroom.id),
        questions=[q1, q2],
        outsider=outsider,
        alice=alice,
        bob=bob,
        carol=carol,
    )
