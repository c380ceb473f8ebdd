import random

import pytest

from exam_app.core.errors import ForbiddenError, NotFoundError, QuestionBankError
from exam_app.core.exam_manager import ExamManager
from exam_app.core.models import QuestionOption
from exam_app.core.question_selector import generate_access_code, shuffled
from exam_app.core.services.classroom_service import ClassroomService
from exam_app.core.services.exam_repository import InMemoryExamRepository


@pytest.fixture
def repository():
    repository = InMemoryExamRepository()
    options = [QuestionOption("A", "yes"), QuestionOption("B", "no")]
    for n in range(4):
        repository.add_question("Algebra", f"Algebra {n}", options, "A")
    for n in range(2):
        repository.add_question("Geometry", f"Geometry {n}", options, "B")
    return repository


@pytest.fixture
def teacher(repository):
    return repository.add_teacher("teacher@school.test", "Grace Hopper")


@pytest.fixture
def service(repository):
    return ClassroomService(repository, rng=random.Random(3))


def test_create_classroom_samples_per_category(service, repository, teacher):
    classroom = service.create_classroom(teacher.id, "  Midterm ", 45, {"Algebra": 3, "Geometry": 2})

    assert classroom.title == "Midterm"
    assert classroom.is_active is True
    assert classroom.duration_minutes == 45
    assert len(classroom.question_ids) == 5
    assert len(set(classroom.question_ids)) == 5
    questions = repository.find_questions_by_ids(classroom.question_ids)
    categories = sorted(q.category for q in questions.values())
    assert categories == ["Algebra"] * 3 + ["Geometry"] * 2
    assert len(classroom.access_code) == 6
    assert classroom.access_code == classroom.access_code.upper()


def test_create_classroom_with_too_few_questions_fails(service, repository, teacher):
    with pytest.raises(QuestionBankError, match="Geometry"):
        service.create_classroom(teacher.id, "Midterm", 45, {"Geometry": 3})

    assert repository.find_classrooms_by_teacher(teacher.id) == []


def test_create_classroom_for_unknown_teacher_fails(service):
    with pytest.raises(NotFoundError):
        service.create_classroom(99, "Midterm", 45, {"Algebra": 1})


@pytest.mark.parametrize(
    "title, duration, counts",
    [("", 30, {"Algebra": 1}), ("Quiz", 0, {"Algebra": 1}), ("Quiz", 30, {})],
)
def test_create_classroom_validates_input(service, teacher, title, duration, counts):
    with pytest.raises(ValueError):
        service.create_classroom(teacher.id, title, duration, counts)


def test_list_classrooms_reports_student_count(service, repository, teacher):
    classroom = service.create_classroom(teacher.id, "Quiz", 20, {"Algebra": 1})
    repository.add_student("sam@school.test", "Sam Lee")
    service.register_student(teacher.id, classroom.id, "SAM@school.test ")
    service.register_student(teacher.id, classroom.id, "sam@school.test")

    summaries = service.list_classrooms(teacher.id)

    assert [s.id for s in summaries] == [classroom.id]
    assert summaries[0].student_count == 1
    assert summaries[0].access_code == classroom.access_code


def test_register_unknown_student_fails(service, teacher):
    classroom = service.create_classroom(teacher.id, "Quiz", 20, {"Algebra": 1})

    with pytest.raises(NotFoundError):
        service.register_student(teacher.id, classroom.id, "ghost@school.test")


def test_other_teacher_cannot_manage_classroom(service, repository, teacher):
    classroom = service.create_classroom(teacher.id, "Quiz", 20, {"Algebra": 1})
    other = repository.add_teacher("other@school.test", "Ada Lovelace")

    with pytest.raises(ForbiddenError):
        service.set_active(other.id, classroom.id, False)


def test_set_active_toggles_flag(service, repository, teacher):
    classroom = service.create_classroom(teacher.id, "Quiz", 20, {"Algebra": 1})

    summary = service.set_active(teacher.id, classroom.id, False)

    assert summary.is_active is False
    assert repository.find_classroom_by_id(classroom.id).is_active is False


def test_generate_access_code_skips_taken_codes():
    seen = []

    def is_taken(code):
        seen.append(code)
        return len(seen) < 3

    code = generate_access_code(is_taken)

    assert code == seen[-1]
    assert len(seen) == 3


def test_shuffled_returns_new_permutation():
    items = list(range(10))

    result = shuffled(items, random.Random(1))

    assert sorted(result) == items
    assert items == list(range(10))


@pytest.mark.parametrize("counts", [{"Algebra": 0}, {"Algebra": 0, "Geometry": 0}])
def test_create_classroom_without_questions_fails(service, repository, teacher, counts):
    with pytest.raises(ValueError, match="at least one question"):
        service.create_classroom(teacher.id, "Empty", 20, counts)

    assert repository.find_classrooms_by_teacher(teacher.id) == []


def test_shuffle_seed_does_not_change_classroom_sampling(repository, teacher):
    picks = []
    for shuffle_seed in (None, 99):
        manager = ExamManager(repository, rng=random.Random(5))
        if shuffle_seed is not None:
            manager.set_shuffle_seed(shuffle_seed)
        classroom = manager.create_classroom(teacher.id, "Quiz", 20, {"Algebra": 2})
        picks.append(classroom.question_ids)

    assert picks[0] == picks[1]
