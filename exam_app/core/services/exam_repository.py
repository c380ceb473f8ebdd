"""Storage contract for the exam services and its in-memory implementation."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from threading import RLock

from exam_app.core.errors import ConflictError, NotFoundError, SubmissionConflictError
from exam_app.core.models import (
    Answer,
    Classroom,
    Question,
    QuestionOption,
    Student,
    Submission,
    SubmissionStatus,
    Teacher,
)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class ExamRepository(ABC):
    """Persistence operations the exam services rely on.

    Lookups that address a single record by key raise ``NotFoundError`` when
    the record is absent. ``find_submission`` is the exception: it returns
    ``None`` so callers can implement lookup-or-create.
    """

    @abstractmethod
    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Run the enclosed reads and writes as one unit of work."""

    # --- Classrooms ---

    @abstractmethod
    def find_classroom_by_access_code(self, access_code: str) -> Classroom: ...

    @abstractmethod
    def find_classroom_by_id(self, classroom_id: int) -> Classroom: ...

    @abstractmethod
    def find_classrooms_by_teacher(self, teacher_id: int) -> list[Classroom]: ...

    @abstractmethod
    def access_code_exists(self, access_code: str) -> bool: ...

    @abstractmethod
    def create_classroom(
        self,
        title: str,
        access_code: str,
        duration_minutes: int,
        teacher_id: int,
        question_ids: Iterable[int],
        is_active: bool = True,
    ) -> Classroom: ...

    @abstractmethod
    def update_classroom(self, classroom: Classroom) -> None: ...

    # --- People ---

    @abstractmethod
    def find_student_by_email(self, email: str) -> Student: ...

    @abstractmethod
    def find_student_by_id(self, student_id: int) -> Student: ...

    @abstractmethod
    def add_student(self, email: str, full_name: str) -> Student: ...

    @abstractmethod
    def find_teacher_by_id(self, teacher_id: int) -> Teacher: ...

    @abstractmethod
    def add_teacher(self, email: str, full_name: str) -> Teacher: ...

    # --- Questions ---

    @abstractmethod
    def add_question(
        self,
        category: str,
        content: str,
        options: Iterable[QuestionOption],
        correct_option_key: str,
        difficulty: int | None = None,
    ) -> Question: ...

    @abstractmethod
    def find_questions_by_ids(self, question_ids: Iterable[int]) -> dict[int, Question]:
        """Return the questions that exist among ``question_ids``; unknown ids are skipped."""

    @abstractmethod
    def find_questions_by_category(self, category: str) -> list[Question]: ...

    # --- Submissions and answers ---

    @abstractmethod
    def find_submission(self, classroom_id: int, student_id: int) -> Submission | None: ...

    @abstractmethod
    def create_submission(
        self,
        classroom_id: int,
        student_id: int,
        start_time: datetime,
        status: SubmissionStatus = SubmissionStatus.IN_PROGRESS,
    ) -> Submission:
        """Insert a submission; raise ``SubmissionConflictError`` if the pair already has one."""

    @abstractmethod
    def find_submission_by_id(self, submission_id: int) -> Submission: ...

    @abstractmethod
    def update_submission(self, submission: Submission) -> None: ...

    @abstractmethod
    def find_submissions_by_classroom(self, classroom_id: int) -> list[Submission]: ...

    @abstractmethod
    def save_answers(self, answers: Iterable[Answer]) -> list[Answer]:
        """Persist answers in bulk and return them with their assigned ids."""

    @abstractmethod
    def find_answers_by_submission(self, submission_id: int) -> list[Answer]: ...


class InMemoryExamRepository(ExamRepository):
    """Dictionary-backed repository.

    Stored records are copied on the way in and out, so callers never hold a
    live reference into the tables. ``transaction`` serialises callers with a
    re-entrant lock and restores every table if the block raises.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._classrooms: dict[int, Classroom] = {}
        self._students: dict[int, Student] = {}
        self._teachers: dict[int, Teacher] = {}
        self._questions: dict[int, Question] = {}
        self._submissions: dict[int, Submission] = {}
        self._answers: dict[int, Answer] = {}
        self._counters: dict[str, int] = {}

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            snapshot = self._snapshot()
            try:
                yield
            except BaseException:
                self._restore(snapshot)
                raise

    # --- Classrooms ---

    def find_classroom_by_access_code(self, access_code: str) -> Classroom:
        with self._lock:
            for classroom in self._classrooms.values():
                if classroom.access_code == access_code:
                    return replace(classroom)
        raise NotFoundError("Invalid access code.")

    def find_classroom_by_id(self, classroom_id: int) -> Classroom:
        with self._lock:
            classroom = self._classrooms.get(classroom_id)
        if classroom is None:
            raise NotFoundError(f"Classroom {classroom_id} not found.")
        return replace(classroom)

    def find_classrooms_by_teacher(self, teacher_id: int) -> list[Classroom]:
        with self._lock:
            return [replace(c) for c in self._classrooms.values() if c.teacher_id == teacher_id]

    def access_code_exists(self, access_code: str) -> bool:
        with self._lock:
            return any(c.access_code == access_code for c in self._classrooms.values())

    def create_classroom(
        self,
        title: str,
        access_code: str,
        duration_minutes: int,
        teacher_id: int,
        question_ids: Iterable[int],
        is_active: bool = True,
    ) -> Classroom:
        with self._lock:
            if self.access_code_exists(access_code):
                raise ConflictError(f"Access code {access_code} is already in use.")
            classroom = Classroom(
                id=self._next_id("classroom"),
                title=title,
                access_code=access_code,
                duration_minutes=duration_minutes,
                teacher_id=teacher_id,
                question_ids=tuple(question_ids),
                is_active=is_active,
            )
            self._classrooms[classroom.id] = classroom
            return replace(classroom)

    def update_classroom(self, classroom: Classroom) -> None:
        with self._lock:
            stored = self._classrooms.get(classroom.id)
            if stored is None:
                raise NotFoundError(f"Classroom {classroom.id} not found.")
            # Question membership is frozen once the classroom exists.
            self._classrooms[classroom.id] = replace(
                classroom,
                question_ids=stored.question_ids,
                registered_student_ids=frozenset(classroom.registered_student_ids),
            )

    # --- People ---

    def find_student_by_email(self, email: str) -> Student:
        key = normalize_email(email)
        with self._lock:
            for student in self._students.values():
                if student.email == key:
                    return student
        raise NotFoundError("Student not registered.")

    def find_student_by_id(self, student_id: int) -> Student:
        with self._lock:
            student = self._students.get(student_id)
        if student is None:
            raise NotFoundError(f"Student {student_id} not found.")
        return student

    def add_student(self, email: str, full_name: str) -> Student:
        key = normalize_email(email)
        with self._lock:
            if any(s.email == key for s in self._students.values()):
                raise ValueError(f"A student with email {key} already exists.")
            student = Student(id=self._next_id("student"), email=key, full_name=full_name.strip())
            self._students[student.id] = student
            return student

    def find_teacher_by_id(self, teacher_id: int) -> Teacher:
        with self._lock:
            teacher = self._teachers.get(teacher_id)
        if teacher is None:
            raise NotFoundError("Teacher not found.")
        return teacher

    def add_teacher(self, email: str, full_name: str) -> Teacher:
        key = normalize_email(email)
        with self._lock:
            if any(t.email == key for t in self._teachers.values()):
                raise ValueError(f"A teacher with email {key} already exists.")
            teacher = Teacher(id=self._next_id("teacher"), email=key, full_name=full_name.strip())
            self._teachers[teacher.id] = teacher
            return teacher

    # --- Questions ---

    def add_question(
        self,
        category: str,
        content: str,
        options: Iterable[QuestionOption],
        correct_option_key: str,
        difficulty: int | None = None,
    ) -> Question:
        with self._lock:
            question = Question(
                id=self._next_id("question"),
                category=category,
                content=content,
                options=tuple(options),
                correct_option_key=correct_option_key,
                difficulty=difficulty,
            )
            self._questions[question.id] = question
            return question

    def find_questions_by_ids(self, question_ids: Iterable[int]) -> dict[int, Question]:
        with self._lock:
            return {qid: self._questions[qid] for qid in question_ids if qid in self._questions}

    def find_questions_by_category(self, category: str) -> list[Question]:
        with self._lock:
            return [q for q in self._questions.values() if q.category == category]

    # --- Submissions and answers ---

    def find_submission(self, classroom_id: int, student_id: int) -> Submission | None:
        with self._lock:
            for submission in self._submissions.values():
                if submission.classroom_id == classroom_id and submission.student_id == student_id:
                    return replace(submission)
        return None

    def create_submission(
        self,
        classroom_id: int,
        student_id: int,
        start_time: datetime,
        status: SubmissionStatus = SubmissionStatus.IN_PROGRESS,
    ) -> Submission:
        with self._lock:
            # Unique (classroom_id, student_id).
            if self.find_submission(classroom_id, student_id) is not None:
                raise SubmissionConflictError(classroom_id, student_id)
            submission = Submission(
                id=self._next_id("submission"),
                classroom_id=classroom_id,
                student_id=student_id,
                start_time=start_time,
                status=status,
            )
            self._submissions[submission.id] = submission
            return replace(submission)

    def find_submission_by_id(self, submission_id: int) -> Submission:
        with self._lock:
            submission = self._submissions.get(submission_id)
        if submission is None:
            raise NotFoundError("Submission not found.")
        return replace(submission)

    def update_submission(self, submission: Submission) -> None:
        with self._lock:
            if submission.id not in self._submissions:
                raise NotFoundError("Submission not found.")
            self._submissions[submission.id] = replace(submission)

    def find_submissions_by_classroom(self, classroom_id: int) -> list[Submission]:
        with self._lock:
            return [replace(s) for s in self._submissions.values() if s.classroom_id == classroom_id]

    def save_answers(self, answers: Iterable[Answer]) -> list[Answer]:
        saved: list[Answer] = []
        with self._lock:
            for answer in answers:
                stored = replace(answer, id=self._next_id("answer"))
                self._answers[stored.id] = stored
                saved.append(stored)
        return saved

    def find_answers_by_submission(self, submission_id: int) -> list[Answer]:
        with self._lock:
            return [a for a in self._answers.values() if a.submission_id == submission_id]

    # --- Internals ---

    def _next_id(self, table: str) -> int:
        self._counters[table] = self._counters.get(table, 0) + 1
        return self._counters[table]

    def _snapshot(self) -> tuple[dict, ...]:
        return (
            dict(self._classrooms),
            dict(self._students),
            dict(self._teachers),
            dict(self._questions),
            dict(self._submissions),
            dict(self._answers),
            dict(self._counters),
        )

    def _restore(self, snapshot: tuple[dict, ...]) -> None:
        (
            self._classrooms,
            self._students,
            self._teachers,
            self._questions,
            self._submissions,
            self._answers,
            self._counters,
        ) = snapshot
