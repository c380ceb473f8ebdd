"""Domain models for the exam application."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class SubmissionStatus(str, Enum):
    """Lifecycle state of a student's attempt."""

    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


@dataclass(slots=True, frozen=True)
class QuestionOption:
    """One selectable answer, e.g. key "A" with its text."""

    key: str
    text: str


@dataclass(slots=True, frozen=True)
class Question:
    """Multiple-choice question held in the bank. Never sent to students as-is."""

    id: int
    category: str
    content: str
    options: tuple[QuestionOption, ...]
    correct_option_key: str
    difficulty: int | None = None


@dataclass(slots=True, frozen=True)
class Student:
    id: int
    email: str
    full_name: str


@dataclass(slots=True, frozen=True)
class Teacher:
    id: int
    email: str
    full_name: str


@dataclass(slots=True)
class Classroom:
    """An exam instance students join through its access code."""

    id: int
    title: str
    access_code: str
    duration_minutes: int
    teacher_id: int
    question_ids: tuple[int, ...]
    is_active: bool = True
    registered_student_ids: frozenset[int] = field(default_factory=frozenset)


@dataclass(slots=True)
class Submission:
    """One student's attempt at one classroom's exam."""

    id: int
    classroom_id: int
    student_id: int
    start_time: datetime
    submit_time: datetime | None = None
    total_score: int = 0
    status: SubmissionStatus = SubmissionStatus.PENDING


@dataclass(slots=True, frozen=True)
class Answer:
    """Log entry for a scored answer; written once during submit."""

    id: int
    submission_id: int
    question_id: int
    selected_option_key: str
    is_correct: bool


@dataclass(slots=True, frozen=True)
class PublicQuestion:
    """Student-facing projection of a question without its correct key."""

    id: int
    content: str
    options: tuple[QuestionOption, ...]

    @classmethod
    def from_question(cls, question: Question) -> "PublicQuestion":
        return cls(id=question.id, content=question.content, options=question.options)


@dataclass(slots=True)
class SessionPayload:
    """Response to starting (or resuming) an exam."""

    classroom_id: int
    title: str
    duration_minutes: int
    submission_id: int
    submission_start_time: datetime
    questions: list[PublicQuestion]


@dataclass(slots=True)
class SubmittedAnswer:
    """Raw answer as received from a student."""

    question_id: int
    selected_key: str


@dataclass(slots=True)
class ScoreResult:
    score: int
    total_questions: int
    status: SubmissionStatus = SubmissionStatus.COMPLETED


@dataclass(slots=True)
class AnswerDetail:
    question_id: int
    question_content: str
    selected_key: str
    correct_key: str
    is_correct: bool


@dataclass(slots=True)
class StudentResult:
    """Teacher-facing result row for a single submission."""

    student_name: str
    student_email: str
    score: int
    total_questions: int
    status: SubmissionStatus
    answers: list[AnswerDetail] = field(default_factory=list)


@dataclass(slots=True)
class ClassroomSummary:
    id: int
    teacher_id: int
    title: str
    access_code: str
    duration_minutes: int
    is_active: bool
    student_count: int

    @classmethod
    def from_classroom(cls, classroom: Classroom) -> "ClassroomSummary":
        return cls(
            id=classroom.id,
            teacher_id=classroom.teacher_id,
            title=classroom.title,
            access_code=classroom.access_code,
            duration_minutes=classroom.duration_minutes,
            is_active=classroom.is_active,
            student_count=len(classroom.registered_student_ids),
        )
