"""Error taxonomy surfaced by the exam services."""

from __future__ import annotations


class ExamError(Exception):
    """Base class for user-visible exam failures."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(ExamError):
    """A classroom, student, teacher or submission does not exist."""


class ForbiddenError(ExamError):
    """The caller may not act on the resource (inactive exam, not registered)."""


class ConflictError(ExamError):
    """The request conflicts with the current state of a submission."""


class SubmissionConflictError(ConflictError):
    """Raised by storage when a (classroom, student) submission already exists."""

    def __init__(self, classroom_id: int, student_id: int) -> None:
        super().__init__(
            f"Submission already exists for classroom {classroom_id} and student {student_id}."
        )
        self.classroom_id = classroom_id
        self.student_id = student_id


class QuestionBankError(ValueError):
    """Raised when the question bank cannot satisfy or parse a request."""
