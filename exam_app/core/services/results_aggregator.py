"""Service joining submissions with their answer logs for teacher reports."""

from __future__ import annotations

from exam_app.core.models import AnswerDetail, StudentResult
from exam_app.core.services.exam_repository import ExamRepository


class ResultsAggregator:
    """Builds per-student result rows for a classroom."""

    def __init__(self, repository: ExamRepository) -> None:
        self._repository = repository

    def get_classroom_results(self, classroom_id: int) -> list[StudentResult]:
        """Return one row per submission of the classroom, whatever its status.

        Rows follow the repository's submission order. Students who started but
        never submitted appear with a score of 0 and no answers.
        """
        with self._repository.transaction():
            classroom = self._repository.find_classroom_by_id(classroom_id)
            total_questions = len(classroom.question_ids)
            results: list[StudentResult] = []
            for submission in self._repository.find_submissions_by_classroom(classroom_id):
                student = self._repository.find_student_by_id(submission.student_id)
                answers = self._repository.find_answers_by_submission(submission.id)
                questions = self._repository.find_questions_by_ids(a.question_id for a in answers)

                details: list[AnswerDetail] = []
                for answer in answers:
                    question = questions.get(answer.question_id)
                    details.append(
                        AnswerDetail(
                            question_id=answer.question_id,
                            question_content=question.content if question else "",
                            selected_key=answer.selected_option_key,
                            correct_key=question.correct_option_key if question else "",
                            is_correct=answer.is_correct,
                        )
                    )

                results.append(
                    StudentResult(
                        student_name=student.full_name,
                        student_email=student.email,
                        score=submission.total_score,
                        total_questions=total_questions,
                        status=submission.status,
                        answers=details,
                    )
                )
        return results
