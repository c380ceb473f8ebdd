"""FastAPI server that exposes the student and teacher endpoints."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
import logging
from threading import Thread

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field
import uvicorn

from exam_app.constants.about import APP_ABOUT_TEXT, APP_LICENSE, APP_NAME, APP_VERSION
from exam_app.constants.network_constants import CORS_ALLOWED_ORIGINS, DEFAULT_HOST, DEFAULT_PORT
from exam_app.core.errors import ConflictError, ExamError, ForbiddenError, NotFoundError
from exam_app.core.exam_manager import ExamManager
from exam_app.core.models import ClassroomSummary, SubmissionStatus, SubmittedAnswer

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: dict[type[ExamError], int] = {
    NotFoundError: 404,
    ForbiddenError: 403,
    ConflictError: 409,
}


class _ResponseModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class StartExamPayload(BaseModel):
    """Payload schema for joining an exam."""

    access_code: str
    email: str


class AnswerPayload(BaseModel):
    question_id: int
    selected_key: str


class SubmitExamPayload(BaseModel):
    """Payload schema for handing in an exam."""

    submission_id: int
    answers: list[AnswerPayload] = Field(default_factory=list)


class PersonPayload(BaseModel):
    email: str
    full_name: str


class CreateClassroomPayload(BaseModel):
    title: str
    duration_minutes: int = Field(gt=0)
    category_counts: dict[str, int]


class RegisterStudentPayload(BaseModel):
    email: str


class ActivePayload(BaseModel):
    active: bool


class OptionView(_ResponseModel):
    key: str
    text: str


class QuestionView(_ResponseModel):
    id: int
    content: str
    options: list[OptionView]


class SessionView(_ResponseModel):
    classroom_id: int
    title: str
    duration_minutes: int
    submission_id: int
    submission_start_time: datetime
    questions: list[QuestionView]


class ScoreView(_ResponseModel):
    score: int
    total_questions: int
    status: SubmissionStatus


class PersonView(_ResponseModel):
    id: int
    email: str
    full_name: str


class ClassroomView(_ResponseModel):
    id: int
    teacher_id: int
    title: str
    access_code: str
    duration_minutes: int
    is_active: bool
    student_count: int


class AnswerDetailView(_ResponseModel):
    question_id: int
    question_content: str
    selected_key: str
    correct_key: str
    is_correct: bool


class StudentResultView(_ResponseModel):
    student_name: str
    student_email: str
    score: int
    total_questions: int
    status: SubmissionStatus
    answers: list[AnswerDetailView]


@contextmanager
def _service_errors() -> Iterator[None]:
    """Translate service failures into HTTP errors."""
    try:
        yield
    except ExamError as exc:
        status_code = next(
            (code for error_type, code in _STATUS_BY_ERROR.items() if isinstance(exc, error_type)),
            400,
        )
        raise HTTPException(status_code=status_code, detail=exc.message) from exc
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


def _get_exam_manager_dependency(exam_manager: ExamManager):
    def dependency() -> ExamManager:
        return exam_manager

    return dependency


def create_api_app(exam_manager: ExamManager) -> FastAPI:
    """Create a FastAPI application wired to the provided exam manager."""
    app = FastAPI(
        title=f"{APP_NAME} API",
        version=APP_VERSION,
        description=APP_ABOUT_TEXT,
        license_info={"name": APP_LICENSE},
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    manager_dep = _get_exam_manager_dependency(exam_manager)

    # --- Student endpoints ---

    @app.post("/api/exam/start", response_model=SessionView)
    def start_exam(
        payload: StartExamPayload,
        manager: ExamManager = Depends(manager_dep),
    ) -> SessionView:
        with _service_errors():
            session = manager.start_exam(payload.access_code, payload.email)
        return SessionView.model_validate(session)

    @app.post("/api/exam/submit", response_model=ScoreView)
    def submit_exam(
        payload: SubmitExamPayload,
        manager: ExamManager = Depends(manager_dep),
    ) -> ScoreView:
        answers = [
            SubmittedAnswer(question_id=a.question_id, selected_key=a.selected_key)
            for a in payload.answers
        ]
        with _service_errors():
            result = manager.submit_exam(payload.submission_id, answers)
        return ScoreView.model_validate(result)

    # --- Records ---

    @app.post("/api/students", response_model=PersonView, status_code=201)
    def add_student(
        payload: PersonPayload,
        manager: ExamManager = Depends(manager_dep),
    ) -> PersonView:
        with _service_errors():
            student = manager.add_student(payload.email, payload.full_name)
        return PersonView.model_validate(student)

    @app.post("/api/teachers", response_model=PersonView, status_code=201)
    def add_teacher(
        payload: PersonPayload,
        manager: ExamManager = Depends(manager_dep),
    ) -> PersonView:
        with _service_errors():
            teacher = manager.add_teacher(payload.email, payload.full_name)
        return PersonView.model_validate(teacher)

    # --- Teacher endpoints ---

    @app.post("/api/teacher/{teacher_id}/classroom", response_model=ClassroomView, status_code=201)
    def create_classroom(
        teacher_id: int,
        payload: CreateClassroomPayload,
        manager: ExamManager = Depends(manager_dep),
    ) -> ClassroomView:
        with _service_errors():
            classroom = manager.create_classroom(
                teacher_id,
                payload.title,
                payload.duration_minutes,
                payload.category_counts,
            )
        return ClassroomView.model_validate(ClassroomSummary.from_classroom(classroom))

    @app.get("/api/teacher/{teacher_id}/classrooms", response_model=list[ClassroomView])
    def list_classrooms(
        teacher_id: int,
        manager: ExamManager = Depends(manager_dep),
    ) -> list[ClassroomView]:
        with _service_errors():
            summaries = manager.list_classrooms(teacher_id)
        return [ClassroomView.model_validate(s) for s in summaries]

    @app.post(
        "/api/teacher/{teacher_id}/classroom/{classroom_id}/students",
        response_model=ClassroomView,
    )
    def register_student(
        teacher_id: int,
        classroom_id: int,
        payload: RegisterStudentPayload,
        manager: ExamManager = Depends(manager_dep),
    ) -> ClassroomView:
        with _service_errors():
            summary = manager.register_student(teacher_id, classroom_id, payload.email)
        return ClassroomView.model_validate(summary)

    @app.put(
        "/api/teacher/{teacher_id}/classroom/{classroom_id}/active",
        response_model=ClassroomView,
    )
    def set_classroom_active(
        teacher_id: int,
        classroom_id: int,
        payload: ActivePayload,
        manager: ExamManager = Depends(manager_dep),
    ) -> ClassroomView:
        with _service_errors():
            summary = manager.set_classroom_active(teacher_id, classroom_id, payload.active)
        return ClassroomView.model_validate(summary)

    @app.get(
        "/api/teacher/{teacher_id}/classroom/{classroom_id}/results",
        response_model=list[StudentResultView],
    )
    def get_classroom_results(
        teacher_id: int,
        classroom_id: int,
        manager: ExamManager = Depends(manager_dep),
    ) -> list[StudentResultView]:
        with _service_errors():
            results = manager.get_classroom_results(classroom_id, teacher_id=teacher_id)
        return [StudentResultView.model_validate(r) for r in results]

    return app


def start_api_server(
    exam_manager: ExamManager,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
    background: bool = False,
) -> Thread | None:
    """Run the FastAPI server, either blocking or in a background daemon thread."""
    app = create_api_app(exam_manager)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    server = uvicorn.Server(config)
    logger.info("Serving %s API on %s:%d", APP_NAME, host, port)

    if not background:
        server.run()
        return None

    thread = Thread(target=server.run, name="ExamApiServer", daemon=True)
    thread.start()
    return thread
