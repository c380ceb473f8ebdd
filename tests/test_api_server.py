from fastapi.testclient import TestClient
import pytest

from exam_app.server.api_server import create_api_app


@pytest.fixture
def client(world):
    return TestClient(create_api_app(world.manager))


def _start(client, email="alice@school.test"):
    return client.post("/api/exam/start", json={"access_code": "ABC123", "email": email})


def test_start_returns_questions_without_correct_keys(client, world):
    response = _start(client)

    assert response.status_code == 200
    body = response.json()
    assert body["classroom_id"] == world.classroom.id
    assert body["duration_minutes"] == 30
    assert body["submission_start_time"].startswith("2026-03-02T09:00:00")
    assert len(body["questions"]) == 2
    for question in body["questions"]:
        assert set(question) == {"id", "content", "options"}
        assert question["options"][0] == {"key": "A", "text": "Option A"}


@pytest.mark.parametrize(
    "access_code, email, status_code",
    [
        ("WRONG1", "alice@school.test", 404),
        ("ABC123", "nobody@school.test", 404),
        ("ABC123", "carol@school.test", 403),
    ],
)
def test_start_errors_map_to_http_status(client, access_code, email, status_code):
    response = client.post("/api/exam/start", json={"access_code": access_code, "email": email})

    assert response.status_code == status_code
    assert response.json()["detail"]


def test_submit_scores_and_second_submit_conflicts(client, world):
    q1, q2 = world.questions
    submission_id = _start(client).json()["submission_id"]
    answers = [
        {"question_id": q1.id, "selected_key": "A"},
        {"question_id": q2.id, "selected_key": "C"},
        {"question_id": world.outsider.id, "selected_key": "A"},
    ]

    response = client.post("/api/exam/submit", json={"submission_id": submission_id, "answers": answers})

    assert response.status_code == 200
    assert response.json() == {"score": 1, "total_questions": 2, "status": "COMPLETED"}

    again = client.post("/api/exam/submit", json={"submission_id": submission_id, "answers": answers})
    assert again.status_code == 409


def test_late_submit_conflicts(client, world):
    submission_id = _start(client).json()["submission_id"]
    world.clock.advance(minutes=33)

    response = client.post("/api/exam/submit", json={"submission_id": submission_id, "answers": []})

    assert response.status_code == 409
    assert "Time limit" in response.json()["detail"]


def test_teacher_flow_creates_classroom_and_reads_results(client, world):
    teacher = client.post(
        "/api/teachers", json={"email": "prof@school.test", "full_name": "Prof Plum"}
    ).json()
    student = client.post(
        "/api/students", json={"email": "dan@school.test", "full_name": "Dan Moe"}
    )
    assert student.status_code == 201

    created = client.post(
        f"/api/teacher/{teacher['id']}/classroom",
        json={"title": "Pop quiz", "duration_minutes": 10, "category_counts": {"Algebra": 2}},
    )
    assert created.status_code == 201
    classroom = created.json()
    assert classroom["is_active"] is True

    registered = client.post(
        f"/api/teacher/{teacher['id']}/classroom/{classroom['id']}/students",
        json={"email": "dan@school.test"},
    )
    assert registered.json()["student_count"] == 1

    start = client.post(
        "/api/exam/start", json={"access_code": classroom["access_code"], "email": "dan@school.test"}
    ).json()
    answers = [{"question_id": q["id"], "selected_key": "A"} for q in start["questions"]]
    client.post("/api/exam/submit", json={"submission_id": start["submission_id"], "answers": answers})

    results = client.get(f"/api/teacher/{teacher['id']}/classroom/{classroom['id']}/results")
    assert results.status_code == 200
    [row] = results.json()
    assert row["student_email"] == "dan@school.test"
    assert row["score"] == 1
    assert row["total_questions"] == 2
    assert len(row["answers"]) == 2

    listed = client.get(f"/api/teacher/{teacher['id']}/classrooms").json()
    assert [c["id"] for c in listed] == [classroom["id"]]


def test_deactivated_classroom_rejects_start(client, world):
    teacher_id = world.classroom.teacher_id
    response = client.put(
        f"/api/teacher/{teacher_id}/classroom/{world.classroom.id}/active", json={"active": False}
    )
    assert response.json()["is_active"] is False

    assert _start(client).status_code == 403


def test_results_of_foreign_classroom_are_forbidden(client, world):
    other = client.post(
        "/api/teachers", json={"email": "other@school.test", "full_name": "Ada Lovelace"}
    ).json()

    response = client.get(f"/api/teacher/{other['id']}/classroom/{world.classroom.id}/results")

    assert response.status_code == 403


def test_insufficient_bank_is_unprocessable(client, world):
    response = client.post(
        f"/api/teacher/{world.classroom.teacher_id}/classroom",
        json={"title": "Big", "duration_minutes": 10, "category_counts": {"Geometry": 5}},
    )

    assert response.status_code == 422


def test_duplicate_student_email_is_unprocessable(client):
    response = client.post(
        "/api/students", json={"email": "alice@school.test", "full_name": "Alice Again"}
    )

    assert response.status_code == 422
