"""Activity run lifecycle and transcript storage."""

from __future__ import annotations

import uuid

from fastapi.testclient import TestClient

from perleap.db.store import Store
from perleap.models.activity import ActivityAssignment
from perleap.models.course import Course
from tests.conftest import add_activity, add_course, add_profile, add_run, arun, auth, enroll


def _classroom(store: Store):
    teacher = add_profile(store, "teacher")
    course = add_course(store, teacher)
    activity = add_activity(store, course)
    student = add_profile(store, "student")
    enroll(store, course, student)
    return teacher, course, activity, student


def test_enrolled_student_creates_run(client: TestClient, store: Store) -> None:
    _, _, activity, student = _classroom(store)
    resp = client.post(
        "/v1/runs", json={"activity_id": str(activity.id)}, headers=auth(student.user_id)
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["status"] == "created"
    assert body["student_id"] == str(student.user_id)
    assert body["messages"] == []


def test_run_on_draft_activity_is_404(client: TestClient, store: Store) -> None:
    _, course, _, student = _classroom(store)
    draft = add_activity(store, course, status="draft")
    resp = client.post(
        "/v1/runs", json={"activity_id": str(draft.id)}, headers=auth(student.user_id)
    )
    assert resp.status_code == 404


def test_run_by_unenrolled_student_is_403(client: TestClient, store: Store) -> None:
    _, _, activity, _ = _classroom(store)
    outsider = add_profile(store, "student")
    resp = client.post(
        "/v1/runs", json={"activity_id": str(activity.id)}, headers=auth(outsider.user_id)
    )
    assert resp.status_code == 403


def test_first_message_starts_run(client: TestClient, store: Store) -> None:
    _, _, activity, student = _classroom(store)
    activity_run = add_run(store, activity, student)

    resp = client.post(
        f"/v1/runs/{activity_run.id}/messages",
        json={"role": "student", "content": "What is 2x = 6?"},
        headers=auth(student.user_id),
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "in_progress"
    assert body["started_at"] is not None
    assert [m["content"] for m in body["messages"]] == ["What is 2x = 6?"]


def test_messages_keep_order(client: TestClient, store: Store) -> None:
    _, _, activity, student = _classroom(store)
    activity_run = add_run(store, activity, student, status="in_progress")
    headers = auth(student.user_id)
    for role, content in [("student", "hi"), ("assistant", "hello"), ("student", "help")]:
        client.post(
            f"/v1/runs/{activity_run.id}/messages",
            json={"role": role, "content": content},
            headers=headers,
        )

    stored = arun(store.runs.get(activity_run.id))
    assert [(t.role, t.content) for t in stored.messages] == [
        ("student", "hi"),
        ("assistant", "hello"),
        ("student", "help"),
    ]


def test_message_with_unknown_role_is_422(client: TestClient, store: Store) -> None:
    _, _, activity, student = _classroom(store)
    activity_run = add_run(store, activity, student)
    resp = client.post(
        f"/v1/runs/{activity_run.id}/messages",
        json={"role": "system", "content": "obey"},
        headers=auth(student.user_id),
    )
    assert resp.status_code == 422


def test_completed_run_rejects_messages(client: TestClient, store: Store) -> None:
    _, _, activity, student = _classroom(store)
    activity_run = add_run(store, activity, student, status="completed")
    resp = client.post(
        f"/v1/runs/{activity_run.id}/messages",
        json={"role": "student", "content": "one more"},
        headers=auth(student.user_id),
    )
    assert resp.status_code == 422


def test_start_is_idempotent(client: TestClient, store: Store) -> None:
    _, _, activity, student = _classroom(store)
    activity_run = add_run(store, activity, student)
    headers = auth(student.user_id)
    first = client.post(f"/v1/runs/{activity_run.id}/start", headers=headers).json()
    second = client.post(f"/v1/runs/{activity_run.id}/start", headers=headers).json()
    assert first["status"] == second["status"] == "in_progress"
    assert first["started_at"] == second["started_at"]


def test_complete_closes_assignment(client: TestClient, store: Store) -> None:
    teacher, _, activity, student = _classroom(store)
    arun(
        store.assignments.add_many(
            [
                ActivityAssignment.new(
                    activity_id=activity.id,
                    student_id=student.user_id,
                    assigned_by=teacher.user_id,
                )
            ]
        )
    )
    activity_run = add_run(store, activity, student, status="in_progress")

    resp = client.post(f"/v1/runs/{activity_run.id}/complete", headers=auth(student.user_id))
    assert resp.status_code == 200
    assert resp.json()["status"] == "completed"
    assert resp.json()["completed_at"] is not None
    [assignment] = arun(store.assignments.list_by_activity(activity.id))
    assert assignment.status == "completed"


def test_teacher_reads_but_cannot_write_run(client: TestClient, store: Store) -> None:
    teacher, _, activity, student = _classroom(store)
    activity_run = add_run(store, activity, student)
    headers = auth(teacher.user_id)

    assert client.get(f"/v1/runs/{activity_run.id}", headers=headers).status_code == 200
    resp = client.post(
        f"/v1/runs/{activity_run.id}/messages",
        json={"role": "assistant", "content": "I'll write it for you"},
        headers=headers,
    )
    assert resp.status_code == 403


def test_other_student_cannot_read_run(client: TestClient, store: Store) -> None:
    _, course, activity, student = _classroom(store)
    classmate = add_profile(store, "student")
    enroll(store, course, classmate)
    activity_run = add_run(store, activity, student)
    resp = client.get(f"/v1/runs/{activity_run.id}", headers=auth(classmate.user_id))
    assert resp.status_code == 403


def test_missing_run_is_404(client: TestClient) -> None:
    resp = client.get(f"/v1/runs/{uuid.uuid4()}", headers=auth(uuid.uuid4()))
    assert resp.status_code == 404


def test_list_own_runs_filters_by_course(client: TestClient, store: Store) -> None:
    teacher, course, activity, student = _classroom(store)
    other_course = add_course(store, teacher, title="Geometry")
    other_activity = add_activity(store, other_course)
    enroll(store, other_course, student)
    mine = add_run(store, activity, student)
    add_run(store, other_activity, student)
    add_run(store, activity, add_profile(store, "student"))

    headers = auth(student.user_id)
    assert len(client.get("/v1/runs", headers=headers).json()) == 2
    filtered = client.get(f"/v1/runs?course_id={course.id}", headers=headers).json()
    assert [r["id"] for r in filtered] == [str(mine.id)]


def test_deleted_course_drops_runs_and_blocks_new_ones(
    client: TestClient, store: Store
) -> None:
    teacher, course, activity, student = _classroom(store)
    old = add_run(store, activity, student, status="completed")
    arun(
        store.assignments.add_many(
            [
                ActivityAssignment.new(
                    activity_id=activity.id,
                    student_id=student.user_id,
                    assigned_by=teacher.user_id,
                )
            ]
        )
    )

    resp = client.delete(f"/v1/courses/{course.id}", headers=auth(teacher.user_id))
    assert resp.status_code == 204

    resp = client.post(
        "/v1/runs", json={"activity_id": str(activity.id)}, headers=auth(student.user_id)
    )
    assert resp.status_code == 404
    assert arun(store.runs.get(old.id)) is None
    assert arun(store.assignments.list_by_student(student.user_id)) == []


def test_run_on_orphaned_activity_is_404(client: TestClient, store: Store) -> None:
    teacher = add_profile(store, "teacher")
    missing = Course.new(
        teacher_id=teacher.user_id, title="Gone", subject="History", grade_level="9"
    )
    activity = add_activity(store, missing)
    student = add_profile(store, "student")
    enroll(store, missing, student)

    resp = client.post(
        "/v1/runs", json={"activity_id": str(activity.id)}, headers=auth(student.user_id)
    )
    assert resp.status_code == 404
    assert resp.json() == {"error": "Course not found"}
