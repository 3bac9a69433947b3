"""Activity CRUD, visibility and lifecycle."""

from __future__ import annotations

import uuid

from fastapi.testclient import TestClient

from perleap.db.store import Store
from tests.conftest import add_activity, add_course, add_profile, arun, auth, enroll


def test_owner_creates_draft_activity(client: TestClient, store: Store) -> None:
    teacher = add_profile(store, "teacher")
    course = add_course(store, teacher)
    resp = client.post(
        "/v1/activities",
        json={"course_id": str(course.id), "title": "Fractions", "goal": "Add fractions"},
        headers=auth(teacher.user_id),
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["status"] == "draft"
    assert body["type"] == "Student-Chat"
    assert body["difficulty"] == "adaptive"


def test_create_in_foreign_course_is_403(client: TestClient, store: Store) -> None:
    course = add_course(store, add_profile(store, "teacher"))
    intruder = add_profile(store, "teacher")
    resp = client.post(
        "/v1/activities",
        json={"course_id": str(course.id), "title": "Sneaky"},
        headers=auth(intruder.user_id),
    )
    assert resp.status_code == 403


def test_draft_not_fetchable_by_non_enrolled_student(client: TestClient, store: Store) -> None:
    course = add_course(store, add_profile(store, "teacher"))
    draft = add_activity(store, course, status="draft")
    outsider = add_profile(store, "student")

    resp = client.get(f"/v1/activities/{draft.id}", headers=auth(outsider.user_id))
    assert resp.status_code == 403


def test_draft_not_fetchable_by_enrolled_student(client: TestClient, store: Store) -> None:
    course = add_course(store, add_profile(store, "teacher"))
    draft = add_activity(store, course, status="draft")
    student = add_profile(store, "student")
    enroll(store, course, student)

    resp = client.get(f"/v1/activities/{draft.id}", headers=auth(student.user_id))
    assert resp.status_code == 403


def test_published_fetchable_by_enrolled_student(client: TestClient, store: Store) -> None:
    course = add_course(store, add_profile(store, "teacher"))
    activity = add_activity(store, course)
    student = add_profile(store, "student")
    enroll(store, course, student)

    resp = client.get(f"/v1/activities/{activity.id}", headers=auth(student.user_id))
    assert resp.status_code == 200
    assert resp.json()["id"] == str(activity.id)


def test_missing_activity_is_404(client: TestClient) -> None:
    resp = client.get(f"/v1/activities/{uuid.uuid4()}", headers=auth(uuid.uuid4()))
    assert resp.status_code == 404


def test_course_listing_hides_drafts_from_students(client: TestClient, store: Store) -> None:
    teacher = add_profile(store, "teacher")
    course = add_course(store, teacher)
    add_activity(store, course, status="draft", title="Draft")
    add_activity(store, course, title="Live")
    student = add_profile(store, "student")
    enroll(store, course, student)

    as_student = client.get(f"/v1/courses/{course.id}/activities", headers=auth(student.user_id))
    as_teacher = client.get(f"/v1/courses/{course.id}/activities", headers=auth(teacher.user_id))
    assert [a["title"] for a in as_student.json()] == ["Live"]
    assert sorted(a["title"] for a in as_teacher.json()) == ["Draft", "Live"]


def test_publish_then_archive(client: TestClient, store: Store) -> None:
    teacher = add_profile(store, "teacher")
    activity = add_activity(store, add_course(store, teacher), status="draft")
    headers = auth(teacher.user_id)

    assert client.post(f"/v1/activities/{activity.id}/publish", headers=headers).json()[
        "status"
    ] == "published"
    assert client.post(f"/v1/activities/{activity.id}/archive", headers=headers).json()[
        "status"
    ] == "archived"


def test_archived_cannot_be_republished(client: TestClient, store: Store) -> None:
    teacher = add_profile(store, "teacher")
    activity = add_activity(store, add_course(store, teacher), status="archived")
    resp = client.post(f"/v1/activities/{activity.id}/publish", headers=auth(teacher.user_id))
    assert resp.status_code == 422
    assert arun(store.activities.get(activity.id)).status == "archived"


def test_published_cannot_return_to_draft(client: TestClient, store: Store) -> None:
    teacher = add_profile(store, "teacher")
    activity = add_activity(store, add_course(store, teacher))
    resp = client.patch(
        f"/v1/activities/{activity.id}", json={"status": "draft"}, headers=auth(teacher.user_id)
    )
    assert resp.status_code == 422


def test_patch_updates_fields(client: TestClient, store: Store) -> None:
    teacher = add_profile(store, "teacher")
    activity = add_activity(store, add_course(store, teacher), status="draft")
    resp = client.patch(
        f"/v1/activities/{activity.id}",
        json={"custom_focus": "Word problems", "config": {"hints": True}},
        headers=auth(teacher.user_id),
    )
    assert resp.status_code == 200
    assert resp.json()["custom_focus"] == "Word problems"
    assert resp.json()["config"] == {"hints": True}


def test_student_cannot_patch_activity(client: TestClient, store: Store) -> None:
    course = add_course(store, add_profile(store, "teacher"))
    activity = add_activity(store, course)
    student = add_profile(store, "student")
    enroll(store, course, student)
    resp = client.patch(
        f"/v1/activities/{activity.id}", json={"title": "x"}, headers=auth(student.user_id)
    )
    assert resp.status_code == 403


# ---- assignments ----


def test_assign_published_activity_to_enrolled_students(
    client: TestClient, store: Store
) -> None:
    teacher = add_profile(store, "teacher")
    course = add_course(store, teacher)
    activity = add_activity(store, course)
    student = add_profile(store, "student")
    enroll(store, course, student)

    resp = client.post(
        f"/v1/activities/{activity.id}/assignments",
        json={"student_ids": [str(student.user_id)], "due_date": 1_900_000_000},
        headers=auth(teacher.user_id),
    )
    assert resp.status_code == 201
    [assignment] = resp.json()
    assert assignment["status"] == "assigned"
    assert assignment["due_date"] == 1_900_000_000
    assert assignment["assigned_by"] == str(teacher.user_id)

    again = client.post(
        f"/v1/activities/{activity.id}/assignments",
        json={"student_ids": [str(student.user_id)]},
        headers=auth(teacher.user_id),
    )
    assert again.json() == []


def test_assign_draft_activity_is_422(client: TestClient, store: Store) -> None:
    teacher = add_profile(store, "teacher")
    course = add_course(store, teacher)
    activity = add_activity(store, course, status="draft")
    student = add_profile(store, "student")
    enroll(store, course, student)
    resp = client.post(
        f"/v1/activities/{activity.id}/assignments",
        json={"student_ids": [str(student.user_id)]},
        headers=auth(teacher.user_id),
    )
    assert resp.status_code == 422


def test_assign_unenrolled_student_is_422(client: TestClient, store: Store) -> None:
    teacher = add_profile(store, "teacher")
    activity = add_activity(store, add_course(store, teacher))
    stranger = add_profile(store, "student")
    resp = client.post(
        f"/v1/activities/{activity.id}/assignments",
        json={"student_ids": [str(stranger.user_id)]},
        headers=auth(teacher.user_id),
    )
    assert resp.status_code == 422
