from __future__ import annotations

import uuid

from fastapi.testclient import TestClient

from perleap.db.store import Store
from tests.conftest import add_course, add_profile, arun, auth, enroll


def test_enroll_adds_students_and_skips_existing(client: TestClient, store: Store) -> None:
    teacher = add_profile(store, "teacher")
    course = add_course(store, teacher)
    a = add_profile(store, "student")
    b = add_profile(store, "student")
    enroll(store, course, a)

    resp = client.post(
        f"/v1/courses/{course.id}/students",
        json={"student_ids": [str(a.user_id), str(b.user_id), str(b.user_id)]},
        headers=auth(teacher.user_id),
    )
    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "added": 1, "student_ids": [str(b.user_id)]}
    enrolled = {e.student_id for e in arun(store.enrollments.list_by_course(course.id))}
    assert enrolled == {a.user_id, b.user_id}


def test_enroll_rejects_non_student_ids(client: TestClient, store: Store) -> None:
    teacher = add_profile(store, "teacher")
    course = add_course(store, teacher)
    other_teacher = add_profile(store, "teacher")

    resp = client.post(
        f"/v1/courses/{course.id}/students",
        json={"student_ids": [str(other_teacher.user_id), str(uuid.uuid4())]},
        headers=auth(teacher.user_id),
    )
    assert resp.status_code == 422
    assert arun(store.enrollments.list_by_course(course.id)) == []


def test_enroll_rejects_empty_list(client: TestClient, store: Store) -> None:
    teacher = add_profile(store, "teacher")
    course = add_course(store, teacher)
    resp = client.post(
        f"/v1/courses/{course.id}/students",
        json={"student_ids": []},
        headers=auth(teacher.user_id),
    )
    assert resp.status_code == 422


def test_enroll_by_non_owner_is_403(client: TestClient, store: Store) -> None:
    course = add_course(store, add_profile(store, "teacher"))
    student = add_profile(store, "student")
    resp = client.post(
        f"/v1/courses/{course.id}/students",
        json={"student_ids": [str(student.user_id)]},
        headers=auth(student.user_id),
    )
    assert resp.status_code == 403


def test_list_students_flags_enrollment(client: TestClient, store: Store) -> None:
    teacher = add_profile(store, "teacher")
    course = add_course(store, teacher)
    inside = add_profile(store, "student", full_name="Alice")
    add_profile(store, "student", full_name="Bob")
    enroll(store, course, inside)

    resp = client.get(f"/v1/students?course_id={course.id}", headers=auth(teacher.user_id))
    assert resp.status_code == 200
    assert {s["full_name"]: s["enrolled"] for s in resp.json()} == {
        "Alice": True,
        "Bob": False,
    }


def test_list_students_without_course(client: TestClient, store: Store) -> None:
    teacher = add_profile(store, "teacher")
    add_profile(store, "student", full_name="Alice")
    resp = client.get("/v1/students", headers=auth(teacher.user_id))
    assert resp.status_code == 200
    assert [s["enrolled"] for s in resp.json()] == [None]


def test_list_students_requires_teacher(client: TestClient, store: Store) -> None:
    student = add_profile(store, "student")
    resp = client.get("/v1/students", headers=auth(student.user_id))
    assert resp.status_code == 403
