"""Assessment handler: exemption, validation, persistence."""

from __future__ import annotations

import json
import uuid

import pytest
from fastapi.testclient import TestClient

from perleap.db.store import Store
from perleap.models.run import ChatTurn
from tests.conftest import (
    FakeLLM,
    add_activity,
    add_course,
    add_profile,
    add_run,
    arun,
    auth,
    enroll,
    valid_report,
    valid_report_json,
)

TRANSCRIPT = [
    {"content": "How do I solve 2x + 3 = 7?", "type": "user", "timestamp": 1},
    {"content": "Start by subtracting 3 from both sides.", "type": "assistant", "timestamp": 2},
    {"content": "x = 2!", "type": "user", "timestamp": 3},
]


def _completed_run(store: Store, **activity_fields):
    teacher = add_profile(store, "teacher")
    course = add_course(store, teacher)
    activity = add_activity(store, course, **activity_fields)
    student = add_profile(store, "student")
    enroll(store, course, student)
    turns = tuple(ChatTurn(role="student", content=m["content"], timestamp=1) for m in TRANSCRIPT)
    activity_run = add_run(store, activity, student, status="completed", messages=turns)
    return teacher, course, activity, student, activity_run


def _assess(client: TestClient, user_id, run_id, title="Linear equations"):
    return client.post(
        "/v1/assessments",
        json={
            "runId": str(run_id),
            "chatMessages": TRANSCRIPT,
            "activityData": {
                "title": title,
                "goal": "Solve for x",
                "subject": "Mathematics",
                "grade_level": "8",
            },
        },
        headers=auth(user_id),
    )


# ---- exemption ----


def test_persona_activity_is_not_assessed(
    client: TestClient, store: Store, fake_llm: FakeLLM
) -> None:
    _, _, _, student, activity_run = _completed_run(store, title="Chat with PerLeap")
    resp = _assess(client, student.user_id, activity_run.id, title="Chat with PerLeap")

    assert resp.status_code == 200
    assert resp.json()["success"] is True
    assert resp.json()["assessment"] is None
    assert resp.json()["message"] == "Chat session completed successfully"
    assert fake_llm.calls == []
    assert arun(store.assessments.get_by_run(activity_run.id)) is None


def test_persona_match_is_case_insensitive_substring(
    client: TestClient, store: Store, fake_llm: FakeLLM
) -> None:
    _, _, _, student, activity_run = _completed_run(store)
    for title in ("PERLEAP", "my perleap session", "pErLeAp!"):
        resp = _assess(client, student.user_id, activity_run.id, title=title)
        assert resp.status_code == 200
        assert resp.json()["assessment"] is None
    assert fake_llm.calls == []


# ---- happy path ----


def test_completed_run_is_assessed_and_stored(
    client: TestClient, store: Store, fake_llm: FakeLLM
) -> None:
    _, course, _, student, activity_run = _completed_run(store)
    fake_llm.reply = valid_report_json()

    resp = _assess(client, student.user_id, activity_run.id)
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assessment = body["assessment"]
    assert assessment["activity_run_id"] == str(activity_run.id)
    assert assessment["course_id"] == str(course.id)
    assert assessment["student_id"] == str(student.user_id)
    assert [r["dimension"] for r in assessment["soft_table"]] == [
        "Cognitive",
        "Emotional",
        "Social",
        "Motivational",
        "Behavioral",
    ]
    assert assessment["cra_table"][0]["current_level"] == 72
    assert assessment["recommendations"]["soft"] == "Encourage explaining answers aloud"
    assert assessment["chat_context"] == TRANSCRIPT

    stored = arun(store.assessments.get_by_run(activity_run.id))
    assert stored is not None
    assert stored.full_assessment == fake_llm.reply


def test_model_call_uses_json_mode_and_transcript(
    client: TestClient, store: Store, fake_llm: FakeLLM
) -> None:
    _, _, _, student, activity_run = _completed_run(store)
    fake_llm.reply = valid_report_json()
    _assess(client, student.user_id, activity_run.id)

    [call] = fake_llm.calls
    assert call["json_mode"] is True
    assert call["max_tokens"] == 2000
    assert call["messages"][0]["content"].startswith("You are Agent Perleap")
    prompt = call["messages"][1]["content"]
    assert "Student: How do I solve 2x + 3 = 7?" in prompt
    assert "Assistant: Start by subtracting 3 from both sides." in prompt
    assert "Title: Linear equations" in prompt


def test_soft_rows_are_reordered_canonically(
    client: TestClient, store: Store, fake_llm: FakeLLM
) -> None:
    _, _, _, student, activity_run = _completed_run(store)
    report = valid_report()
    report["soft_table"].reverse()
    fake_llm.reply = "```json\n" + json.dumps(report) + "\n```"

    resp = _assess(client, student.user_id, activity_run.id)
    assert resp.status_code == 200
    assert resp.json()["assessment"]["soft_table"][0]["dimension"] == "Cognitive"


# ---- failures ----


def test_malformed_model_output_fails_closed(
    client: TestClient, store: Store, fake_llm: FakeLLM
) -> None:
    _, _, _, student, activity_run = _completed_run(store)
    fake_llm.reply = "SOFT Table\n| Cognitive | 80 | ..."

    resp = _assess(client, student.user_id, activity_run.id)
    assert resp.status_code == 502
    assert arun(store.assessments.get_by_run(activity_run.id)) is None


def test_missing_dimension_fails_closed(
    client: TestClient, store: Store, fake_llm: FakeLLM
) -> None:
    _, _, _, student, activity_run = _completed_run(store)
    report = valid_report()
    report["soft_table"] = report["soft_table"][:4]
    fake_llm.reply = json.dumps(report)

    assert _assess(client, student.user_id, activity_run.id).status_code == 502


def test_out_of_range_score_fails_closed(
    client: TestClient, store: Store, fake_llm: FakeLLM
) -> None:
    _, _, _, student, activity_run = _completed_run(store)
    report = valid_report()
    report["soft_table"][0]["developmental_stage"] = 140
    fake_llm.reply = json.dumps(report)

    assert _assess(client, student.user_id, activity_run.id).status_code == 502


def test_upstream_error_is_502(client: TestClient, store: Store, fake_llm: FakeLLM) -> None:
    _, _, _, student, activity_run = _completed_run(store)
    fake_llm.fail()
    assert _assess(client, student.user_id, activity_run.id).status_code == 502


def test_run_not_completed_is_422(client: TestClient, store: Store, fake_llm: FakeLLM) -> None:
    teacher = add_profile(store, "teacher")
    course = add_course(store, teacher)
    activity = add_activity(store, course)
    student = add_profile(store, "student")
    enroll(store, course, student)
    activity_run = add_run(store, activity, student, status="in_progress")

    resp = _assess(client, student.user_id, activity_run.id)
    assert resp.status_code == 422
    assert fake_llm.calls == []


def test_second_assessment_is_409(client: TestClient, store: Store, fake_llm: FakeLLM) -> None:
    _, _, _, student, activity_run = _completed_run(store)
    fake_llm.reply = valid_report_json()
    assert _assess(client, student.user_id, activity_run.id).status_code == 200
    assert _assess(client, student.user_id, activity_run.id).status_code == 409
    assert len(fake_llm.calls) == 1


def test_concurrent_duplicate_assessment_is_409(
    client: TestClient, store: Store, fake_llm: FakeLLM, monkeypatch: pytest.MonkeyPatch
) -> None:
    _, _, _, student, activity_run = _completed_run(store)
    fake_llm.reply = valid_report_json()
    assert _assess(client, student.user_id, activity_run.id).status_code == 200

    # A racing request that passed the existence check before the first write.
    async def not_found(_run_id):
        return None

    monkeypatch.setattr(store.assessments, "get_by_run", not_found)
    resp = _assess(client, student.user_id, activity_run.id)
    assert resp.status_code == 409
    assert resp.json() == {"error": "Assessment already exists for this run"}


def test_unknown_run_is_404(client: TestClient) -> None:
    assert _assess(client, uuid.uuid4(), uuid.uuid4()).status_code == 404


def test_other_student_is_403(client: TestClient, store: Store) -> None:
    _, _, _, _, activity_run = _completed_run(store)
    assert _assess(client, uuid.uuid4(), activity_run.id).status_code == 403


def test_missing_parent_activity_is_500(
    client: TestClient, store: Store, fake_llm: FakeLLM
) -> None:
    _, _, activity, student, activity_run = _completed_run(store)
    store.activities._by_id.pop(activity.id)  # type: ignore[attr-defined]
    fake_llm.reply = valid_report_json()

    resp = _assess(client, student.user_id, activity_run.id)
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to fetch activity data"}
    assert arun(store.assessments.get_by_run(activity_run.id)) is None


def test_missing_fields_is_422(client: TestClient) -> None:
    resp = client.post(
        "/v1/assessments", json={"runId": str(uuid.uuid4())}, headers=auth(uuid.uuid4())
    )
    assert resp.status_code == 422


# ---- reads ----


def test_teacher_reads_run_assessment_and_course_list(
    client: TestClient, store: Store, fake_llm: FakeLLM
) -> None:
    teacher, course, _, student, activity_run = _completed_run(store)
    fake_llm.reply = valid_report_json()
    _assess(client, student.user_id, activity_run.id)

    one = client.get(f"/v1/assessments/{activity_run.id}", headers=auth(teacher.user_id))
    assert one.status_code == 200
    assert one.json()["student_feedback"] == "You reasoned carefully through each step."

    many = client.get(f"/v1/courses/{course.id}/assessments", headers=auth(teacher.user_id))
    assert many.status_code == 200
    assert [a["activity_run_id"] for a in many.json()] == [str(activity_run.id)]


def test_student_cannot_list_course_assessments(client: TestClient, store: Store) -> None:
    _, course, _, student, _ = _completed_run(store)
    resp = client.get(f"/v1/courses/{course.id}/assessments", headers=auth(student.user_id))
    assert resp.status_code == 403


def test_assessment_not_yet_created_is_404(client: TestClient, store: Store) -> None:
    _, _, _, student, activity_run = _completed_run(store)
    resp = client.get(f"/v1/assessments/{activity_run.id}", headers=auth(student.user_id))
    assert resp.status_code == 404
