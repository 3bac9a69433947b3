from __future__ import annotations

import asyncio
import json
import sys
import uuid
from collections.abc import Iterator
from dataclasses import replace
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

from perleap.core.errors import UpstreamError
from perleap.db.store import Store, memory_store
from perleap.main import app
from perleap.models.activity import Activity
from perleap.models.clock import now_ts
from perleap.models.course import Course, Enrollment
from perleap.models.profile import Profile
from perleap.models.run import ActivityRun, ChatTurn
from perleap.services import token_service

# Ensure repo root is on sys.path so `import perleap` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


class FakeLLM:
    """Stands in for ChatCompletionClient and records every call."""

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.reply = "Hello from your teacher."
        self.error: Exception | None = None

    async def complete(self, messages: list[dict[str, str]], **kwargs: Any) -> str:
        self.calls.append({"messages": messages, **kwargs})
        if self.error is not None:
            raise self.error
        return self.reply

    async def aclose(self) -> None:
        return None

    def fail(self, message: str = "AI service error: 500") -> None:
        self.error = UpstreamError(message)


@pytest.fixture(autouse=True)
def fresh_state() -> Iterator[None]:
    """Give every test an empty in-memory store and a recording model client."""
    original_llm = app.state.llm
    app.state.memory_store = memory_store()
    app.state.llm = FakeLLM()
    yield
    app.state.llm = original_llm


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def store() -> Store:
    return app.state.memory_store


@pytest.fixture
def fake_llm() -> FakeLLM:
    return app.state.llm


def mint_token(user_id: uuid.UUID | str | None = None, email: str | None = None) -> str:
    """Create a valid HS256 JWT for testing."""
    sub = str(user_id) if user_id is not None else str(uuid.uuid4())
    return token_service.create_access_token(sub=sub, email=email)


def auth(user_id: uuid.UUID, email: str | None = None) -> dict[str, str]:
    return {"Authorization": f"Bearer {mint_token(user_id, email)}"}


# ---------------------------------------------------------------------------
# Store seeding helpers
# ---------------------------------------------------------------------------


def arun(coro):
    return asyncio.run(coro)


def add_profile(
    store: Store, role: str, full_name: str | None = None, email: str | None = None
) -> Profile:
    user_id = uuid.uuid4()
    profile = Profile.new(
        user_id=user_id,
        email=email or f"{role}-{user_id.hex[:8]}@example.com",
        role=role,
        full_name=full_name,
    )
    return arun(store.profiles.save(profile))


def add_course(store: Store, teacher: Profile, **fields: Any) -> Course:
    values = {"title": "Algebra I", "subject": "Mathematics", "grade_level": "8"}
    values.update(fields)
    course = Course.new(teacher_id=teacher.user_id, **values)
    arun(store.courses.add(course))
    return course


def enroll(store: Store, course: Course, *students: Profile) -> None:
    arun(
        store.enrollments.add_many(
            [
                Enrollment(course_id=course.id, student_id=s.user_id, enrolled_at=now_ts())
                for s in students
            ]
        )
    )


def add_activity(
    store: Store, course: Course, status: str = "published", **fields: Any
) -> Activity:
    values = {"title": "Linear equations", "goal": "Solve for x"}
    values.update(fields)
    activity = replace(Activity.new(course_id=course.id, **values), status=status)
    arun(store.activities.add(activity))
    return activity


def add_run(
    store: Store,
    activity: Activity,
    student: Profile,
    status: str = "created",
    messages: tuple[ChatTurn, ...] = (),
) -> ActivityRun:
    now = now_ts()
    activity_run = replace(
        ActivityRun.new(activity_id=activity.id, student_id=student.user_id),
        status=status,
        messages=messages,
        started_at=now if status != "created" else None,
        completed_at=now if status == "completed" else None,
    )
    arun(store.runs.add(activity_run))
    return activity_run


def valid_report(**overrides: Any) -> dict[str, Any]:
    report = {
        "soft_table": [
            {
                "dimension": name,
                "color": color,
                "developmental_stage": 60 + i,
                "motivational_level": 70,
                "leap_probability": 50,
                "mindset_phase": "Up" if i % 2 == 0 else "Down",
                "context": f"{name} context",
            }
            for i, (name, color) in enumerate(
                [
                    ("Cognitive", "White"),
                    ("Emotional", "Red"),
                    ("Social", "Blue"),
                    ("Motivational", "Green"),
                    ("Behavioral", "Yellow"),
                ]
            )
        ],
        "cra_table": [
            {
                "area": "Algebra",
                "ks_component": "Isolating a variable",
                "current_level": 72,
                "current_level_description": "Solid on one-step equations",
                "actionable_challenges": "Try two-step equations with fractions",
            }
        ],
        "student_feedback": "You reasoned carefully through each step.",
        "teacher_feedback": "Engagement was high; pacing could speed up.",
        "recommendations": {
            "soft": "Encourage explaining answers aloud",
            "content": "Practice equations with negative coefficients",
        },
    }
    report.update(overrides)
    return report


def valid_report_json(**overrides: Any) -> str:
    return json.dumps(valid_report(**overrides))
