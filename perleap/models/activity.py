from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from uuid import UUID, uuid4

from perleap.models.clock import now_ts

ACTIVITY_STATUSES = ("draft", "published", "archived")

# status -> statuses it may move to
ACTIVITY_TRANSITIONS: dict[str, frozenset[str]] = {
    "draft": frozenset({"published", "archived"}),
    "published": frozenset({"archived"}),
    "archived": frozenset(),
}


@dataclass(frozen=True, slots=True)
class Activity:
    id: UUID
    course_id: UUID
    title: str
    type: str = "Student-Chat"
    goal: str | None = None
    activity_content: str | None = None
    custom_focus: str | None = None
    difficulty: str = "adaptive"
    length: str | None = None
    config: dict[str, Any] | None = None
    status: str = "draft"  # draft|published|archived
    created_at: int = 0
    updated_at: int = 0

    @staticmethod
    def new(
        *,
        course_id: UUID,
        title: str,
        type: str = "Student-Chat",
        goal: str | None = None,
        activity_content: str | None = None,
        custom_focus: str | None = None,
        difficulty: str = "adaptive",
        length: str | None = None,
        config: dict[str, Any] | None = None,
    ) -> Activity:
        now = now_ts()
        return Activity(
            id=uuid4(),
            course_id=course_id,
            title=title,
            type=type,
            goal=goal,
            activity_content=activity_content,
            custom_focus=custom_focus,
            difficulty=difficulty,
            length=length,
            config=config,
            created_at=now,
            updated_at=now,
        )

    @property
    def is_published(self) -> bool:
        return self.status == "published"

    def can_move_to(self, status: str) -> bool:
        return status == self.status or status in ACTIVITY_TRANSITIONS[self.status]


@dataclass(frozen=True, slots=True)
class ActivityAssignment:
    id: UUID
    activity_id: UUID
    student_id: UUID
    assigned_by: UUID
    due_date: int | None = None
    status: str = "assigned"  # assigned|completed
    assigned_at: int = 0

    @staticmethod
    def new(
        *,
        activity_id: UUID,
        student_id: UUID,
        assigned_by: UUID,
        due_date: int | None = None,
    ) -> ActivityAssignment:
        return ActivityAssignment(
            id=uuid4(),
            activity_id=activity_id,
            student_id=student_id,
            assigned_by=assigned_by,
            due_date=due_date,
            assigned_at=now_ts(),
        )
