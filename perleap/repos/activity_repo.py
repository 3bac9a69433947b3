from __future__ import annotations

from dataclasses import replace
from typing import Protocol
from uuid import UUID

from perleap.models.activity import Activity, ActivityAssignment


class ActivityRepo(Protocol):
    async def get(self, activity_id: UUID) -> Activity | None: ...
    async def add(self, activity: Activity) -> None: ...
    async def update(self, activity: Activity) -> Activity: ...
    async def list_by_courses(
        self, course_ids: list[UUID], status: str | None = None
    ) -> list[Activity]: ...


class AssignmentRepo(Protocol):
    async def add_many(self, assignments: list[ActivityAssignment]) -> None: ...
    async def list_by_student(
        self, student_id: UUID, status: str | None = None
    ) -> list[ActivityAssignment]: ...
    async def list_by_activity(self, activity_id: UUID) -> list[ActivityAssignment]: ...
    async def mark_completed(self, activity_id: UUID, student_id: UUID) -> int: ...


class InMemoryActivityRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, Activity] = {}

    async def get(self, activity_id: UUID) -> Activity | None:
        return self._by_id.get(activity_id)

    async def add(self, activity: Activity) -> None:
        if activity.id in self._by_id:
            raise ValueError("activity already exists")
        self._by_id[activity.id] = activity

    async def update(self, activity: Activity) -> Activity:
        if activity.id not in self._by_id:
            raise KeyError("activity not found")
        self._by_id[activity.id] = activity
        return activity

    async def list_by_courses(
        self, course_ids: list[UUID], status: str | None = None
    ) -> list[Activity]:
        wanted = set(course_ids)
        found = [
            a
            for a in self._by_id.values()
            if a.course_id in wanted and (status is None or a.status == status)
        ]
        return sorted(found, key=lambda a: a.created_at)

    def drop_course(self, course_id: UUID) -> list[UUID]:
        dropped = [a.id for a in self._by_id.values() if a.course_id == course_id]
        for activity_id in dropped:
            del self._by_id[activity_id]
        return dropped


class InMemoryAssignmentRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, ActivityAssignment] = {}

    async def add_many(self, assignments: list[ActivityAssignment]) -> None:
        for a in assignments:
            self._by_id[a.id] = a

    async def list_by_student(
        self, student_id: UUID, status: str | None = None
    ) -> list[ActivityAssignment]:
        return [
            a
            for a in self._by_id.values()
            if a.student_id == student_id and (status is None or a.status == status)
        ]

    async def list_by_activity(self, activity_id: UUID) -> list[ActivityAssignment]:
        return [a for a in self._by_id.values() if a.activity_id == activity_id]

    async def mark_completed(self, activity_id: UUID, student_id: UUID) -> int:
        changed = 0
        for a in list(self._by_id.values()):
            if (
                a.activity_id == activity_id
                and a.student_id == student_id
                and a.status == "assigned"
            ):
                self._by_id[a.id] = replace(a, status="completed")
                changed += 1
        return changed

    def drop_activities(self, activity_ids: list[UUID]) -> None:
        wanted = set(activity_ids)
        for a in [a for a in self._by_id.values() if a.activity_id in wanted]:
            del self._by_id[a.id]
