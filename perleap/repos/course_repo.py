from __future__ import annotations

from collections.abc import Callable
from typing import Protocol
from uuid import UUID

from perleap.models.course import Course, Enrollment


class CourseRepo(Protocol):
    async def get(self, course_id: UUID) -> Course | None: ...
    async def add(self, course: Course) -> None: ...
    async def update(self, course: Course) -> Course: ...
    async def delete(self, course_id: UUID) -> bool: ...
    async def list_by_teacher(self, teacher_id: UUID) -> list[Course]: ...
    async def list_by_ids(self, course_ids: list[UUID]) -> list[Course]: ...


class EnrollmentRepo(Protocol):
    async def get(self, course_id: UUID, student_id: UUID) -> Enrollment | None: ...
    async def add_many(self, enrollments: list[Enrollment]) -> None: ...
    async def list_by_course(self, course_id: UUID) -> list[Enrollment]: ...
    async def list_by_student(self, student_id: UUID) -> list[Enrollment]: ...


class InMemoryCourseRepo:
    def __init__(self, on_delete: Callable[[UUID], None] | None = None) -> None:
        self._by_id: dict[UUID, Course] = {}
        self._on_delete = on_delete

    async def get(self, course_id: UUID) -> Course | None:
        return self._by_id.get(course_id)

    async def add(self, course: Course) -> None:
        if course.id in self._by_id:
            raise ValueError("course already exists")
        self._by_id[course.id] = course

    async def update(self, course: Course) -> Course:
        if course.id not in self._by_id:
            raise KeyError("course not found")
        self._by_id[course.id] = course
        return course

    async def delete(self, course_id: UUID) -> bool:
        if self._by_id.pop(course_id, None) is None:
            return False
        if self._on_delete is not None:
            self._on_delete(course_id)
        return True

    async def list_by_teacher(self, teacher_id: UUID) -> list[Course]:
        courses = [c for c in self._by_id.values() if c.teacher_id == teacher_id]
        return sorted(courses, key=lambda c: c.created_at, reverse=True)

    async def list_by_ids(self, course_ids: list[UUID]) -> list[Course]:
        return [self._by_id[c] for c in course_ids if c in self._by_id]


class InMemoryEnrollmentRepo:
    def __init__(self) -> None:
        self._store: dict[tuple[UUID, UUID], Enrollment] = {}

    async def get(self, course_id: UUID, student_id: UUID) -> Enrollment | None:
        return self._store.get((course_id, student_id))

    async def add_many(self, enrollments: list[Enrollment]) -> None:
        keys = [(e.course_id, e.student_id) for e in enrollments]
        if any(k in self._store for k in keys):
            raise ValueError("enrollment already exists")
        for key, enrollment in zip(keys, enrollments):
            self._store[key] = enrollment

    async def list_by_course(self, course_id: UUID) -> list[Enrollment]:
        return [e for e in self._store.values() if e.course_id == course_id]

    async def list_by_student(self, student_id: UUID) -> list[Enrollment]:
        return [e for e in self._store.values() if e.student_id == student_id]

    def drop_course(self, course_id: UUID) -> None:
        for key in [k for k in self._store if k[0] == course_id]:
            del self._store[key]
