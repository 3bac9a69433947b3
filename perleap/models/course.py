from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID, uuid4

from perleap.models.clock import now_ts

COURSE_STATUSES = ("active", "archived")


@dataclass(frozen=True, slots=True)
class Course:
    id: UUID
    teacher_id: UUID
    title: str
    subject: str
    grade_level: str
    description: str | None = None
    subcategory: str | None = None
    status: str = "active"  # active|archived
    created_at: int = 0
    updated_at: int = 0

    @staticmethod
    def new(
        *,
        teacher_id: UUID,
        title: str,
        subject: str,
        grade_level: str,
        description: str | None = None,
        subcategory: str | None = None,
    ) -> Course:
        now = now_ts()
        return Course(
            id=uuid4(),
            teacher_id=teacher_id,
            title=title,
            subject=subject,
            grade_level=grade_level,
            description=description,
            subcategory=subcategory,
            created_at=now,
            updated_at=now,
        )


@dataclass(frozen=True, slots=True)
class Enrollment:
    course_id: UUID
    student_id: UUID
    enrolled_at: int = 0
