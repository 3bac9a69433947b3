from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from uuid import UUID, uuid4

from perleap.models.clock import now_ts

# (dimension, color) rows of the SOFT table, in display order.
SOFT_DIMENSIONS: tuple[tuple[str, str], ...] = (
    ("Cognitive", "White"),
    ("Emotional", "Red"),
    ("Social", "Blue"),
    ("Motivational", "Green"),
    ("Behavioral", "Yellow"),
)


@dataclass(frozen=True, slots=True)
class Assessment:
    """Derived evaluation of a completed run. Never updated after insert."""

    id: UUID
    activity_run_id: UUID
    student_id: UUID
    course_id: UUID
    soft_table: list[dict[str, Any]]
    cra_table: list[dict[str, Any]]
    student_feedback: str
    teacher_feedback: str | None = None
    recommendations: dict[str, str] = field(default_factory=dict)
    chat_context: list[dict[str, Any]] = field(default_factory=list)
    full_assessment: str = ""
    created_at: int = 0

    @staticmethod
    def new(
        *,
        activity_run_id: UUID,
        student_id: UUID,
        course_id: UUID,
        soft_table: list[dict[str, Any]],
        cra_table: list[dict[str, Any]],
        student_feedback: str,
        teacher_feedback: str | None,
        recommendations: dict[str, str],
        chat_context: list[dict[str, Any]],
        full_assessment: str,
    ) -> Assessment:
        return Assessment(
            id=uuid4(),
            activity_run_id=activity_run_id,
            student_id=student_id,
            course_id=course_id,
            soft_table=soft_table,
            cra_table=cra_table,
            student_feedback=student_feedback,
            teacher_feedback=teacher_feedback,
            recommendations=recommendations,
            chat_context=chat_context,
            full_assessment=full_assessment,
            created_at=now_ts(),
        )
