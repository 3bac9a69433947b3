"""Course CRUD.

Only teachers create courses and the creator becomes the owner. Reads are
open to the owner and enrolled students; writes to the owner only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from uuid import UUID

from perleap.core.errors import NotFoundError, ValidationError
from perleap.db.store import Store
from perleap.models.clock import now_ts
from perleap.models.course import COURSE_STATUSES, Course
from perleap.models.principal import Principal
from perleap.models.profile import Profile
from perleap.services import access
from perleap.services.profile_service import require_teacher

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("title", "subject", "grade_level", "description", "subcategory", "status")


@dataclass(frozen=True, slots=True)
class CourseSummary:
    course: Course
    activity_count: int
    student_count: int


async def create_course(
    store: Store,
    principal: Principal,
    *,
    title: str,
    subject: str,
    grade_level: str,
    description: str | None = None,
    subcategory: str | None = None,
) -> Course:
    await require_teacher(store, principal)
    course = Course.new(
        teacher_id=principal.user_id,
        title=title,
        subject=subject,
        grade_level=grade_level,
        description=description,
        subcategory=subcategory,
    )
    await store.courses.add(course)
    logger.info("Created course id=%s teacher=%s", course.id, course.teacher_id)
    return course


async def list_courses(
    store: Store, principal: Principal, role: str | None = None
) -> list[CourseSummary]:
    """Courses the caller owns (role=teacher) or is enrolled in (role=student).

    Without an explicit role the caller's profile role decides.
    """
    if role is None:
        profile = await store.profiles.get(principal.user_id)
        role = profile.role if profile is not None else "student"
    if role == "teacher":
        courses = await store.courses.list_by_teacher(principal.user_id)
    elif role == "student":
        enrollments = await store.enrollments.list_by_student(principal.user_id)
        courses = await store.courses.list_by_ids([e.course_id for e in enrollments])
    else:
        raise ValidationError("role must be teacher or student")

    summaries = []
    for course in courses:
        # Students only count what they can see.
        status = None if role == "teacher" else "published"
        activities = await store.activities.list_by_courses([course.id], status=status)
        students = await store.enrollments.list_by_course(course.id)
        summaries.append(CourseSummary(course, len(activities), len(students)))
    return summaries


async def get_course(
    store: Store, principal: Principal, course_id: UUID
) -> tuple[Course, list[Profile]]:
    course = await access.require_course(store, principal.user_id, course_id, access.READ)
    enrollments = await store.enrollments.list_by_course(course_id)
    students = await store.profiles.list_by_ids([e.student_id for e in enrollments])
    return course, students


async def update_course(
    store: Store, principal: Principal, course_id: UUID, changes: dict
) -> Course:
    """Apply a partial update. Re-sending the same values leaves the row untouched."""
    course = await access.require_course(store, principal.user_id, course_id, access.WRITE)

    unknown = set(changes) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown course fields: {', '.join(sorted(unknown))}")
    if "status" in changes and changes["status"] not in COURSE_STATUSES:
        raise ValidationError(f"status must be one of {', '.join(COURSE_STATUSES)}")
    for required in ("title", "subject", "grade_level"):
        if required in changes and not (changes[required] or "").strip():
            raise ValidationError(f"{required} must be non-empty")

    diff = {k: v for k, v in changes.items() if getattr(course, k) != v}
    if not diff:
        return course

    updated = replace(course, **diff, updated_at=now_ts())
    await store.courses.update(updated)
    logger.info("Updated course id=%s fields=%s", course_id, sorted(diff))
    return updated


async def delete_course(store: Store, principal: Principal, course_id: UUID) -> None:
    await access.require_course(store, principal.user_id, course_id, access.WRITE)
    if not await store.courses.delete(course_id):
        raise NotFoundError("Course not found")
    logger.info("Deleted course id=%s by=%s", course_id, principal.user_id)
