from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from perleap.core.errors import ValidationError
from perleap.db.store import Store
from perleap.models.clock import now_ts
from perleap.models.course import Enrollment
from perleap.models.principal import Principal
from perleap.models.profile import Profile
from perleap.services import access
from perleap.services.profile_service import require_teacher

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StudentListing:
    profile: Profile
    enrolled: bool | None = None


async def enroll_students(
    store: Store, principal: Principal, course_id: UUID, student_ids: list[UUID]
) -> list[UUID]:
    """Enroll students in a course the caller owns; return the newly added ids.

    Students already enrolled are skipped. Every id must belong to a student
    profile.
    """
    await access.require_course(store, principal.user_id, course_id, access.WRITE)

    wanted = list(dict.fromkeys(student_ids))
    if not wanted:
        raise ValidationError("student_ids must be a non-empty list")

    profiles = {p.user_id: p for p in await store.profiles.list_by_ids(wanted)}
    invalid = [s for s in wanted if s not in profiles or not profiles[s].is_student]
    if invalid:
        logger.warning("Rejected enrollment of non-students %s in course=%s", invalid, course_id)
        raise ValidationError(
            "Not student accounts: " + ", ".join(str(s) for s in invalid)
        )

    existing = {e.student_id for e in await store.enrollments.list_by_course(course_id)}
    now = now_ts()
    new = [
        Enrollment(course_id=course_id, student_id=s, enrolled_at=now)
        for s in wanted
        if s not in existing
    ]
    if new:
        await store.enrollments.add_many(new)
    logger.info(
        "Enrolled %d student(s) in course=%s (skipped %d)",
        len(new),
        course_id,
        len(wanted) - len(new),
    )
    return [e.student_id for e in new]


async def list_students(
    store: Store, principal: Principal, course_id: UUID | None = None
) -> list[StudentListing]:
    """All student profiles, flagged with enrollment when a course is given."""
    await require_teacher(store, principal)
    students = await store.profiles.list_by_role("student")
    if course_id is None:
        return [StudentListing(p) for p in students]

    await access.require_course(store, principal.user_id, course_id, access.WRITE)
    enrolled = {e.student_id for e in await store.enrollments.list_by_course(course_id)}
    return [StudentListing(p, p.user_id in enrolled) for p in students]
