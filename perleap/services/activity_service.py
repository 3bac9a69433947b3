"""Activity authoring, lifecycle and assignment.

Lifecycle: draft -> published -> archived, or draft -> archived. Students
only ever see published activities.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any
from uuid import UUID

from perleap.core.errors import ValidationError
from perleap.db.store import Store
from perleap.models.activity import ACTIVITY_STATUSES, Activity, ActivityAssignment
from perleap.models.clock import now_ts
from perleap.models.principal import Principal
from perleap.services import access

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "title",
    "type",
    "goal",
    "activity_content",
    "custom_focus",
    "difficulty",
    "length",
    "config",
    "status",
)


async def create_activity(
    store: Store, principal: Principal, *, course_id: UUID, title: str, **fields: Any
) -> Activity:
    await access.require_course(store, principal.user_id, course_id, access.WRITE)
    activity = Activity.new(course_id=course_id, title=title, **fields)
    await store.activities.add(activity)
    logger.info("Created activity id=%s course=%s", activity.id, course_id)
    return activity


async def get_activity(store: Store, principal: Principal, activity_id: UUID) -> Activity:
    activity, _ = await access.require_activity(
        store, principal.user_id, activity_id, access.READ
    )
    return activity


async def list_course_activities(
    store: Store, principal: Principal, course_id: UUID
) -> list[Activity]:
    course = await access.require_course(store, principal.user_id, course_id, access.READ)
    status = None if course.teacher_id == principal.user_id else "published"
    return await store.activities.list_by_courses([course_id], status=status)


async def update_activity(
    store: Store, principal: Principal, activity_id: UUID, changes: dict
) -> Activity:
    activity, _ = await access.require_activity(
        store, principal.user_id, activity_id, access.WRITE
    )

    unknown = set(changes) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown activity fields: {', '.join(sorted(unknown))}")
    for required in ("title", "type", "difficulty"):
        if required in changes and not (changes[required] or "").strip():
            raise ValidationError(f"{required} must be non-empty")
    if "status" in changes:
        _check_transition(activity, changes["status"])

    diff = {k: v for k, v in changes.items() if getattr(activity, k) != v}
    if not diff:
        return activity

    updated = replace(activity, **diff, updated_at=now_ts())
    await store.activities.update(updated)
    logger.info("Updated activity id=%s fields=%s", activity_id, sorted(diff))
    return updated


async def set_status(
    store: Store, principal: Principal, activity_id: UUID, status: str
) -> Activity:
    return await update_activity(store, principal, activity_id, {"status": status})


async def assign_students(
    store: Store,
    principal: Principal,
    activity_id: UUID,
    student_ids: list[UUID],
    due_date: int | None = None,
) -> list[ActivityAssignment]:
    """Assign a published activity to enrolled students.

    Students who already hold an open assignment for it are skipped.
    """
    activity, course = await access.require_activity(
        store, principal.user_id, activity_id, access.WRITE
    )
    if not activity.is_published:
        raise ValidationError("Only published activities can be assigned")

    wanted = list(dict.fromkeys(student_ids))
    if not wanted:
        raise ValidationError("student_ids must be a non-empty list")

    enrolled = {e.student_id for e in await store.enrollments.list_by_course(course.id)}
    missing = [s for s in wanted if s not in enrolled]
    if missing:
        raise ValidationError(
            "Students not enrolled in this course: " + ", ".join(str(s) for s in missing)
        )

    open_for = {
        a.student_id
        for a in await store.assignments.list_by_activity(activity_id)
        if a.status == "assigned"
    }
    new = [
        ActivityAssignment.new(
            activity_id=activity_id,
            student_id=s,
            assigned_by=principal.user_id,
            due_date=due_date,
        )
        for s in wanted
        if s not in open_for
    ]
    if new:
        await store.assignments.add_many(new)
    logger.info("Assigned activity=%s to %d student(s)", activity_id, len(new))
    return new


def _check_transition(activity: Activity, status: str) -> None:
    if status not in ACTIVITY_STATUSES:
        raise ValidationError(f"status must be one of {', '.join(ACTIVITY_STATUSES)}")
    if not activity.can_move_to(status):
        logger.warning(
            "Rejected activity transition id=%s %s->%s", activity.id, activity.status, status
        )
        raise ValidationError(f"Cannot move activity from {activity.status} to {status}")
