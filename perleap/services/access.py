"""Per-entity capability predicates.

Every handler authorizes through these helpers so the ownership rules live
in one place:

    Course    owner teacher: read, write    enrolled student: read
    Activity  owner teacher: read, write    enrolled student: read (published)
    Run       run's student: read, write    course teacher: read

A missing capability raises ForbiddenError; a missing entity raises
NotFoundError.
"""

from __future__ import annotations

import logging
from uuid import UUID

from perleap.core.errors import ForbiddenError, NotFoundError
from perleap.db.store import Store
from perleap.models.activity import Activity
from perleap.models.course import Course
from perleap.models.run import ActivityRun

logger = logging.getLogger(__name__)

READ = "read"
WRITE = "write"

_ALL = frozenset({READ, WRITE})
_READ_ONLY = frozenset({READ})
_NONE: frozenset[str] = frozenset()


async def course_capabilities(store: Store, user_id: UUID, course: Course) -> frozenset[str]:
    if course.teacher_id == user_id:
        return _ALL
    if await store.enrollments.get(course.id, user_id) is not None:
        return _READ_ONLY
    return _NONE


async def activity_capabilities(
    store: Store, user_id: UUID, activity: Activity, course: Course
) -> frozenset[str]:
    if course.teacher_id == user_id:
        return _ALL
    if activity.is_published and await store.enrollments.get(course.id, user_id):
        return _READ_ONLY
    return _NONE


def run_capabilities(
    user_id: UUID, run: ActivityRun, course: Course | None
) -> frozenset[str]:
    if run.student_id == user_id:
        return _ALL
    if course is not None and course.teacher_id == user_id:
        return _READ_ONLY
    return _NONE


def _deny(user_id: UUID, kind: str, entity_id: UUID, capability: str) -> ForbiddenError:
    logger.warning(
        "Access denied: user=%s lacks %s on %s=%s", user_id, capability, kind, entity_id
    )
    return ForbiddenError(f"You do not have {capability} access to this {kind}")


async def require_course(
    store: Store, user_id: UUID, course_id: UUID, capability: str
) -> Course:
    course = await store.courses.get(course_id)
    if course is None:
        raise NotFoundError("Course not found")
    if capability not in await course_capabilities(store, user_id, course):
        raise _deny(user_id, "course", course_id, capability)
    return course


async def require_activity(
    store: Store, user_id: UUID, activity_id: UUID, capability: str
) -> tuple[Activity, Course]:
    activity = await store.activities.get(activity_id)
    if activity is None:
        raise NotFoundError("Activity not found")
    course = await store.courses.get(activity.course_id)
    if course is None:
        raise NotFoundError("Course not found")
    if capability not in await activity_capabilities(store, user_id, activity, course):
        raise _deny(user_id, "activity", activity_id, capability)
    return activity, course


async def require_run(
    store: Store, user_id: UUID, run_id: UUID, capability: str
) -> tuple[ActivityRun, Activity | None, Course | None]:
    """Load a run with its activity and course, either of which may be gone."""
    run = await store.runs.get(run_id)
    if run is None:
        raise NotFoundError("Activity run not found")
    activity = await store.activities.get(run.activity_id)
    course = await store.courses.get(activity.course_id) if activity else None
    if capability not in run_capabilities(user_id, run, course):
        raise _deny(user_id, "run", run_id, capability)
    return run, activity, course
