"""Activity runs: a student's attempt at an activity and its transcript.

Status only moves forward: created -> in_progress -> completed. Appending a
message to a created run starts it; a completed run is frozen.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from uuid import UUID

from perleap.core.errors import ForbiddenError, NotFoundError, ValidationError
from perleap.db.store import Store
from perleap.models.clock import now_ts
from perleap.models.principal import Principal
from perleap.models.run import TURN_ROLES, ActivityRun, ChatTurn
from perleap.services import access

logger = logging.getLogger(__name__)


async def create_run(store: Store, principal: Principal, activity_id: UUID) -> ActivityRun:
    activity = await store.activities.get(activity_id)
    if activity is None or not activity.is_published:
        raise NotFoundError("Activity not found or not published")
    if await store.courses.get(activity.course_id) is None:
        raise NotFoundError("Course not found")
    if await store.enrollments.get(activity.course_id, principal.user_id) is None:
        logger.warning(
            "Run refused: user=%s not enrolled in course=%s",
            principal.user_id,
            activity.course_id,
        )
        raise ForbiddenError("You are not enrolled in this course")

    run = ActivityRun.new(activity_id=activity_id, student_id=principal.user_id)
    await store.runs.add(run)
    logger.info("Created run id=%s activity=%s", run.id, activity_id)
    return run


async def start_run(store: Store, principal: Principal, run_id: UUID) -> ActivityRun:
    run, _, _ = await access.require_run(store, principal.user_id, run_id, access.WRITE)
    if run.is_completed:
        raise ValidationError("Activity run is already completed")
    if run.status == "in_progress":
        return run
    return await store.runs.update(_started(run))


async def append_message(
    store: Store, principal: Principal, run_id: UUID, *, role: str, content: str
) -> ActivityRun:
    if role not in TURN_ROLES:
        raise ValidationError(f"role must be one of {', '.join(TURN_ROLES)}")
    if not content.strip():
        raise ValidationError("content must be non-empty")

    run, _, _ = await access.require_run(store, principal.user_id, run_id, access.WRITE)
    if run.is_completed:
        raise ValidationError("Cannot add messages to a completed run")
    if run.status == "created":
        run = _started(run)

    turn = ChatTurn(role=role, content=content, timestamp=now_ts())
    return await store.runs.update(replace(run, messages=run.messages + (turn,)))


async def complete_run(store: Store, principal: Principal, run_id: UUID) -> ActivityRun:
    run, _, _ = await access.require_run(store, principal.user_id, run_id, access.WRITE)
    if run.is_completed:
        return run

    now = now_ts()
    completed = replace(
        run,
        status="completed",
        started_at=run.started_at or now,
        completed_at=now,
    )
    await store.runs.update(completed)
    closed = await store.assignments.mark_completed(run.activity_id, run.student_id)
    logger.info("Completed run id=%s (assignments closed=%d)", run_id, closed)
    return completed


async def get_run(store: Store, principal: Principal, run_id: UUID) -> ActivityRun:
    run, _, _ = await access.require_run(store, principal.user_id, run_id, access.READ)
    return run


async def list_own_runs(
    store: Store, principal: Principal, course_id: UUID | None = None
) -> list[ActivityRun]:
    runs = await store.runs.list_by_student(principal.user_id)
    if course_id is None:
        return runs
    activities = await store.activities.list_by_courses([course_id])
    wanted = {a.id for a in activities}
    return [r for r in runs if r.activity_id in wanted]


def _started(run: ActivityRun) -> ActivityRun:
    return replace(run, status="in_progress", started_at=now_ts())
