"""Activity endpoints.

Teachers author activities inside their courses; enrolled students can read
published ones. Status changes follow draft -> published -> archived.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from fastapi import APIRouter, status
from pydantic import BaseModel, Field

from perleap.api.dependencies import CurrentUser, StoreDep
from perleap.models.activity import Activity, ActivityAssignment
from perleap.services import activity_service

router = APIRouter(tags=["activities"])


class ActivityCreateIn(BaseModel):
    course_id: UUID
    title: str = Field(min_length=1, max_length=500)
    type: str = "Student-Chat"
    goal: str | None = None
    activity_content: str | None = None
    custom_focus: str | None = None
    difficulty: str = "adaptive"
    length: str | None = None
    config: dict[str, Any] | None = None


class ActivityPatchIn(BaseModel):
    title: str | None = Field(default=None, max_length=500)
    type: str | None = None
    goal: str | None = None
    activity_content: str | None = None
    custom_focus: str | None = None
    difficulty: str | None = None
    length: str | None = None
    config: dict[str, Any] | None = None
    status: str | None = None


class ActivityOut(BaseModel):
    id: str
    course_id: str
    title: str
    type: str
    goal: str | None
    activity_content: str | None
    custom_focus: str | None
    difficulty: str
    length: str | None
    config: dict[str, Any] | None
    status: str
    created_at: int
    updated_at: int


class AssignIn(BaseModel):
    student_ids: list[UUID]
    due_date: int | None = None


class AssignmentOut(BaseModel):
    id: str
    activity_id: str
    student_id: str
    assigned_by: str
    due_date: int | None
    status: str
    assigned_at: int


def activity_out(a: Activity) -> ActivityOut:
    return ActivityOut(
        id=str(a.id),
        course_id=str(a.course_id),
        title=a.title,
        type=a.type,
        goal=a.goal,
        activity_content=a.activity_content,
        custom_focus=a.custom_focus,
        difficulty=a.difficulty,
        length=a.length,
        config=a.config,
        status=a.status,
        created_at=a.created_at,
        updated_at=a.updated_at,
    )


def assignment_out(a: ActivityAssignment) -> AssignmentOut:
    return AssignmentOut(
        id=str(a.id),
        activity_id=str(a.activity_id),
        student_id=str(a.student_id),
        assigned_by=str(a.assigned_by),
        due_date=a.due_date,
        status=a.status,
        assigned_at=a.assigned_at,
    )


@router.post("/v1/activities", response_model=ActivityOut, status_code=status.HTTP_201_CREATED)
async def create_activity(
    body: ActivityCreateIn, principal: CurrentUser, store: StoreDep
) -> ActivityOut:
    fields = body.model_dump(exclude={"course_id", "title"})
    activity = await activity_service.create_activity(
        store, principal, course_id=body.course_id, title=body.title, **fields
    )
    return activity_out(activity)


@router.get("/v1/activities/{activity_id}", response_model=ActivityOut)
async def get_activity(
    activity_id: UUID, principal: CurrentUser, store: StoreDep
) -> ActivityOut:
    return activity_out(await activity_service.get_activity(store, principal, activity_id))


@router.get("/v1/courses/{course_id}/activities", response_model=list[ActivityOut])
async def list_course_activities(
    course_id: UUID, principal: CurrentUser, store: StoreDep
) -> list[ActivityOut]:
    activities = await activity_service.list_course_activities(store, principal, course_id)
    return [activity_out(a) for a in activities]


@router.patch("/v1/activities/{activity_id}", response_model=ActivityOut)
async def update_activity(
    activity_id: UUID, body: ActivityPatchIn, principal: CurrentUser, store: StoreDep
) -> ActivityOut:
    changes = body.model_dump(exclude_unset=True)
    activity = await activity_service.update_activity(store, principal, activity_id, changes)
    return activity_out(activity)


@router.post("/v1/activities/{activity_id}/publish", response_model=ActivityOut)
async def publish_activity(
    activity_id: UUID, principal: CurrentUser, store: StoreDep
) -> ActivityOut:
    activity = await activity_service.set_status(store, principal, activity_id, "published")
    return activity_out(activity)


@router.post("/v1/activities/{activity_id}/archive", response_model=ActivityOut)
async def archive_activity(
    activity_id: UUID, principal: CurrentUser, store: StoreDep
) -> ActivityOut:
    activity = await activity_service.set_status(store, principal, activity_id, "archived")
    return activity_out(activity)


@router.post(
    "/v1/activities/{activity_id}/assignments",
    response_model=list[AssignmentOut],
    status_code=status.HTTP_201_CREATED,
)
async def assign_activity(
    activity_id: UUID, body: AssignIn, principal: CurrentUser, store: StoreDep
) -> list[AssignmentOut]:
    assignments = await activity_service.assign_students(
        store, principal, activity_id, body.student_ids, body.due_date
    )
    return [assignment_out(a) for a in assignments]
