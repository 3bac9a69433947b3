"""Course and enrollment endpoints.

POST   /v1/courses                       create (teachers; creator owns it)
GET    /v1/courses?role=teacher|student  owned or enrolled courses
GET    /v1/courses/{course_id}           course with enrolled students
PATCH  /v1/courses/{course_id}           partial update (owner)
DELETE /v1/courses/{course_id}           delete (owner)
POST   /v1/courses/{course_id}/students  enroll students (owner)
GET    /v1/students?course_id=           student directory (teachers)
"""

from __future__ import annotations

from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Response, status
from pydantic import BaseModel, Field

from perleap.api.dependencies import CurrentUser, StoreDep
from perleap.api.profile import ProfileOut, profile_out
from perleap.models.course import Course
from perleap.services import course_service, enrollment_service

router = APIRouter(tags=["courses"])


class CourseCreateIn(BaseModel):
    title: str = Field(min_length=1, max_length=500)
    subject: str = Field(min_length=1, max_length=255)
    grade_level: str = Field(min_length=1, max_length=64)
    description: str | None = None
    subcategory: str | None = None


class CoursePatchIn(BaseModel):
    title: str | None = Field(default=None, max_length=500)
    subject: str | None = Field(default=None, max_length=255)
    grade_level: str | None = Field(default=None, max_length=64)
    description: str | None = None
    subcategory: str | None = None
    status: str | None = None


class CourseOut(BaseModel):
    id: str
    teacher_id: str
    title: str
    subject: str
    grade_level: str
    description: str | None
    subcategory: str | None
    status: str
    created_at: int
    updated_at: int


class CourseListItemOut(CourseOut):
    activity_count: int
    student_count: int


class CourseDetailOut(CourseOut):
    students: list[ProfileOut]


class EnrollIn(BaseModel):
    student_ids: list[UUID]


class EnrollOut(BaseModel):
    ok: bool
    added: int
    student_ids: list[str]


class StudentOut(ProfileOut):
    enrolled: bool | None = None


def course_out(c: Course) -> CourseOut:
    return CourseOut(**course_fields(c))


def course_fields(c: Course) -> dict:
    return {
        "id": str(c.id),
        "teacher_id": str(c.teacher_id),
        "title": c.title,
        "subject": c.subject,
        "grade_level": c.grade_level,
        "description": c.description,
        "subcategory": c.subcategory,
        "status": c.status,
        "created_at": c.created_at,
        "updated_at": c.updated_at,
    }


@router.post("/v1/courses", response_model=CourseOut, status_code=status.HTTP_201_CREATED)
async def create_course(
    body: CourseCreateIn, principal: CurrentUser, store: StoreDep
) -> CourseOut:
    course = await course_service.create_course(store, principal, **body.model_dump())
    return course_out(course)


@router.get("/v1/courses", response_model=list[CourseListItemOut])
async def list_courses(
    principal: CurrentUser,
    store: StoreDep,
    role: Literal["teacher", "student"] | None = None,
) -> list[CourseListItemOut]:
    summaries = await course_service.list_courses(store, principal, role)
    return [
        CourseListItemOut(
            **course_fields(s.course),
            activity_count=s.activity_count,
            student_count=s.student_count,
        )
        for s in summaries
    ]


@router.get("/v1/courses/{course_id}", response_model=CourseDetailOut)
async def get_course(
    course_id: UUID, principal: CurrentUser, store: StoreDep
) -> CourseDetailOut:
    course, students = await course_service.get_course(store, principal, course_id)
    return CourseDetailOut(
        **course_fields(course), students=[profile_out(p) for p in students]
    )


@router.patch("/v1/courses/{course_id}", response_model=CourseOut)
async def update_course(
    course_id: UUID, body: CoursePatchIn, principal: CurrentUser, store: StoreDep
) -> CourseOut:
    changes = body.model_dump(exclude_unset=True)
    course = await course_service.update_course(store, principal, course_id, changes)
    return course_out(course)


@router.delete("/v1/courses/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_course(course_id: UUID, principal: CurrentUser, store: StoreDep) -> Response:
    await course_service.delete_course(store, principal, course_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/v1/courses/{course_id}/students", response_model=EnrollOut)
async def enroll_students(
    course_id: UUID, body: EnrollIn, principal: CurrentUser, store: StoreDep
) -> EnrollOut:
    added = await enrollment_service.enroll_students(
        store, principal, course_id, body.student_ids
    )
    return EnrollOut(ok=True, added=len(added), student_ids=[str(s) for s in added])


@router.get("/v1/students", response_model=list[StudentOut])
async def list_students(
    principal: CurrentUser, store: StoreDep, course_id: UUID | None = None
) -> list[StudentOut]:
    listings = await enrollment_service.list_students(store, principal, course_id)
    return [
        StudentOut(**profile_out(s.profile).model_dump(), enrolled=s.enrolled)
        for s in listings
    ]
