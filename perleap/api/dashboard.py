"""Dashboard aggregations.

GET /v1/dashboard/student                       caller's courses, activities, runs
GET /v1/dashboard/courses/{course_id}/summary   teacher KPIs for one course
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter
from pydantic import BaseModel

from perleap.api.activities import ActivityOut, AssignmentOut, activity_out, assignment_out
from perleap.api.courses import CourseOut, course_fields
from perleap.api.dependencies import CurrentUser, StoreDep
from perleap.api.runs import RunOut, run_out
from perleap.services import dashboard_service

router = APIRouter(prefix="/v1/dashboard", tags=["dashboard"])


class DashboardCourseOut(CourseOut):
    teacher_name: str


class StudentDashboardOut(BaseModel):
    courses: list[DashboardCourseOut]
    activities: list[ActivityOut]
    runs: list[RunOut]
    assignments: list[AssignmentOut]


class KpisOut(BaseModel):
    students: int
    activities: int
    runs: int
    completion_rate: float


class CourseSummaryOut(BaseModel):
    kpis: KpisOut
    soft_averages: dict[str, dict[str, float]]
    cra_averages: dict[str, float]
    recent_runs: list[RunOut]


@router.get("/student", response_model=StudentDashboardOut)
async def student_dashboard(principal: CurrentUser, store: StoreDep) -> StudentDashboardOut:
    board = await dashboard_service.student_dashboard(store, principal)
    return StudentDashboardOut(
        courses=[
            DashboardCourseOut(**course_fields(c), teacher_name=name)
            for c, name in board.courses
        ],
        activities=[activity_out(a) for a in board.activities],
        runs=[run_out(r) for r in board.runs],
        assignments=[assignment_out(a) for a in board.assignments],
    )


@router.get("/courses/{course_id}/summary", response_model=CourseSummaryOut)
async def course_summary(
    course_id: UUID, principal: CurrentUser, store: StoreDep
) -> CourseSummaryOut:
    summary = await dashboard_service.course_summary(store, principal, course_id)
    return CourseSummaryOut(
        kpis=KpisOut(
            students=summary.student_count,
            activities=summary.activity_count,
            runs=summary.run_count,
            completion_rate=summary.completion_rate,
        ),
        soft_averages=summary.soft_averages,
        cra_averages=summary.cra_averages,
        recent_runs=[run_out(r) for r in summary.recent_runs],
    )
