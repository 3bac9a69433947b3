"""Repository bundle handed to services.

Routes receive one Store per request: the process-wide in-memory store when
DATABASE_URL is unset, or PostgreSQL repos bound to a request-scoped session.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from perleap.repos.activity_repo import (
    ActivityRepo,
    AssignmentRepo,
    InMemoryActivityRepo,
    InMemoryAssignmentRepo,
)
from perleap.repos.course_repo import (
    CourseRepo,
    EnrollmentRepo,
    InMemoryCourseRepo,
    InMemoryEnrollmentRepo,
)
from perleap.repos.pg_activity_repo import PgActivityRepo, PgAssignmentRepo
from perleap.repos.pg_course_repo import PgCourseRepo, PgEnrollmentRepo
from perleap.repos.pg_profile_repo import PgProfileRepo
from perleap.repos.pg_run_repo import PgAssessmentRepo, PgRunRepo
from perleap.repos.profile_repo import InMemoryProfileRepo, ProfileRepo
from perleap.repos.run_repo import (
    AssessmentRepo,
    InMemoryAssessmentRepo,
    InMemoryRunRepo,
    RunRepo,
)


@dataclass(frozen=True, slots=True)
class Store:
    profiles: ProfileRepo
    courses: CourseRepo
    enrollments: EnrollmentRepo
    activities: ActivityRepo
    assignments: AssignmentRepo
    runs: RunRepo
    assessments: AssessmentRepo


def memory_store() -> Store:
    enrollments = InMemoryEnrollmentRepo()
    activities = InMemoryActivityRepo()
    assignments = InMemoryAssignmentRepo()
    runs = InMemoryRunRepo()
    assessments = InMemoryAssessmentRepo()

    # Mirrors the ON DELETE CASCADE chain in db/tables.py.
    def drop_course(course_id: UUID) -> None:
        enrollments.drop_course(course_id)
        activity_ids = activities.drop_course(course_id)
        assignments.drop_activities(activity_ids)
        assessments.drop_runs(runs.drop_activities(activity_ids))

    return Store(
        profiles=InMemoryProfileRepo(),
        courses=InMemoryCourseRepo(on_delete=drop_course),
        enrollments=enrollments,
        activities=activities,
        assignments=assignments,
        runs=runs,
        assessments=assessments,
    )


def pg_store(session: AsyncSession) -> Store:
    return Store(
        profiles=PgProfileRepo(session),
        courses=PgCourseRepo(session),
        enrollments=PgEnrollmentRepo(session),
        activities=PgActivityRepo(session),
        assignments=PgAssignmentRepo(session),
        runs=PgRunRepo(session),
        assessments=PgAssessmentRepo(session),
    )
