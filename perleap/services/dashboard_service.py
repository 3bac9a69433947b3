"""Read-only aggregations for the student and teacher dashboards."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from uuid import UUID

from perleap.db.store import Store
from perleap.models.activity import Activity, ActivityAssignment
from perleap.models.assessment import SOFT_DIMENSIONS
from perleap.models.course import Course
from perleap.models.principal import Principal
from perleap.models.run import ActivityRun
from perleap.services import access

RECENT_RUNS_LIMIT = 10

_SOFT_SCORES = ("developmental_stage", "motivational_level", "leap_probability")


@dataclass(frozen=True, slots=True)
class StudentDashboard:
    courses: list[tuple[Course, str]]  # (course, teacher display name)
    activities: list[Activity]
    runs: list[ActivityRun]
    assignments: list[ActivityAssignment]


@dataclass(frozen=True, slots=True)
class CourseSummary:
    student_count: int
    activity_count: int
    run_count: int
    completion_rate: float
    soft_averages: dict[str, dict[str, float]] = field(default_factory=dict)
    cra_averages: dict[str, float] = field(default_factory=dict)
    recent_runs: list[ActivityRun] = field(default_factory=list)


async def student_dashboard(store: Store, principal: Principal) -> StudentDashboard:
    enrollments = await store.enrollments.list_by_student(principal.user_id)
    if not enrollments:
        return StudentDashboard(courses=[], activities=[], runs=[], assignments=[])

    courses = await store.courses.list_by_ids([e.course_id for e in enrollments])
    teachers = {
        p.user_id: p.display_name
        for p in await store.profiles.list_by_ids(list({c.teacher_id for c in courses}))
    }
    course_ids = [c.id for c in courses]
    activities = await store.activities.list_by_courses(course_ids, status="published")
    runs = await store.runs.list_by_student(principal.user_id)
    assignments = await store.assignments.list_by_student(
        principal.user_id, status="assigned"
    )
    return StudentDashboard(
        courses=[(c, teachers.get(c.teacher_id, "Teacher")) for c in courses],
        activities=activities,
        runs=runs,
        assignments=assignments,
    )


async def course_summary(
    store: Store, principal: Principal, course_id: UUID
) -> CourseSummary:
    await access.require_course(store, principal.user_id, course_id, access.WRITE)

    students = await store.enrollments.list_by_course(course_id)
    activities = await store.activities.list_by_courses([course_id])
    runs = await store.runs.list_by_activities([a.id for a in activities])
    completed = [r for r in runs if r.is_completed]
    assessments = await store.assessments.list_by_course(course_id)

    soft: dict[str, dict[str, list[int]]] = defaultdict(lambda: defaultdict(list))
    cra: dict[str, list[int]] = defaultdict(list)
    for a in assessments:
        for row in a.soft_table:
            for score in _SOFT_SCORES:
                soft[row["dimension"]][score].append(row[score])
        for row in a.cra_table:
            cra[row["area"]].append(row["current_level"])

    soft_averages = {
        name: {score: _mean(soft[name][score]) for score in _SOFT_SCORES}
        for name, _ in SOFT_DIMENSIONS
        if name in soft
    }
    recent = sorted(completed, key=lambda r: r.completed_at or 0, reverse=True)

    return CourseSummary(
        student_count=len(students),
        activity_count=len(activities),
        run_count=len(runs),
        completion_rate=round(100 * len(completed) / len(runs), 1) if runs else 0.0,
        soft_averages=soft_averages,
        cra_averages={area: _mean(levels) for area, levels in sorted(cra.items())},
        recent_runs=recent[:RECENT_RUNS_LIMIT],
    )


def _mean(values: list[int]) -> float:
    return round(sum(values) / len(values), 1) if values else 0.0
