from __future__ import annotations

from typing import Protocol
from uuid import UUID

from perleap.core.errors import ConflictError
from perleap.models.assessment import Assessment
from perleap.models.run import ActivityRun


class RunRepo(Protocol):
    async def get(self, run_id: UUID) -> ActivityRun | None: ...
    async def add(self, run: ActivityRun) -> None: ...
    async def update(self, run: ActivityRun) -> ActivityRun: ...
    async def list_by_student(self, student_id: UUID) -> list[ActivityRun]: ...
    async def list_by_activities(self, activity_ids: list[UUID]) -> list[ActivityRun]: ...


class AssessmentRepo(Protocol):
    async def get_by_run(self, run_id: UUID) -> Assessment | None: ...
    async def add(self, assessment: Assessment) -> None: ...
    async def list_by_course(self, course_id: UUID) -> list[Assessment]: ...


class InMemoryRunRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, ActivityRun] = {}

    async def get(self, run_id: UUID) -> ActivityRun | None:
        return self._by_id.get(run_id)

    async def add(self, run: ActivityRun) -> None:
        if run.id in self._by_id:
            raise ValueError("run already exists")
        self._by_id[run.id] = run

    async def update(self, run: ActivityRun) -> ActivityRun:
        if run.id not in self._by_id:
            raise KeyError("run not found")
        self._by_id[run.id] = run
        return run

    async def list_by_student(self, student_id: UUID) -> list[ActivityRun]:
        runs = [r for r in self._by_id.values() if r.student_id == student_id]
        return sorted(runs, key=lambda r: r.created_at, reverse=True)

    async def list_by_activities(self, activity_ids: list[UUID]) -> list[ActivityRun]:
        wanted = set(activity_ids)
        return [r for r in self._by_id.values() if r.activity_id in wanted]

    def drop_activities(self, activity_ids: list[UUID]) -> list[UUID]:
        wanted = set(activity_ids)
        dropped = [r.id for r in self._by_id.values() if r.activity_id in wanted]
        for run_id in dropped:
            del self._by_id[run_id]
        return dropped


class InMemoryAssessmentRepo:
    def __init__(self) -> None:
        self._by_run: dict[UUID, Assessment] = {}

    async def get_by_run(self, run_id: UUID) -> Assessment | None:
        return self._by_run.get(run_id)

    async def add(self, assessment: Assessment) -> None:
        if assessment.activity_run_id in self._by_run:
            raise ConflictError("Assessment already exists for this run")
        self._by_run[assessment.activity_run_id] = assessment

    async def list_by_course(self, course_id: UUID) -> list[Assessment]:
        found = [a for a in self._by_run.values() if a.course_id == course_id]
        return sorted(found, key=lambda a: a.created_at, reverse=True)

    def drop_runs(self, run_ids: list[UUID]) -> None:
        for run_id in run_ids:
            self._by_run.pop(run_id, None)
