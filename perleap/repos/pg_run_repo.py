"""PostgreSQL implementations of RunRepo and AssessmentRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from perleap.core.errors import ConflictError, PersistenceError
from perleap.db.tables import ActivityRunRow, AssessmentRow
from perleap.models.assessment import Assessment
from perleap.models.run import ActivityRun, ChatTurn

_UNIQUE_VIOLATION = "23505"


class PgRunRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, run_id: UUID) -> ActivityRun | None:
        row = await self._session.get(ActivityRunRow, run_id)
        return _row_to_run(row) if row is not None else None

    async def add(self, run: ActivityRun) -> None:
        self._session.add(
            ActivityRunRow(
                id=run.id,
                activity_id=run.activity_id,
                student_id=run.student_id,
                status=run.status,
                messages=[t.to_json() for t in run.messages],
                created_at=run.created_at,
                started_at=run.started_at,
                completed_at=run.completed_at,
            )
        )
        await self._session.flush()

    async def update(self, run: ActivityRun) -> ActivityRun:
        stmt = (
            update(ActivityRunRow)
            .where(ActivityRunRow.id == run.id)
            .values(
                status=run.status,
                messages=[t.to_json() for t in run.messages],
                started_at=run.started_at,
                completed_at=run.completed_at,
            )
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            raise KeyError("run not found")
        return run

    async def list_by_student(self, student_id: UUID) -> list[ActivityRun]:
        stmt = (
            select(ActivityRunRow)
            .where(ActivityRunRow.student_id == student_id)
            .order_by(ActivityRunRow.created_at.desc())
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_run(r) for r in rows]

    async def list_by_activities(self, activity_ids: list[UUID]) -> list[ActivityRun]:
        if not activity_ids:
            return []
        stmt = select(ActivityRunRow).where(ActivityRunRow.activity_id.in_(activity_ids))
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_run(r) for r in rows]


class PgAssessmentRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_run(self, run_id: UUID) -> Assessment | None:
        stmt = select(AssessmentRow).where(AssessmentRow.activity_run_id == run_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return _row_to_assessment(row) if row is not None else None

    async def add(self, assessment: Assessment) -> None:
        self._session.add(
            AssessmentRow(
                id=assessment.id,
                activity_run_id=assessment.activity_run_id,
                student_id=assessment.student_id,
                course_id=assessment.course_id,
                soft_table=assessment.soft_table,
                cra_table=assessment.cra_table,
                student_feedback=assessment.student_feedback,
                teacher_feedback=assessment.teacher_feedback,
                recommendations=assessment.recommendations,
                chat_context=assessment.chat_context,
                full_assessment=assessment.full_assessment,
                created_at=assessment.created_at,
            )
        )
        try:
            await self._session.flush()
        except IntegrityError as e:
            if getattr(e.orig, "sqlstate", None) == _UNIQUE_VIOLATION:
                raise ConflictError("Assessment already exists for this run") from e
            raise PersistenceError("Failed to save assessment") from e

    async def list_by_course(self, course_id: UUID) -> list[Assessment]:
        stmt = (
            select(AssessmentRow)
            .where(AssessmentRow.course_id == course_id)
            .order_by(AssessmentRow.created_at.desc())
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_assessment(r) for r in rows]


def _row_to_run(row: ActivityRunRow) -> ActivityRun:
    return ActivityRun(
        id=row.id,
        activity_id=row.activity_id,
        student_id=row.student_id,
        status=row.status,
        messages=tuple(ChatTurn.from_json(m) for m in row.messages or []),
        created_at=row.created_at,
        started_at=row.started_at,
        completed_at=row.completed_at,
    )


def _row_to_assessment(row: AssessmentRow) -> Assessment:
    return Assessment(
        id=row.id,
        activity_run_id=row.activity_run_id,
        student_id=row.student_id,
        course_id=row.course_id,
        soft_table=list(row.soft_table),
        cra_table=list(row.cra_table),
        student_feedback=row.student_feedback,
        teacher_feedback=row.teacher_feedback,
        recommendations=dict(row.recommendations),
        chat_context=list(row.chat_context),
        full_assessment=row.full_assessment,
        created_at=row.created_at,
    )
