"""PostgreSQL implementations of ActivityRepo and AssignmentRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from perleap.db.tables import ActivityRow, AssignmentRow
from perleap.models.activity import Activity, ActivityAssignment


class PgActivityRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, activity_id: UUID) -> Activity | None:
        row = await self._session.get(ActivityRow, activity_id)
        return _row_to_activity(row) if row is not None else None

    async def add(self, activity: Activity) -> None:
        self._session.add(ActivityRow(**_activity_values(activity)))
        await self._session.flush()

    async def update(self, activity: Activity) -> Activity:
        values = _activity_values(activity)
        del values["id"], values["course_id"], values["created_at"]
        stmt = update(ActivityRow).where(ActivityRow.id == activity.id).values(**values)
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            raise KeyError("activity not found")
        return activity

    async def list_by_courses(
        self, course_ids: list[UUID], status: str | None = None
    ) -> list[Activity]:
        if not course_ids:
            return []
        stmt = select(ActivityRow).where(ActivityRow.course_id.in_(course_ids))
        if status is not None:
            stmt = stmt.where(ActivityRow.status == status)
        stmt = stmt.order_by(ActivityRow.created_at)
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_activity(r) for r in rows]


class PgAssignmentRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add_many(self, assignments: list[ActivityAssignment]) -> None:
        self._session.add_all(
            AssignmentRow(
                id=a.id,
                activity_id=a.activity_id,
                student_id=a.student_id,
                assigned_by=a.assigned_by,
                due_date=a.due_date,
                status=a.status,
                assigned_at=a.assigned_at,
            )
            for a in assignments
        )
        await self._session.flush()

    async def list_by_student(
        self, student_id: UUID, status: str | None = None
    ) -> list[ActivityAssignment]:
        stmt = select(AssignmentRow).where(AssignmentRow.student_id == student_id)
        if status is not None:
            stmt = stmt.where(AssignmentRow.status == status)
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_assignment(r) for r in rows]

    async def list_by_activity(self, activity_id: UUID) -> list[ActivityAssignment]:
        stmt = select(AssignmentRow).where(AssignmentRow.activity_id == activity_id)
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_assignment(r) for r in rows]

    async def mark_completed(self, activity_id: UUID, student_id: UUID) -> int:
        stmt = (
            update(AssignmentRow)
            .where(
                AssignmentRow.activity_id == activity_id,
                AssignmentRow.student_id == student_id,
                AssignmentRow.status == "assigned",
            )
            .values(status="completed")
        )
        result = await self._session.execute(stmt)
        return result.rowcount


def _activity_values(activity: Activity) -> dict:
    return {
        "id": activity.id,
        "course_id": activity.course_id,
        "title": activity.title,
        "type": activity.type,
        "goal": activity.goal,
        "activity_content": activity.activity_content,
        "custom_focus": activity.custom_focus,
        "difficulty": activity.difficulty,
        "length": activity.length,
        "config": activity.config,
        "status": activity.status,
        "created_at": activity.created_at,
        "updated_at": activity.updated_at,
    }


def _row_to_activity(row: ActivityRow) -> Activity:
    return Activity(
        id=row.id,
        course_id=row.course_id,
        title=row.title,
        type=row.type,
        goal=row.goal,
        activity_content=row.activity_content,
        custom_focus=row.custom_focus,
        difficulty=row.difficulty,
        length=row.length,
        config=row.config,
        status=row.status,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_assignment(row: AssignmentRow) -> ActivityAssignment:
    return ActivityAssignment(
        id=row.id,
        activity_id=row.activity_id,
        student_id=row.student_id,
        assigned_by=row.assigned_by,
        due_date=row.due_date,
        status=row.status,
        assigned_at=row.assigned_at,
    )
