"""PostgreSQL implementations of CourseRepo and EnrollmentRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from perleap.db.tables import CourseRow, EnrollmentRow
from perleap.models.course import Course, Enrollment


class PgCourseRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, course_id: UUID) -> Course | None:
        row = await self._session.get(CourseRow, course_id)
        return _row_to_course(row) if row is not None else None

    async def add(self, course: Course) -> None:
        self._session.add(
            CourseRow(
                id=course.id,
                teacher_id=course.teacher_id,
                title=course.title,
                subject=course.subject,
                grade_level=course.grade_level,
                description=course.description,
                subcategory=course.subcategory,
                status=course.status,
                created_at=course.created_at,
                updated_at=course.updated_at,
            )
        )
        await self._session.flush()

    async def update(self, course: Course) -> Course:
        stmt = (
            update(CourseRow)
            .where(CourseRow.id == course.id)
            .values(
                title=course.title,
                subject=course.subject,
                grade_level=course.grade_level,
                description=course.description,
                subcategory=course.subcategory,
                status=course.status,
                updated_at=course.updated_at,
            )
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            raise KeyError("course not found")
        return course

    async def delete(self, course_id: UUID) -> bool:
        result = await self._session.execute(
            delete(CourseRow).where(CourseRow.id == course_id)
        )
        return result.rowcount > 0

    async def list_by_teacher(self, teacher_id: UUID) -> list[Course]:
        stmt = (
            select(CourseRow)
            .where(CourseRow.teacher_id == teacher_id)
            .order_by(CourseRow.created_at.desc())
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_course(r) for r in rows]

    async def list_by_ids(self, course_ids: list[UUID]) -> list[Course]:
        if not course_ids:
            return []
        stmt = select(CourseRow).where(CourseRow.id.in_(course_ids))
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_course(r) for r in rows]


class PgEnrollmentRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, course_id: UUID, student_id: UUID) -> Enrollment | None:
        row = await self._session.get(EnrollmentRow, (course_id, student_id))
        return _row_to_enrollment(row) if row is not None else None

    async def add_many(self, enrollments: list[Enrollment]) -> None:
        self._session.add_all(
            EnrollmentRow(
                course_id=e.course_id,
                student_id=e.student_id,
                enrolled_at=e.enrolled_at,
            )
            for e in enrollments
        )
        await self._session.flush()

    async def list_by_course(self, course_id: UUID) -> list[Enrollment]:
        stmt = select(EnrollmentRow).where(EnrollmentRow.course_id == course_id)
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_enrollment(r) for r in rows]

    async def list_by_student(self, student_id: UUID) -> list[Enrollment]:
        stmt = select(EnrollmentRow).where(EnrollmentRow.student_id == student_id)
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_enrollment(r) for r in rows]


def _row_to_course(row: CourseRow) -> Course:
    return Course(
        id=row.id,
        teacher_id=row.teacher_id,
        title=row.title,
        subject=row.subject,
        grade_level=row.grade_level,
        description=row.description,
        subcategory=row.subcategory,
        status=row.status,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_enrollment(row: EnrollmentRow) -> Enrollment:
    return Enrollment(
        course_id=row.course_id,
        student_id=row.student_id,
        enrolled_at=row.enrolled_at,
    )
