"""PostgreSQL implementation of ProfileRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from perleap.db.tables import ProfileRow
from perleap.models.profile import Profile


class PgProfileRepo:
    """Satisfies the ProfileRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, user_id: UUID) -> Profile | None:
        row = await self._session.get(ProfileRow, user_id)
        return _row_to_profile(row) if row is not None else None

    async def list_by_ids(self, user_ids: list[UUID]) -> list[Profile]:
        if not user_ids:
            return []
        stmt = select(ProfileRow).where(ProfileRow.user_id.in_(user_ids))
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_profile(r) for r in rows]

    async def list_by_role(self, role: str) -> list[Profile]:
        stmt = (
            select(ProfileRow)
            .where(ProfileRow.role == role)
            .order_by(ProfileRow.full_name)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_profile(r) for r in rows]

    async def save(self, profile: Profile) -> Profile:
        values = {
            "user_id": profile.user_id,
            "email": profile.email,
            "full_name": profile.full_name,
            "role": profile.role,
            "profile_picture_url": profile.profile_picture_url,
            "created_at": profile.created_at,
            "updated_at": profile.updated_at,
        }
        stmt = insert(ProfileRow).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[ProfileRow.user_id],
            set_={k: v for k, v in values.items() if k not in ("user_id", "created_at")},
        )
        await self._session.execute(stmt)
        return profile


def _row_to_profile(row: ProfileRow) -> Profile:
    return Profile(
        user_id=row.user_id,
        email=row.email,
        role=row.role,
        full_name=row.full_name,
        profile_picture_url=row.profile_picture_url,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
