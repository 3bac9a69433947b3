from __future__ import annotations

from typing import Protocol
from uuid import UUID

from perleap.models.profile import Profile


class ProfileRepo(Protocol):
    async def get(self, user_id: UUID) -> Profile | None: ...
    async def list_by_ids(self, user_ids: list[UUID]) -> list[Profile]: ...
    async def list_by_role(self, role: str) -> list[Profile]: ...
    async def save(self, profile: Profile) -> Profile: ...


class InMemoryProfileRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, Profile] = {}

    async def get(self, user_id: UUID) -> Profile | None:
        return self._by_id.get(user_id)

    async def list_by_ids(self, user_ids: list[UUID]) -> list[Profile]:
        return [self._by_id[u] for u in user_ids if u in self._by_id]

    async def list_by_role(self, role: str) -> list[Profile]:
        found = [p for p in self._by_id.values() if p.role == role]
        return sorted(found, key=lambda p: p.full_name or "")

    async def save(self, profile: Profile) -> Profile:
        self._by_id[profile.user_id] = profile
        return profile
