from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from perleap.models.clock import now_ts

PROFILE_ROLES = ("teacher", "student")


@dataclass(frozen=True, slots=True)
class Profile:
    user_id: UUID
    email: str
    role: str  # teacher|student
    full_name: str | None = None
    profile_picture_url: str | None = None
    created_at: int = 0
    updated_at: int = 0

    @staticmethod
    def new(
        *, user_id: UUID, email: str, role: str, full_name: str | None = None
    ) -> Profile:
        now = now_ts()
        return Profile(
            user_id=user_id,
            email=email,
            role=role,
            full_name=full_name,
            created_at=now,
            updated_at=now,
        )

    @property
    def is_teacher(self) -> bool:
        return self.role == "teacher"

    @property
    def is_student(self) -> bool:
        return self.role == "student"

    @property
    def display_name(self) -> str:
        if self.full_name:
            return self.full_name
        if self.email:
            return self.email.split("@")[0]
        return "Teacher"
