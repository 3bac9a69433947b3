from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated identity extracted from a validated bearer token.

    Carried through the request via FastAPI's dependency system. The app
    role (teacher/student) lives on the Profile, not in the token.
    """

    user_id: UUID
    email: str | None = None
