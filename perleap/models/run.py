from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID, uuid4

from perleap.models.clock import now_ts

RUN_STATUSES = ("created", "in_progress", "completed")
TURN_ROLES = ("student", "assistant")
# Transcripts from chat clients label the learner "user".
STUDENT_SPEAKERS = frozenset({"student", "user"})


@dataclass(frozen=True, slots=True)
class ChatTurn:
    role: str  # student|assistant
    content: str
    timestamp: int

    def to_json(self) -> dict:
        return {"role": self.role, "content": self.content, "timestamp": self.timestamp}

    @staticmethod
    def from_json(data: dict) -> ChatTurn:
        return ChatTurn(
            role=data["role"],
            content=data["content"],
            timestamp=int(data.get("timestamp") or 0),
        )


@dataclass(frozen=True, slots=True)
class ActivityRun:
    """One student's attempt at one activity, owning the chat transcript."""

    id: UUID
    activity_id: UUID
    student_id: UUID
    status: str = "created"  # created|in_progress|completed
    messages: tuple[ChatTurn, ...] = ()
    created_at: int = 0
    started_at: int | None = None
    completed_at: int | None = None

    @staticmethod
    def new(*, activity_id: UUID, student_id: UUID) -> ActivityRun:
        return ActivityRun(
            id=uuid4(),
            activity_id=activity_id,
            student_id=student_id,
            created_at=now_ts(),
        )

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"
